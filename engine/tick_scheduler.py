"""Tick scheduling for running timers.

TickScheduler derives, from a snapshot of timer state alone, which timers
are owed a tick and which notifications must be dispatched. Nothing is
subscribed per timer: the owed set is recomputed on every pulse, so
restarting the pulse source never loses or duplicates countdown steps
beyond the wall-clock time it missed.

TickSource is the wall-clock pacer: a daemon thread that calls back once
per interval.
"""

import logging
import threading
from collections.abc import Iterable
from typing import Any, Callable, Optional

from common.timer import NotificationRequest, Timer, TimerState, TransitionResult

logger = logging.getLogger(__name__)


class TickScheduler:
    """Stateless derivation of owed ticks and notifications."""

    def owed_ticks(self, timers: Iterable[Timer]) -> list[str]:
        """Ids of the timers that must receive one tick this second."""
        return [timer.id for timer in timers if timer.state == TimerState.RUNNING]

    def notifications(
        self, results: Iterable[TransitionResult]
    ) -> list[NotificationRequest]:
        """Notification requests emitted by a batch of transitions.

        At most one request per timer is returned for a batch.
        """
        requests = []
        seen = set()
        for result in results:
            for request in result.notifications:
                if request.timer_id in seen:
                    continue
                seen.add(request.timer_id)
                requests.append(request)
        return requests


class TickSource:
    """Calls `on_pulse` once per interval from a daemon thread."""

    def __init__(self, on_pulse: Callable[[], Any], interval: float = 1.0):
        """Initialize TickSource.

        Args:
            on_pulse: Callback invoked once per interval
            interval: Seconds between pulses
        """
        self.on_pulse = on_pulse
        self.interval = interval
        self.stop_event = threading.Event()
        self.thread: Optional[threading.Thread] = None
        self.pulse_count = 0

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def start(self):
        """Start the tick source."""
        if self.is_running:
            logger.warning("TickSource already running")
            return

        self.stop_event.clear()
        self.thread = threading.Thread(target=self._run, daemon=True, name="TickSource")
        self.thread.start()
        logger.info(f"TickSource started with {self.interval}s interval")

    def stop(self):
        """Stop the tick source."""
        self.stop_event.set()
        if self.thread and self.thread.is_alive():
            self.thread.join(timeout=2)
        logger.info("TickSource stopped")

    def _run(self):
        # The first pulse comes one full interval after start.
        while not self.stop_event.wait(timeout=self.interval):
            try:
                self.on_pulse()
                self.pulse_count += 1
            except Exception as e:
                logger.error(f"TickSource pulse failed: {e}")

        logger.info(f"TickSource loop ended after {self.pulse_count} pulses")

    def get_stats(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "interval": self.interval,
            "pulse_count": self.pulse_count,
        }
