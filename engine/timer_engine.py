"""Single-threaded command loop driving the timer collection.

All state mutation happens on one engine thread that drains a queue of
work items one at a time, so Timer transitions, store CRUD and
write-backs never interleave. Other threads (the CLI, the tick source)
only enqueue work and receive a Future for its outcome. Notification
playback is handed off to the NotificationDispatcher and never blocks
the loop.
"""

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

from common.commands import CommandType, TimerCommand
from common.duration_codec import DurationCodec
from common.timer import NotificationRequest
from common.timer_store import TimerStore
from engine.notifier import NotificationDispatcher
from engine.tick_scheduler import TickScheduler, TickSource

logger = logging.getLogger(__name__)

QUEUE_POLL_SECONDS = 0.1
STOP_JOIN_SECONDS = 5


class TimerEngine:
    """Routes commands to the TimerStore and paces running timers."""

    def __init__(
        self,
        store: TimerStore,
        notifier: Optional[NotificationDispatcher] = None,
        scheduler: Optional[TickScheduler] = None,
        tick_interval: float = 1.0,
    ):
        """Initialize TimerEngine.

        Args:
            store: The timer collection to drive
            notifier: Receives notification requests; None drops them
            scheduler: Derives owed ticks; defaults to TickScheduler()
            tick_interval: Wall-clock seconds between pulses
        """
        self.store = store
        self.notifier = notifier
        self.scheduler = scheduler or TickScheduler()
        self.tick_source = TickSource(self._on_pulse, interval=tick_interval)
        self._queue: queue.Queue = queue.Queue()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ----- Lifecycle -----
    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """Start the engine thread and the tick source."""
        if self.is_running:
            logger.warning("TimerEngine already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, daemon=True, name="TimerEngine")
        self._thread.start()
        self.tick_source.start()
        logger.info(f"TimerEngine started with {len(self.store)} timers")

    def stop(self):
        """Stop the tick source and the engine thread.

        Work still queued is drained on the calling thread, but only once the
        engine thread has exited.
        """
        self.tick_source.stop()
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=STOP_JOIN_SECONDS)
        if self.is_running:
            # Queued work stays queued; only the engine thread may mutate.
            logger.warning(
                f"TimerEngine thread still busy after {STOP_JOIN_SECONDS}s, not draining queue"
            )
            return
        self.run_pending()
        logger.info("TimerEngine stopped")

    def _run(self):
        while not self._stop_event.is_set():
            try:
                item = self._queue.get(timeout=QUEUE_POLL_SECONDS)
            except queue.Empty:
                continue
            self._execute(item)

    # ----- Queueing -----
    def submit(self, command: TimerCommand) -> Future:
        """Queue a command; thread-safe.

        Returns:
            Future resolved with the result of process(command)
        """
        return self._enqueue(self.process, command)

    def request_snapshot(self) -> Future:
        """Queue a snapshot read so it observes a consistent state."""
        return self._enqueue(self.snapshot)

    def run_pending(self) -> int:
        """Execute every queued item on the calling thread.

        Only for use when the engine thread is not running.

        Returns:
            Number of items executed
        """
        count = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                return count
            self._execute(item)
            count += 1

    def _enqueue(self, fn: Callable, *args) -> Future:
        future: Future = Future()
        self._queue.put((fn, args, future))
        return future

    def _execute(self, item):
        fn, args, future = item
        if not future.set_running_or_notify_cancel():
            return
        try:
            future.set_result(fn(*args))
        except Exception as e:
            logger.error(f"Engine work item {getattr(fn, '__name__', fn)} failed: {e}")
            future.set_exception(e)

    def _on_pulse(self):
        self._enqueue(self.pulse)

    # ----- Command processing -----
    def process(self, command: TimerCommand) -> Any:
        """Apply one command synchronously.

        Returns:
            The new id for ADD_TIMER, the save outcome for SAVE_TIMER,
            None for DELETE_TIMER, otherwise the TransitionResult

        Raises:
            TimerNotFoundError: If the command addresses an unknown id
        """
        if command.type == CommandType.ADD_TIMER:
            return self.store.add()
        if command.type == CommandType.DELETE_TIMER:
            self.store.delete(command.timer_id)
            return None
        if command.type == CommandType.SAVE_TIMER:
            return self.store.save_one(command.timer_id)

        result = self.store.mutate(command.timer_id, command)
        self._dispatch(self.scheduler.notifications([result]))
        return result

    def pulse(self) -> int:
        """Deliver one tick to every running timer.

        Returns:
            Number of ticks delivered
        """
        owed = self.scheduler.owed_ticks(self.store.timers())
        results = [
            self.store.mutate(timer_id, TimerCommand.tick(timer_id))
            for timer_id in owed
        ]
        self._dispatch(self.scheduler.notifications(results))
        return len(owed)

    def _dispatch(self, requests: list[NotificationRequest]):
        for request in requests:
            if self.notifier is None:
                logger.debug(f"No notifier configured, dropping request for {request.timer_id}")
                continue
            try:
                self.notifier.dispatch(request)
            except Exception as e:
                logger.error(f"Failed to dispatch notification for {request.timer_id}: {e}")

    def snapshot(self) -> list[dict[str, Any]]:
        """Render-ready view of every timer in display order."""
        views = []
        for timer in self.store.timers():
            hours, minutes, seconds = timer.display_fields()
            views.append(
                {
                    "id": timer.id,
                    "name": timer.name,
                    "state": timer.state.value,
                    "hours": hours,
                    "minutes": minutes,
                    "seconds": seconds,
                    "remaining_seconds": timer.remaining,
                    "elapsed_seconds": timer.elapsed,
                    "remaining_text": ":".join(DurationCodec.format(timer.remaining)),
                }
            )
        return views
