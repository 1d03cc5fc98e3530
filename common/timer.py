"""Countdown timer entity and its state machine.

A Timer is Stopped (initial), Running, or momentarily Notifying. Each
transition method mutates the timer in place and returns a
TransitionResult describing the resulting state and any notification
side effects the caller must dispatch. Expiry is a single atomic
Running -> Stopped transition that emits one NotificationRequest, so
Notifying is never observable as a steady state.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum

from common.commands import CommandType, TimerCommand
from common.duration_codec import DurationCodec, ParseError

logger = logging.getLogger(__name__)

TICK_SECONDS = 1
DEFAULT_FIELD = "00"


class TimerState(str, Enum):
    """Lifecycle states of a countdown timer."""

    STOPPED = "Stopped"
    RUNNING = "Running"
    NOTIFYING = "Notifying"

    def __repr__(self):
        return f"TimerState.{self.name}"


@dataclass(frozen=True)
class NotificationRequest:
    """Request to notify the user that a timer finished."""

    timer_id: str
    timer_name: str = ""


@dataclass
class TransitionResult:
    """Outcome of applying one command to a timer.

    Attributes:
        timer_id: The timer the command was applied to
        state: Timer state after the transition
        changed: False when the command was a no-op
        notifications: Side effects the caller must dispatch
    """

    timer_id: str
    state: TimerState
    changed: bool = True
    notifications: list[NotificationRequest] = field(default_factory=list)


def new_timer_id() -> str:
    return str(uuid.uuid4())


@dataclass
class Timer:
    """One named countdown.

    `remaining` and `elapsed` are whole seconds. The hours/minutes/seconds
    fields are the user's edit buffers; countdown logic never touches them
    except through Stop, Reset and expiry, which overwrite them from
    `remaining`.
    """

    id: str = field(default_factory=new_timer_id)
    name: str = ""
    remaining: int = 0
    elapsed: int = 0
    state: TimerState = TimerState.STOPPED
    hours: str = DEFAULT_FIELD
    minutes: str = DEFAULT_FIELD
    seconds: str = DEFAULT_FIELD

    @property
    def is_running(self) -> bool:
        return self.state == TimerState.RUNNING

    def display_fields(self) -> tuple[str, str, str]:
        """Fields to show: live remaining time while running, else the buffers."""
        if self.is_running:
            return DurationCodec.format(self.remaining)
        return self.hours, self.minutes, self.seconds

    def _sync_fields_from_remaining(self) -> None:
        self.hours, self.minutes, self.seconds = DurationCodec.format(self.remaining)

    def _result(self, changed: bool = True, notifications=None) -> TransitionResult:
        return TransitionResult(
            timer_id=self.id,
            state=self.state,
            changed=changed,
            notifications=list(notifications or []),
        )

    # ----- Transitions -----
    def start(self) -> TransitionResult:
        """Start counting down from the duration in the edit buffers.

        Invalid buffer text leaves the timer untouched.
        """
        if self.is_running:
            return self._result(changed=False)
        try:
            duration = DurationCodec.parse(self.hours, self.minutes, self.seconds)
        except ParseError as e:
            logger.debug(f"Ignoring start for timer {self.id}: {e}")
            return self._result(changed=False)

        self.remaining = duration
        self.elapsed = 0
        self.state = TimerState.RUNNING
        return self._result()

    def stop(self) -> TransitionResult:
        """Pause a running timer, keeping its remaining time."""
        if not self.is_running:
            return self._result(changed=False)
        self.state = TimerState.STOPPED
        self._sync_fields_from_remaining()
        return self._result()

    def reset(self) -> TransitionResult:
        self.remaining = 0
        self.state = TimerState.STOPPED
        self._sync_fields_from_remaining()
        return self._result()

    def tick(self) -> TransitionResult:
        """Advance the countdown by one second.

        The tick that finds one second or less left expires the timer.
        """
        if not self.is_running:
            return self._result(changed=False)
        if self.remaining <= TICK_SECONDS:
            return self.notify_expired()

        self.remaining -= TICK_SECONDS
        self.elapsed += TICK_SECONDS
        return self._result()

    def notify_expired(self) -> TransitionResult:
        """Expire the timer and emit exactly one notification request."""
        self.state = TimerState.NOTIFYING
        request = NotificationRequest(timer_id=self.id, timer_name=self.name)
        self.remaining = 0
        self._sync_fields_from_remaining()
        self.state = TimerState.STOPPED
        logger.info(f"Timer {self.id} expired")
        return self._result(notifications=[request])

    # ----- Edits -----
    def edit_name(self, text: str) -> TransitionResult:
        self.name = text
        return self._result()

    def edit_hours(self, text: str) -> TransitionResult:
        self.hours = text
        return self._result()

    def edit_minutes(self, text: str) -> TransitionResult:
        self.minutes = text
        return self._result()

    def edit_seconds(self, text: str) -> TransitionResult:
        self.seconds = text
        return self._result()

    def apply(self, command: TimerCommand) -> TransitionResult:
        """Apply a per-timer command.

        Args:
            command: Command addressed to this timer

        Returns:
            The transition result

        Raises:
            ValueError: For collection-level commands (add, delete, save)
        """
        handler = {
            CommandType.START: self.start,
            CommandType.STOP: self.stop,
            CommandType.RESET: self.reset,
            CommandType.TICK: self.tick,
            CommandType.NOTIFY_EXPIRED: self.notify_expired,
        }.get(command.type)
        if handler is not None:
            return handler()

        editor = {
            CommandType.EDIT_NAME: self.edit_name,
            CommandType.EDIT_HOURS: self.edit_hours,
            CommandType.EDIT_MINUTES: self.edit_minutes,
            CommandType.EDIT_SECONDS: self.edit_seconds,
        }.get(command.type)
        if editor is not None:
            return editor(command.text)

        raise ValueError(f"Command {command.type.value} is not a timer transition")
