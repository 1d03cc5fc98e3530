"""Commands accepted by the timer engine.

Every user action and every countdown step reaches the engine as a
TimerCommand. Commands are either structural (they change what gets
persisted) or transient (countdown progress and state changes that are
never written on their own).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class CommandType(str, Enum):
    """Kinds of command routed through the timer engine."""

    ADD_TIMER = "add_timer"
    DELETE_TIMER = "delete_timer"
    SAVE_TIMER = "save_timer"
    START = "start"
    STOP = "stop"
    RESET = "reset"
    TICK = "tick"
    NOTIFY_EXPIRED = "notify_expired"
    EDIT_NAME = "edit_name"
    EDIT_HOURS = "edit_hours"
    EDIT_MINUTES = "edit_minutes"
    EDIT_SECONDS = "edit_seconds"

    def __repr__(self):
        return f"CommandType.{self.name}"


STRUCTURAL_COMMANDS = frozenset(
    {
        CommandType.ADD_TIMER,
        CommandType.DELETE_TIMER,
        CommandType.SAVE_TIMER,
        CommandType.EDIT_NAME,
    }
)

TEXT_COMMANDS = frozenset(
    {
        CommandType.EDIT_NAME,
        CommandType.EDIT_HOURS,
        CommandType.EDIT_MINUTES,
        CommandType.EDIT_SECONDS,
    }
)


@dataclass(frozen=True)
class TimerCommand:
    """A single command addressed to a timer (or to the collection).

    Attributes:
        type: The command kind
        timer_id: Target timer id; None only for ADD_TIMER
        text: Replacement text for the edit commands
    """

    type: CommandType
    timer_id: Optional[str] = None
    text: Optional[str] = None

    def __post_init__(self):
        if self.type != CommandType.ADD_TIMER and not self.timer_id:
            raise ValueError(f"{self.type.value} requires a timer id")
        if self.type in TEXT_COMMANDS and self.text is None:
            raise ValueError(f"{self.type.value} requires text")

    @property
    def is_structural(self) -> bool:
        """Whether this command changes persisted content."""
        return self.type in STRUCTURAL_COMMANDS

    @classmethod
    def add_timer(cls) -> "TimerCommand":
        return cls(CommandType.ADD_TIMER)

    @classmethod
    def delete_timer(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.DELETE_TIMER, timer_id)

    @classmethod
    def save_timer(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.SAVE_TIMER, timer_id)

    @classmethod
    def start(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.START, timer_id)

    @classmethod
    def stop(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.STOP, timer_id)

    @classmethod
    def reset(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.RESET, timer_id)

    @classmethod
    def tick(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.TICK, timer_id)

    @classmethod
    def notify_expired(cls, timer_id: str) -> "TimerCommand":
        return cls(CommandType.NOTIFY_EXPIRED, timer_id)

    @classmethod
    def edit_name(cls, timer_id: str, text: str) -> "TimerCommand":
        return cls(CommandType.EDIT_NAME, timer_id, text)

    @classmethod
    def edit_hours(cls, timer_id: str, text: str) -> "TimerCommand":
        return cls(CommandType.EDIT_HOURS, timer_id, text)

    @classmethod
    def edit_minutes(cls, timer_id: str, text: str) -> "TimerCommand":
        return cls(CommandType.EDIT_MINUTES, timer_id, text)

    @classmethod
    def edit_seconds(cls, timer_id: str, text: str) -> "TimerCommand":
        return cls(CommandType.EDIT_SECONDS, timer_id, text)
