"""Ordered collection of timers with CRUD operations and write-back.

Insertion order is display order. Structural mutations (add, delete,
name edits, explicit saves) are written back through the persistence
gateway; countdown ticks and other transient state changes are not.
A failed write-back is logged and the in-memory mutation is kept.
"""

import logging
from typing import Iterable, Iterator, Optional

from common.commands import TimerCommand
from common.persistence import PersistenceError, PersistenceGateway
from common.timer import Timer, TransitionResult

logger = logging.getLogger(__name__)


class TimerNotFoundError(KeyError):
    """Raised when a command addresses an id the store does not hold."""

    def __init__(self, timer_id: str):
        self.timer_id = timer_id
        super().__init__(timer_id)

    def __str__(self):
        return f"Timer not found: {self.timer_id}"


class TimerStore:
    """Owns the timer collection and is the unit of persistence."""

    def __init__(
        self,
        gateway: Optional[PersistenceGateway] = None,
        timers: Iterable[Timer] = (),
    ):
        """Initialize TimerStore.

        Args:
            gateway: Where write-backs go; None keeps the store in memory only
            timers: Initial timers in display order
        """
        self.gateway = gateway
        self._timers: dict[str, Timer] = {}
        for timer in timers:
            self._timers[timer.id] = timer

    @classmethod
    def load(cls, gateway: PersistenceGateway) -> "TimerStore":
        """Create a store from the gateway's baseline state.

        Raises:
            PersistenceError: If the baseline cannot be loaded
        """
        return cls(gateway=gateway, timers=gateway.load())

    def __len__(self) -> int:
        return len(self._timers)

    def __iter__(self) -> Iterator[Timer]:
        return iter(list(self._timers.values()))

    def __contains__(self, timer_id: str) -> bool:
        return timer_id in self._timers

    def ids(self) -> list[str]:
        return list(self._timers)

    def timers(self) -> list[Timer]:
        return list(self._timers.values())

    def get(self, timer_id: str) -> Timer:
        timer = self._timers.get(timer_id)
        if timer is None:
            logger.error(f"No timer with id {timer_id}")
            raise TimerNotFoundError(timer_id)
        return timer

    # ----- CRUD -----
    def add(self) -> str:
        """Append a default timer and write back.

        Returns:
            The new timer's id
        """
        timer = Timer()
        self._timers[timer.id] = timer
        logger.info(f"Added timer {timer.id}")
        self._write_back(timer.id)
        return timer.id

    def delete(self, timer_id: str) -> None:
        """Remove a timer and write back.

        Raises:
            TimerNotFoundError: If no timer has this id
        """
        self.get(timer_id)
        del self._timers[timer_id]
        logger.info(f"Deleted timer {timer_id}")
        self._write_back(timer_id)

    def mutate(self, timer_id: str, command: TimerCommand) -> TransitionResult:
        """Apply a state-machine command to one timer.

        Raises:
            TimerNotFoundError: If no timer has this id
        """
        result = self.get(timer_id).apply(command)
        if command.is_structural and result.changed:
            self._write_back(timer_id)
        return result

    def save_one(self, timer_id: str) -> bool:
        """Write back one timer through reload-merge-write.

        Returns:
            True if the write succeeded

        Raises:
            TimerNotFoundError: If no timer has this id
        """
        self.get(timer_id)
        return self._write_back(timer_id)

    def _write_back(self, timer_id: str) -> bool:
        if self.gateway is None:
            return True
        try:
            self.gateway.merge_write(self.timers(), timer_id)
        except PersistenceError as e:
            logger.error(f"Failed to save timers after change to {timer_id}: {e}")
            return False
        return True
