"""JSON persistence for the timer collection.

The state file holds an ordered list of timer records. Durations are
stored as {"secs": int, "nanos": int} and ids as UUID strings. Writes go
to a sibling temp file that replaces the state file, and every write-back
uses a reload-merge-write discipline so fields this version does not
track survive in the stored records.
"""

import json
import logging
import os
import tempfile
from typing import Any, Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from common.timer import DEFAULT_FIELD, Timer, TimerState

logger = logging.getLogger(__name__)

LEGACY_STATE_ALIASES = {"NotificationSound": TimerState.NOTIFYING.value}


class PersistenceError(Exception):
    """Raised when the state file cannot be read, parsed or written."""

    def __init__(self, message: str, path: str = ""):
        self.message = message
        self.path = path
        super().__init__(f"State file '{path}': {message}")


class DurationRecord(BaseModel):
    """Whole seconds plus a sub-second remainder."""

    secs: int = Field(0, ge=0)
    nanos: int = Field(0, ge=0, lt=1_000_000_000)


class TimerRecord(BaseModel):
    """Persisted form of one timer.

    Unknown keys are kept so a merge never drops data written by another
    version of the program.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    time: DurationRecord = Field(default_factory=DurationRecord)
    elapsed: DurationRecord = Field(default_factory=DurationRecord)
    state: TimerState = TimerState.STOPPED
    hours: str = DEFAULT_FIELD
    minutes: str = DEFAULT_FIELD
    seconds: str = DEFAULT_FIELD

    @field_validator("state", mode="before")
    @classmethod
    def _accept_legacy_state(cls, value):
        return LEGACY_STATE_ALIASES.get(value, value)

    @classmethod
    def from_timer(cls, timer: Timer) -> "TimerRecord":
        return cls(
            id=timer.id,
            name=timer.name,
            time=DurationRecord(secs=timer.remaining),
            elapsed=DurationRecord(secs=timer.elapsed),
            state=timer.state,
            hours=timer.hours,
            minutes=timer.minutes,
            seconds=timer.seconds,
        )

    def to_timer(self) -> Timer:
        # Notifying only exists inside a single transition.
        state = self.state
        if state == TimerState.NOTIFYING:
            state = TimerState.STOPPED
        return Timer(
            id=self.id,
            name=self.name,
            remaining=self.time.secs,
            elapsed=self.elapsed.secs,
            state=state,
            hours=self.hours,
            minutes=self.minutes,
            seconds=self.seconds,
        )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class PersistenceGateway:
    """Loads and writes back the timer collection at a fixed path."""

    def __init__(self, state_file: str, create_if_missing: bool = True):
        """Initialize PersistenceGateway.

        Args:
            state_file: Path of the JSON state file
            create_if_missing: Seed one default timer when the file does
                not exist instead of failing
        """
        self.state_file = os.path.abspath(os.path.expanduser(state_file))
        self.create_if_missing = create_if_missing

    def exists(self) -> bool:
        return os.path.exists(self.state_file)

    def load(self) -> list[Timer]:
        """Load the baseline timer collection.

        Returns:
            Timers in stored order

        Raises:
            PersistenceError: If the file is missing (and seeding is
                disabled), unreadable, not valid JSON or not a valid
                timer list
        """
        if not self.exists():
            if not self.create_if_missing:
                raise PersistenceError("file does not exist", self.state_file)
            timers = [Timer()]
            logger.info(f"No state file at {self.state_file}, seeding a default timer")
            self.save_all(timers)
            return timers

        timers = [record.to_timer() for record in self._parse(self._read_raw())]
        logger.info(f"Loaded {len(timers)} timers from {self.state_file}")
        return timers

    def save_all(self, timers: Iterable[Timer]) -> None:
        """Write the whole collection, replacing what is stored."""
        self._write_records([TimerRecord.from_timer(t).to_json() for t in timers])

    def merge_write(self, timers: Iterable[Timer], changed_id: Optional[str]) -> None:
        """Reload the stored collection, merge in one timer and write it back.

        The written collection follows the in-memory order and membership,
        so timers deleted in memory never reappear. The record for
        `changed_id` takes the in-memory values over whatever is stored;
        every other timer keeps its stored record, or its in-memory record
        when it has never been stored. A missing file merges against an
        empty collection.

        Args:
            timers: The current in-memory collection
            changed_id: Id of the timer whose in-memory value wins; may be
                an id no longer in memory (after a delete)

        Raises:
            PersistenceError: If the stored file is corrupt or the write fails
        """
        stored: dict[str, dict] = {}
        if self.exists():
            data = self._read_raw()
            for raw, record in zip(data, self._parse(data)):
                stored[record.id] = raw

        merged = []
        for timer in timers:
            current = TimerRecord.from_timer(timer).to_json()
            previous = stored.get(timer.id)
            if previous is None:
                merged.append(current)
            elif timer.id == changed_id:
                merged.append({**previous, **current})
            else:
                merged.append(previous)
        self._write_records(merged)

    # ----- File access -----
    def _read_raw(self) -> list:
        try:
            with open(self.state_file, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"corrupt JSON: {e}", self.state_file) from e
        except OSError as e:
            raise PersistenceError(f"cannot read: {e}", self.state_file) from e

        if not isinstance(data, list):
            raise PersistenceError("expected a list of timers", self.state_file)
        return data

    def _parse(self, data: list) -> list[TimerRecord]:
        records = []
        seen = set()
        for index, item in enumerate(data):
            try:
                record = TimerRecord.model_validate(item)
            except ValidationError as e:
                raise PersistenceError(
                    f"invalid timer record at index {index}: {e}", self.state_file
                ) from e
            if record.id in seen:
                raise PersistenceError(
                    f"duplicate timer id {record.id}", self.state_file
                )
            seen.add(record.id)
            records.append(record)
        return records

    def _write_records(self, records: list[dict]) -> None:
        directory = os.path.dirname(self.state_file)
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                prefix=".state-", suffix=".json", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.state_file)
            tmp_path = None
        except OSError as e:
            raise PersistenceError(f"cannot write: {e}", self.state_file) from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.debug(f"Wrote {len(records)} timers to {self.state_file}")
