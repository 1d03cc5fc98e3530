"""Unit tests for PersistenceGateway.

Tests baseline loading, first-run seeding, corrupt-file failures, the
stored record layout and the reload-merge-write discipline.
"""

import json
import os
from unittest.mock import patch

import pytest

from common.persistence import PersistenceError, PersistenceGateway, TimerRecord
from common.timer import Timer, TimerState


def write_raw(path, data):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if isinstance(data, str):
            f.write(data)
        else:
            json.dump(data, f)


class TestPersistenceLoad:
    """Test suite for PersistenceGateway.load."""

    def test_missing_file_seeds_default_timer(self, gateway, state_file, read_state):
        """Test that first run seeds and writes one default timer."""
        timers = gateway.load()

        assert len(timers) == 1
        assert timers[0].state == TimerState.STOPPED
        assert os.path.exists(state_file)
        assert [r["id"] for r in read_state()] == [timers[0].id]

    def test_missing_file_is_fatal_without_seeding(self, state_file):
        """Test the fail-fast policy when seeding is disabled."""
        gateway = PersistenceGateway(state_file, create_if_missing=False)

        with pytest.raises(PersistenceError):
            gateway.load()

        assert not os.path.exists(state_file)

    @pytest.mark.parametrize(
        "content",
        [
            "{not json",
            {"id": "not-a-list"},
            [{"name": "missing id"}],
            [{"id": "a", "time": {"secs": -1, "nanos": 0}}],
            [{"id": "a", "state": "Paused"}],
        ],
    )
    def test_corrupt_file_is_fatal(self, gateway, state_file, content):
        """Test that corrupt or invalid state is never silently replaced."""
        write_raw(state_file, content)

        with pytest.raises(PersistenceError):
            gateway.load()

        with open(state_file, encoding="utf-8") as f:
            raw = f.read()
        assert raw == (content if isinstance(content, str) else json.dumps(content))

    def test_duplicate_ids_are_fatal(self, gateway, state_file):
        """Test that ids must be unique in the stored list."""
        write_raw(state_file, [{"id": "a"}, {"id": "a"}])

        with pytest.raises(PersistenceError):
            gateway.load()

    def test_load_preserves_order_and_fields(self, gateway, state_file):
        """Test decoding of the stored layout."""
        write_raw(
            state_file,
            [
                {
                    "id": "first",
                    "name": "Tea",
                    "time": {"secs": 125, "nanos": 500},
                    "elapsed": {"secs": 10, "nanos": 0},
                    "state": "Running",
                    "hours": "00",
                    "minutes": "02",
                    "seconds": "15",
                },
                {"id": "second"},
            ],
        )

        first, second = gateway.load()

        assert first.id == "first"
        assert first.name == "Tea"
        assert first.remaining == 125
        assert first.elapsed == 10
        assert first.state == TimerState.RUNNING
        assert (first.hours, first.minutes, first.seconds) == ("00", "02", "15")
        assert second.id == "second"
        assert second.state == TimerState.STOPPED

    @pytest.mark.parametrize("stored_state", ["Notifying", "NotificationSound"])
    def test_notifying_is_normalized_to_stopped(self, gateway, state_file, stored_state):
        """Test that a transient notifying state is never restored."""
        write_raw(state_file, [{"id": "a", "state": stored_state}])

        (timer,) = gateway.load()

        assert timer.state == TimerState.STOPPED

    def test_unreadable_file_raises(self, gateway, state_file):
        """Test that I/O errors are wrapped."""
        write_raw(state_file, [])

        with patch("builtins.open", side_effect=PermissionError("denied")):
            with pytest.raises(PersistenceError):
                gateway.load()


class TestPersistenceWrite:
    """Test suite for save_all and merge_write."""

    def test_save_all_layout(self, gateway, read_state):
        """Test the stored record layout."""
        timer = Timer(name="Tea", remaining=90, elapsed=30, hours="00", minutes="01")

        gateway.save_all([timer])

        assert read_state() == [
            {
                "id": timer.id,
                "name": "Tea",
                "time": {"secs": 90, "nanos": 0},
                "elapsed": {"secs": 30, "nanos": 0},
                "state": "Stopped",
                "hours": "00",
                "minutes": "01",
                "seconds": "00",
            }
        ]

    def test_save_all_creates_directories(self, gateway, state_file):
        """Test that parent directories are created on first write."""
        assert not os.path.exists(os.path.dirname(state_file))

        gateway.save_all([])

        assert os.path.exists(state_file)

    def test_save_all_leaves_no_temp_files(self, gateway, state_file):
        """Test that the atomic write cleans up after itself."""
        gateway.save_all([Timer()])

        assert os.listdir(os.path.dirname(state_file)) == ["state.json"]

    def test_write_failure_raises(self, gateway):
        """Test that write errors are wrapped in PersistenceError."""
        with patch("common.persistence.os.makedirs", side_effect=OSError("read-only")):
            with pytest.raises(PersistenceError):
                gateway.save_all([Timer()])

    def test_merge_replaces_only_changed_record(self, gateway, read_state):
        """Test that other stored records keep their stored values."""
        first, second = Timer(name="one"), Timer(name="two")
        gateway.save_all([first, second])

        first.name = "one (unsaved)"
        second.name = "two (saved)"
        gateway.merge_write([first, second], second.id)

        names = [r["name"] for r in read_state()]
        assert names == ["one", "two (saved)"]

    def test_merge_keeps_untracked_fields(self, gateway, state_file, read_state):
        """Test that keys unknown to this version survive a merge."""
        timer = Timer(name="old")
        record = TimerRecord.from_timer(timer).to_json()
        record["color"] = "teal"
        write_raw(state_file, [record])

        timer.name = "new"
        gateway.merge_write([timer], timer.id)

        (stored,) = read_state()
        assert stored["name"] == "new"
        assert stored["color"] == "teal"

    def test_merge_does_not_resurrect_deleted_timers(self, gateway, read_state):
        """Test that records absent from memory are dropped."""
        first, second = Timer(), Timer()
        gateway.save_all([first, second])

        gateway.merge_write([second], first.id)

        assert [r["id"] for r in read_state()] == [second.id]

    def test_merge_appends_new_timers(self, gateway, read_state):
        """Test that never-stored timers are written from memory."""
        first = Timer()
        gateway.save_all([first])
        added = Timer(name="added")

        gateway.merge_write([first, added], added.id)

        assert [r["id"] for r in read_state()] == [first.id, added.id]

    def test_merge_against_missing_file(self, gateway, read_state):
        """Test that a missing file merges against an empty collection."""
        timer = Timer(name="only")

        gateway.merge_write([timer], timer.id)

        assert [r["name"] for r in read_state()] == ["only"]

    def test_merge_against_corrupt_file_raises(self, gateway, state_file):
        """Test that a corrupt file is not overwritten by a merge."""
        write_raw(state_file, "garbage")

        with pytest.raises(PersistenceError):
            gateway.merge_write([Timer()], None)
