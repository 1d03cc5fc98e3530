"""Unit tests for TimerStore CRUD and write-back behaviour."""

import sys
from unittest.mock import MagicMock

import pytest

from common.commands import TimerCommand
from common.persistence import PersistenceError, PersistenceGateway
from common.timer import Timer, TimerState
from common.timer_store import TimerNotFoundError, TimerStore


class TestTimerStoreCrud:
    """Test suite for add, delete and lookup."""

    def test_add_appends_in_display_order(self, store):
        """Test that new timers go to the end."""
        first = store.add()
        second = store.add()

        assert store.ids() == [first, second]
        assert len(store) == 2
        assert first in store

    def test_add_writes_back(self, store, read_state):
        """Test that add persists the collection."""
        timer_id = store.add()

        assert [r["id"] for r in read_state()] == [timer_id]

    def test_delete_keeps_relative_order(self, store):
        """Test that deleting keeps the other timers in order."""
        ids = [store.add() for _ in range(3)]

        store.delete(ids[1])

        assert store.ids() == [ids[0], ids[2]]

    def test_delete_unknown_id_raises(self, store):
        """Test that deleting an unknown id is a NotFound error."""
        with pytest.raises(TimerNotFoundError) as exc_info:
            store.delete("missing")

        assert exc_info.value.timer_id == "missing"
        assert "missing" in str(exc_info.value)

    def test_mutate_unknown_id_raises(self, store):
        """Test that mutating an unknown id is a NotFound error."""
        with pytest.raises(TimerNotFoundError):
            store.mutate("missing", TimerCommand.start("missing"))

    def test_not_found_is_key_error(self, store):
        """Test that TimerNotFoundError can be handled as KeyError."""
        with pytest.raises(KeyError):
            store.get("missing")

    @pytest.mark.skipif(
        not getattr(sys, "get_int_max_str_digits", lambda: 0)(),
        reason="interpreter has no integer string conversion limit",
    )
    def test_start_with_oversized_field_is_silent(self, store):
        """Test that Start through the store swallows an unconvertible field."""
        timer_id = store.add()
        store.mutate(
            timer_id,
            TimerCommand.edit_hours(timer_id, "9" * (sys.get_int_max_str_digits() + 1)),
        )

        result = store.mutate(timer_id, TimerCommand.start(timer_id))

        assert result.changed is False
        assert store.get(timer_id).state == TimerState.STOPPED


class TestTimerStoreWriteBack:
    """Test suite for which mutations reach the gateway."""

    @pytest.fixture
    def mock_gateway(self):
        return MagicMock(spec=PersistenceGateway)

    @pytest.fixture
    def timer(self):
        return Timer(seconds="05")

    @pytest.fixture
    def mocked_store(self, mock_gateway, timer):
        return TimerStore(gateway=mock_gateway, timers=[timer])

    def test_name_edit_writes_back(self, mocked_store, mock_gateway, timer):
        """Test that renames are structural."""
        mocked_store.mutate(timer.id, TimerCommand.edit_name(timer.id, "Eggs"))

        mock_gateway.merge_write.assert_called_once_with([timer], timer.id)

    @pytest.mark.parametrize(
        "factory",
        [
            TimerCommand.start,
            TimerCommand.stop,
            TimerCommand.reset,
            TimerCommand.tick,
            TimerCommand.notify_expired,
        ],
    )
    def test_transient_commands_do_not_write(
        self, mocked_store, mock_gateway, timer, factory
    ):
        """Test that countdown progress is never written on its own."""
        mocked_store.mutate(timer.id, factory(timer.id))

        mock_gateway.merge_write.assert_not_called()

    def test_buffer_edits_do_not_write(self, mocked_store, mock_gateway, timer):
        """Test that duration buffer edits are not structural."""
        mocked_store.mutate(timer.id, TimerCommand.edit_hours(timer.id, "02"))

        mock_gateway.merge_write.assert_not_called()

    def test_delete_writes_back_with_deleted_id(self, mocked_store, mock_gateway, timer):
        """Test that delete writes the remaining collection."""
        mocked_store.delete(timer.id)

        mock_gateway.merge_write.assert_called_once_with([], timer.id)

    def test_failed_write_back_keeps_mutation(self, mocked_store, mock_gateway, timer):
        """Test that a save failure is swallowed and memory is kept."""
        mock_gateway.merge_write.side_effect = PersistenceError("disk full", "/x")

        mocked_store.mutate(timer.id, TimerCommand.edit_name(timer.id, "Eggs"))
        new_id = mocked_store.add()

        assert timer.name == "Eggs"
        assert new_id in mocked_store

    def test_save_one_reports_outcome(self, mocked_store, mock_gateway, timer):
        """Test that save_one returns whether the write succeeded."""
        assert mocked_store.save_one(timer.id) is True

        mock_gateway.merge_write.side_effect = PersistenceError("denied", "/x")
        assert mocked_store.save_one(timer.id) is False

    def test_save_one_unknown_id_raises(self, mocked_store, mock_gateway):
        """Test that save_one validates the id before writing."""
        with pytest.raises(TimerNotFoundError):
            mocked_store.save_one("missing")

        mock_gateway.merge_write.assert_not_called()

    def test_in_memory_store_without_gateway(self, timer):
        """Test that a store without a gateway still performs CRUD."""
        store = TimerStore(timers=[timer])

        assert store.save_one(timer.id) is True
        store.delete(timer.id)
        assert len(store) == 0


class TestTimerStorePersistenceScenarios:
    """Scenarios combining the store with a real gateway."""

    def test_load_round_trips_store(self, gateway):
        """Test that a reloaded store sees the saved timers in order."""
        store = TimerStore.load(gateway)
        seeded = store.ids()[0]
        added = store.add()
        store.mutate(added, TimerCommand.edit_name(added, "Bread"))

        reloaded = TimerStore.load(gateway)

        assert reloaded.ids() == [seeded, added]
        assert reloaded.get(added).name == "Bread"

    def test_delete_then_save_one_does_not_resurrect(self, store, read_state):
        """Test deleting the first of two timers, then saving the second."""
        first = store.add()
        second = store.add()

        store.delete(first)
        assert store.ids() == [second]

        store.get(second).edit_name("kept")
        assert store.save_one(second) is True

        records = read_state()
        assert [r["id"] for r in records] == [second]
        assert records[0]["name"] == "kept"

    def test_save_one_captures_paused_remaining(self, store, gateway):
        """Test that an explicit save persists the paused countdown."""
        timer_id = store.add()
        store.mutate(timer_id, TimerCommand.edit_seconds(timer_id, "30"))
        store.mutate(timer_id, TimerCommand.start(timer_id))
        store.mutate(timer_id, TimerCommand.tick(timer_id))
        store.mutate(timer_id, TimerCommand.stop(timer_id))

        store.save_one(timer_id)

        (timer,) = gateway.load()
        assert timer.remaining == 29
        assert timer.state == TimerState.STOPPED
        assert timer.seconds == "29"
