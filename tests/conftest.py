"""Global pytest configuration and fixtures for the test suite."""

import json
from unittest.mock import MagicMock

import pytest

from common.persistence import PersistenceGateway
from common.timer import Timer
from common.timer_store import TimerStore
from engine.notifier import NotificationDispatcher


@pytest.fixture
def state_file(tmp_path):
    """Path of a state file inside a not-yet-created directory."""
    return str(tmp_path / "state" / "oxyclock" / "state.json")


@pytest.fixture
def gateway(state_file):
    """PersistenceGateway writing under tmp_path."""
    return PersistenceGateway(state_file)


@pytest.fixture
def store(gateway):
    """Empty TimerStore backed by a tmp_path gateway."""
    return TimerStore(gateway=gateway)


@pytest.fixture
def mock_notifier():
    """Notifier mock that records dispatched requests."""
    return MagicMock(spec=NotificationDispatcher)


@pytest.fixture
def read_state(state_file):
    """Return a callable that reads the raw stored records."""

    def _read():
        with open(state_file, encoding="utf-8") as f:
            return json.load(f)

    return _read


@pytest.fixture
def make_timer():
    """Factory for stopped timers with the given edit buffers."""

    def _make(hours="00", minutes="00", seconds="00", name=""):
        return Timer(name=name, hours=hours, minutes=minutes, seconds=seconds)

    return _make
