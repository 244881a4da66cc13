"""
Shared fixtures: fake reading source, manual clock, SQLite-backed stores
"""

import pytest

from alerts import Alert, AlertSeverity, Direction, EventBus, ToastManager
from sensors import Reading, ReadingSourceError
from storage import EmailSettingsStore, ReadStateStore, SQLiteStorage, ThresholdConfigStore


def reading(device_id, payload, received_at="2024-06-01T12:00:00+00:00", id=None):
    return Reading(id=id, device_id=device_id, payload=payload, received_at=received_at)


def make_alert(metric="Temperature", received_at="T1", direction=Direction.ABOVE, value=1.0):
    return Alert(
        id=Alert.make_id(metric, direction, received_at),
        metric=metric,
        direction=direction,
        message="msg",
        severity=AlertSeverity.WARNING,
        value=value,
        received_at=received_at,
    )


class FakeSource:
    """Stands in for ReadingSource; returns canned readings or raises"""

    configured = True

    def __init__(self, readings=None):
        self.readings = list(readings or [])
        self.error = None
        self.calls = []

    def fetch_latest(self, limit=150):
        self.calls.append(("latest", limit))
        if self.error:
            raise ReadingSourceError(self.error)
        return list(self.readings)

    def fetch_window(self, time_range, start=None, end=None, limit=2000):
        self.calls.append(("window", time_range, start, end, limit))
        if self.error:
            raise ReadingSourceError(self.error)
        return list(self.readings)


class ManualClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, ms):
        self.now += ms


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def storage(tmp_path):
    return SQLiteStorage(str(tmp_path / "garden.db"))


@pytest.fixture
def config_store(storage, bus):
    return ThresholdConfigStore(storage, bus)


@pytest.fixture
def read_store(storage, bus):
    return ReadStateStore(storage, bus)


@pytest.fixture
def email_store(storage, bus):
    return EmailSettingsStore(storage, bus)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def toasts(clock):
    return ToastManager(duration_ms=5000, max_toasts=5, clock=clock)


@pytest.fixture
def source():
    return FakeSource()
