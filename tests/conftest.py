"""Pytest configuration and shared fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from trackboard.audit import AuditLog
from trackboard.seed import default_seed
from trackboard.store import EntityStore
from trackboard.tracker import Tracker


class StepClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 15, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now += timedelta(seconds=1)
        return current


@pytest.fixture(autouse=True)
def _clear_actor_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's TBOARD_ACTOR out of the tests."""
    monkeypatch.delenv("TBOARD_ACTOR", raising=False)


@pytest.fixture
def clock() -> StepClock:
    """Clock shared by a store and its audit log."""
    return StepClock()


@pytest.fixture
def store(clock: StepClock) -> EntityStore:
    """Create an empty store."""
    return EntityStore(clock=clock)


@pytest.fixture
def seeded_store(clock: StepClock) -> EntityStore:
    """Create a store loaded with the sample data."""
    return EntityStore(default_seed(), clock=clock)


@pytest.fixture
def tracker(clock: StepClock) -> Tracker:
    """Create a tracker over an empty store."""
    return Tracker(EntityStore(clock=clock), AuditLog(clock=clock))


@pytest.fixture
def seeded_tracker(clock: StepClock) -> Tracker:
    """Create a tracker over the sample data."""
    return Tracker(EntityStore(default_seed(), clock=clock), AuditLog(clock=clock))
