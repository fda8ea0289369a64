import sys
from pathlib import Path
from unittest.mock import AsyncMock

# Ensure the application package root is on sys.path so importing application
# modules (e.g. `infrastructure.resilience`) works during pytest collection.
project_root = str(Path(__file__).resolve().parents[1])
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest

from infrastructure.events import EventChannel


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def channel():
    """Event channel disposed after the test."""
    ch = EventChannel("test")
    yield ch
    ch.dispose()


@pytest.fixture
def recorded_events(channel):
    """Every event published on `channel`, in order."""
    events = []
    channel.add_listener(events.append)
    return events


@pytest.fixture
def fake_sleep():
    """Backoff sleep that returns immediately and records its delays."""
    return AsyncMock(return_value=None)
