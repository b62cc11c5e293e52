"""Shared test fixtures for bills tests."""

from datetime import datetime, timedelta, timezone

import pytest

from bills.models import Session, Tag

TZ = timezone(timedelta(hours=-5))


class FakeClock:
    """A clock that only moves when told to."""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 1, 1, 9, 0, 0, tzinfo=TZ)

    def now(self):
        return self.current

    def advance(self, seconds):
        self.current += timedelta(seconds=seconds)


class ScriptedInput:
    """Input source that replays (seconds_waited, event) steps against a FakeClock.

    Each poll advances the clock by the step's wait (capped at the timeout) and
    returns the step's event, or None when the wait used the full timeout.
    """

    def __init__(self, clock, steps):
        self.clock = clock
        self.steps = list(steps)
        self.timeouts = []

    def poll(self, timeout):
        self.timeouts.append(timeout)
        if not self.steps:
            raise EOFError("script exhausted")
        wait, event = self.steps[0]
        if wait > timeout:
            self.clock.advance(timeout)
            self.steps[0] = (wait - timeout, event)
            return None
        self.clock.advance(wait)
        self.steps.pop(0)
        return event


class RecordingRenderer:
    def __init__(self):
        self.frames = []

    def draw(self, frame):
        self.frames.append(frame)


def make_session(
    start=None,
    hours=1.0,
    hourly_rate=20.0,
    notes=(),
):
    """Helper to build a Session with sensible defaults."""
    if start is None:
        start = datetime(2024, 1, 1, 9, 0, 0, tzinfo=TZ)
    end = start + timedelta(hours=hours)
    tags = tuple(
        Tag(note=note, timestamp=start + timedelta(minutes=i + 1)) for i, note in enumerate(notes)
    )
    return Session(start=start, end=end, hourly_rate=hourly_rate, tags=tags)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def bills_file(tmp_path):
    """Path to a temporary bills JSON store (not created yet)."""
    return tmp_path / "bills.json"
