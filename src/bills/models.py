"""Shared data models — the billing history that the recorder fills and the renderer reads.

A Log holds Periods, a Period holds Sessions, a Session holds Tags.
New sessions always land in the last Period of the Log.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from bills.earnings import SECONDS_PER_HOUR, earned, elapsed_seconds
from bills.errors import EmptyPeriodError

EMPTY_PERIOD_MESSAGE = "Period must have at least one session"


def round_half_up(value: float, places: int = 1) -> float:
    """Round like an invoice does: 0.25 -> 0.3, not banker's 0.2."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


@dataclass(frozen=True)
class Tag:
    """A note taken during a session."""

    note: str
    timestamp: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.note, str):
            raise TypeError(f"Tag note must be a string, got {self.note!r}")
        note = self.note.strip()
        if not note:
            raise ValueError("Tag note must not be blank")
        object.__setattr__(self, "note", note)


@dataclass(frozen=True)
class Session:
    """One finished stretch of billed work. Immutable once recorded."""

    start: datetime
    end: datetime
    hourly_rate: float
    tags: tuple[Tag, ...] = ()

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Session ends ({self.end}) before it starts ({self.start})")
        if isinstance(self.hourly_rate, bool) or not isinstance(self.hourly_rate, (int, float)):
            raise TypeError(f"Hourly rate must be a number, got {self.hourly_rate!r}")
        if not math.isfinite(self.hourly_rate) or self.hourly_rate <= 0:
            raise ValueError(f"Hourly rate must be greater than zero, got {self.hourly_rate!r}")
        object.__setattr__(self, "tags", tuple(self.tags))

    def duration_seconds(self) -> float:
        return elapsed_seconds(self.start, self.end)

    def hours(self) -> float:
        return self.duration_seconds() / SECONDS_PER_HOUR

    def earned(self) -> float:
        return earned(self.hourly_rate, self.duration_seconds())

    def to_log_entry(self) -> LogEntry:
        return LogEntry(
            date=self.start.date(),
            time_began=self.start.time(),
            time_completed=self.end.time(),
            work_activity=", ".join(tag.note for tag in self.tags),
            hours=round_half_up(self.hours()),
        )


@dataclass
class LogEntry:
    """One invoice row, derived from a Session."""

    date: date
    time_began: time
    time_completed: time
    work_activity: str
    hours: float  # rounded to one decimal


@dataclass
class Period:
    """A billing cycle. Everything in it goes onto one invoice."""

    sessions: list[Session] = field(default_factory=list)

    def earned(self) -> float:
        return sum(session.earned() for session in self.sessions)

    def hours(self) -> float:
        return sum(session.hours() for session in self.sessions)

    def require_sessions(self) -> None:
        if not self.sessions:
            raise EmptyPeriodError(EMPTY_PERIOD_MESSAGE)

    def start_date(self) -> date:
        self.require_sessions()
        return self.sessions[0].start.date()

    def end_date(self) -> date:
        self.require_sessions()
        return self.sessions[-1].end.date()

    def render_rows(self) -> list[LogEntry]:
        self.require_sessions()
        return [session.to_log_entry() for session in self.sessions]


@dataclass
class Log:
    """The whole billing history. Always has at least one Period."""

    periods: list[Period] = field(default_factory=lambda: [Period()])

    def current_period(self) -> Period:
        if not self.periods:
            self.periods.append(Period())
        return self.periods[-1]

    def append_session(self, session: Session) -> None:
        # No ordering or overlap check against earlier sessions.
        self.current_period().sessions.append(session)

    def start_new_period(self) -> Period:
        period = Period()
        self.periods.append(period)
        return period

    def period(self, number: int) -> Period:
        """Return the period with 1-based `number`."""
        if not 1 <= number <= len(self.periods):
            raise IndexError(f"No period {number}; there are {len(self.periods)}.")
        return self.periods[number - 1]

    def earned(self) -> float:
        return sum(period.earned() for period in self.periods)

    def hours(self) -> float:
        return sum(period.hours() for period in self.periods)
