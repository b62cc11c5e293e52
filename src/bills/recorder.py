"""Live session recorder, the timing loop behind `bills session`.

The recorder owns no terminal code. It reads time from a Clock, waits on an
input source for at most one tick, and hands a Frame to a frame renderer on
every pass. Pressing the stop key finalizes a Session; losing the input source
aborts and nothing is recorded.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol, Union

from bills.clock import Clock, SystemClock
from bills.earnings import (
    earned,
    effective_start,
    elapsed_seconds,
    format_elapsed,
    tick_interval,
    validate_hourly_rate,
)
from bills.errors import RecordingAborted
from bills.models import Session, Tag
from bills.tags import TagLog

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Input events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InsertText:
    text: str


@dataclass(frozen=True)
class DeleteChar:
    pass


@dataclass(frozen=True)
class CommitNote:
    pass


@dataclass(frozen=True)
class Stop:
    pass


@dataclass(frozen=True)
class InputLost:
    reason: str = "input closed"


InputEvent = Union[InsertText, DeleteChar, CommitNote, Stop, InputLost]


class InputSource(Protocol):
    def poll(self, timeout: float) -> InputEvent | None:
        """Block up to `timeout` seconds; None means nothing happened."""
        ...


class FrameRenderer(Protocol):
    def draw(self, frame: Frame) -> None: ...


# ---------------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------------


class RecorderState(enum.Enum):
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Frame:
    """What the screen should show right now."""

    started_at: datetime
    hourly_rate: float
    elapsed_seconds: float
    earned: float
    tags: tuple[Tag, ...]
    pending_input: str

    @property
    def clock_text(self) -> str:
        return f"Time: {format_elapsed(self.elapsed_seconds)} Earned: ${self.earned:.2f}"


class SessionRecorder:
    """Times one session from construction until a Stop event."""

    def __init__(
        self,
        hourly_rate: float,
        catch_up_minutes: float = 0.0,
        clock: Clock | None = None,
    ) -> None:
        self.hourly_rate = validate_hourly_rate(hourly_rate)
        self.tick_interval = tick_interval(self.hourly_rate)
        self.clock = clock or SystemClock()
        self.start = effective_start(self.clock.now(), catch_up_minutes)
        self.state = RecorderState.RUNNING
        self.tags = TagLog()
        self.pending_input = ""
        self.session: Session | None = None

    def frame(self) -> Frame:
        elapsed = elapsed_seconds(self.start, self.clock.now())
        return Frame(
            started_at=self.start,
            hourly_rate=self.hourly_rate,
            elapsed_seconds=elapsed,
            earned=earned(self.hourly_rate, elapsed),
            tags=tuple(self.tags.list()),
            pending_input=self.pending_input,
        )

    def handle(self, event: InputEvent) -> Session | None:
        """Apply one input event. Returns the finished Session on Stop."""
        if self.state is RecorderState.STOPPED:
            raise RuntimeError("Recorder already stopped")

        if isinstance(event, InsertText):
            self.pending_input += event.text
        elif isinstance(event, DeleteChar):
            self.pending_input = self.pending_input[:-1]
        elif isinstance(event, CommitNote):
            tag = self.tags.append(self.pending_input, self.clock.now())
            if tag is not None:
                logger.debug("Tagged %s: %s", tag.timestamp.isoformat(), tag.note)
                self.pending_input = ""
        elif isinstance(event, Stop):
            return self._finish()
        elif isinstance(event, InputLost):
            raise RecordingAborted(f"Session discarded: {event.reason}")
        return None

    def run(self, source: InputSource, renderer: FrameRenderer) -> Session:
        """Drive the loop until Stop. One redraw per tick or per input event."""
        logger.debug(
            "Recording at %.2f/h from %s, redrawing every %.3fs",
            self.hourly_rate,
            self.start.isoformat(),
            self.tick_interval,
        )
        while True:
            renderer.draw(self.frame())
            try:
                event = source.poll(self.tick_interval)
            except (OSError, EOFError) as exc:
                raise RecordingAborted(f"Session discarded: {exc}") from exc
            if event is None:
                continue
            session = self.handle(event)
            if session is not None:
                return session

    def _finish(self) -> Session:
        end = max(self.clock.now(), self.start)
        self.session = Session(
            start=self.start,
            end=end,
            hourly_rate=self.hourly_rate,
            tags=tuple(self.tags.list()),
        )
        self.state = RecorderState.STOPPED
        logger.debug(
            "Session stopped after %s with %d tag(s)",
            format_elapsed(self.session.duration_seconds()),
            len(self.tags),
        )
        return self.session
