"""Wall-clock access for the recorder."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Local time, always timezone-aware."""

    def now(self) -> datetime:
        return datetime.now().astimezone()
