"""Error types. Every failure the CLI reports to the user derives from BillsError."""

from __future__ import annotations


class BillsError(Exception):
    """Base class for user-visible failures."""


class ConfigError(BillsError):
    """Bad or missing configuration (e.g. a non-positive hourly rate)."""


class StoreError(BillsError):
    """The bills store exists but could not be read, parsed, or written."""


class EmptyPeriodError(BillsError):
    """A period with no sessions was asked for something only sessions can provide."""


class RenderError(BillsError):
    """Compiling a rendered document failed."""


class RecordingAborted(BillsError):
    """The input source went away mid-session; the session is discarded."""
