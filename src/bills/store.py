"""JSON persistence for the billing Log — load a snapshot, save a snapshot."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path

from bills.errors import StoreError
from bills.models import Log, Period, Session, Tag

logger = logging.getLogger(__name__)

# Fractional seconds longer than microseconds (e.g. nanosecond timestamps)
_LONG_FRACTION = re.compile(r"(\.\d{6})\d+")


def load_log(path: Path) -> Log:
    """Read the Log at `path`. A missing file is a fresh Log; anything else broken raises."""
    path = Path(path)
    try:
        with open(path) as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("No bills found at %s; starting a new log.", path)
        return Log()
    except json.JSONDecodeError as exc:
        raise StoreError(f"{path} is not valid JSON: {exc}") from exc
    except OSError as exc:
        raise StoreError(f"Could not read {path}: {exc}") from exc

    try:
        log = log_from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise StoreError(f"{path} is not a bills file: {exc!r}") from exc

    log.current_period()
    logger.debug("Loaded %d period(s) from %s", len(log.periods), path)
    return log


def save_log(log: Log, path: Path) -> None:
    """Write `log` to `path` atomically (temp file + rename)."""
    path = Path(path)
    contents = json.dumps(log_to_dict(log), indent=2)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(contents)
                f.write("\n")
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise StoreError(f"Could not write {path}: {exc}") from exc
    logger.debug("Saved %d period(s) to %s", len(log.periods), path)


# ---------------------------------------------------------------------------
# Snapshot format
# ---------------------------------------------------------------------------


def log_to_dict(log: Log) -> dict:
    return {
        "periods": [
            {"sessions": [_session_to_dict(s) for s in period.sessions]}
            for period in log.periods
        ]
    }


def log_from_dict(data: dict) -> Log:
    if not isinstance(data, dict):
        raise TypeError(f"expected an object, got {type(data).__name__}")
    periods = [
        Period(sessions=[_session_from_dict(s) for s in period["sessions"]])
        for period in data["periods"]
    ]
    return Log(periods=periods)


def _session_to_dict(session: Session) -> dict:
    return {
        "start": session.start.isoformat(),
        "end": session.end.isoformat(),
        "hourly_rate": session.hourly_rate,
        "tags": [
            {"note": tag.note, "time": tag.timestamp.isoformat()} for tag in session.tags
        ],
    }


def _session_from_dict(data: dict) -> Session:
    rate = data["hourly_rate"]
    if isinstance(rate, bool) or not isinstance(rate, (int, float)):
        raise TypeError(f"hourly_rate must be a number, got {rate!r}")
    # Session and Tag reject non-positive rates and blank or non-string notes
    return Session(
        start=_parse_timestamp(data["start"]),
        end=_parse_timestamp(data["end"]),
        hourly_rate=float(rate),
        tags=tuple(
            Tag(note=tag["note"], timestamp=_parse_timestamp(tag["time"]))
            for tag in data.get("tags", [])
        ),
    )


def _parse_timestamp(value: str) -> datetime:
    """Parse an RFC 3339 timestamp; naive values are read as local time."""
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {value!r}")
    text = _LONG_FRACTION.sub(r"\1", value.strip())
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return dt
