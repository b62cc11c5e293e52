"""Earnings math for a running session: elapsed time and money earned so far."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta

from bills.errors import ConfigError

logger = logging.getLogger(__name__)

SECONDS_PER_HOUR = 3600

# One cent per tick: 0.01 dollars * 3600 s/h
CENT_TICK_NUMERATOR = 36.0


def validate_hourly_rate(hourly_rate: object) -> float:
    """Return the rate as a float, or raise ConfigError if it is unusable."""
    if hourly_rate is None:
        raise ConfigError(
            "No hourly rate given. Pass HOURLY_RATE, set the HOURLY_RATE "
            "environment variable, or run 'bills configure hourly_rate <rate>'."
        )
    if isinstance(hourly_rate, bool):
        raise ConfigError(f"Hourly rate must be a number, got {hourly_rate!r}.")
    try:
        rate = float(hourly_rate)
    except (TypeError, ValueError):
        raise ConfigError(f"Hourly rate must be a number, got {hourly_rate!r}.") from None
    if not math.isfinite(rate) or rate <= 0:
        raise ConfigError(f"Hourly rate must be greater than zero, got {hourly_rate!r}.")
    return rate


def tick_interval(hourly_rate: float) -> float:
    """Seconds between display updates, so each tick is worth about one cent.

    $36/h ticks once a second; $3600/h ticks every 10 ms.
    """
    return CENT_TICK_NUMERATOR / validate_hourly_rate(hourly_rate)


def effective_start(start: datetime, catch_up_minutes: float = 0.0) -> datetime:
    """Shift the start back by catch_up_minutes of already-worked time.

    Negative catch-up is clamped to zero.
    """
    if catch_up_minutes < 0:
        logger.warning("Ignoring negative catch-up of %s minutes.", catch_up_minutes)
        catch_up_minutes = 0.0
    return start - timedelta(minutes=catch_up_minutes)


def elapsed_seconds(start: datetime, now: datetime) -> float:
    return max(0.0, (now - start).total_seconds())


def earned(hourly_rate: float, elapsed: float) -> float:
    """Money accrued over `elapsed` seconds at `hourly_rate` per hour."""
    return hourly_rate * elapsed / SECONDS_PER_HOUR


def format_elapsed(seconds: float) -> str:
    total_seconds = int(seconds)
    hours, remainder = divmod(total_seconds, SECONDS_PER_HOUR)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
