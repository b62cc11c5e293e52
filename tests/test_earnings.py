"""Tests for bills.earnings module."""

from datetime import datetime, timedelta, timezone

import pytest

from bills.earnings import (
    earned,
    effective_start,
    elapsed_seconds,
    format_elapsed,
    tick_interval,
    validate_hourly_rate,
)
from bills.errors import ConfigError

START = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "rate, seconds",
    [(20.0, 28_800), (36.0, 1), (125.5, 3_599), (0.01, 86_400), (75.0, 0)],
)
def test_earned_matches_rate_per_second(rate, seconds):
    assert earned(rate, seconds) == pytest.approx(rate / 3600 * seconds)


def test_earned_full_day():
    """8 hours at $20/h is exactly $160."""
    assert earned(20.0, 8 * 3600) == 160.0


def test_elapsed_seconds():
    assert elapsed_seconds(START, START + timedelta(minutes=90)) == 5400.0


def test_elapsed_seconds_never_negative():
    """A clock that reads earlier than start yields zero, not negative time."""
    assert elapsed_seconds(START, START - timedelta(seconds=5)) == 0.0


def test_effective_start_default_is_start():
    assert effective_start(START) == START


def test_effective_start_catch_up():
    """45 minutes of catch-up moves the start back 45 minutes."""
    assert effective_start(START, 45) == START - timedelta(minutes=45)


def test_catch_up_earns_as_if_started_earlier():
    now = START + timedelta(hours=1)
    backdated = effective_start(START, 30)
    assert earned(40.0, elapsed_seconds(backdated, now)) == pytest.approx(
        earned(40.0, elapsed_seconds(START - timedelta(minutes=30), now))
    )
    assert earned(40.0, elapsed_seconds(backdated, now)) == pytest.approx(60.0)


def test_negative_catch_up_clamped_to_zero(caplog):
    with caplog.at_level("WARNING"):
        assert effective_start(START, -10) == START
    assert "negative catch-up" in caplog.text


def test_tick_interval_is_one_cent():
    """$36/h earns a cent per second, so the display ticks once a second."""
    assert tick_interval(36.0) == 1.0
    assert tick_interval(360.0) == pytest.approx(0.1)
    assert tick_interval(18.0) == 2.0


@pytest.mark.parametrize("rate", [0, -5, -0.01, float("nan"), float("inf")])
def test_tick_interval_rejects_bad_rates(rate):
    with pytest.raises(ConfigError):
        tick_interval(rate)


def test_validate_hourly_rate_accepts_strings():
    assert validate_hourly_rate("42.5") == 42.5


@pytest.mark.parametrize("rate", [None, "abc", True, [20]])
def test_validate_hourly_rate_rejects_non_numbers(rate):
    with pytest.raises(ConfigError):
        validate_hourly_rate(rate)


def test_format_elapsed():
    assert format_elapsed(0) == "00:00:00"
    assert format_elapsed(3661.9) == "01:01:01"
    assert format_elapsed(100 * 3600) == "100:00:00"
