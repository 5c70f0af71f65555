"""
Tests for the cron evaluator (alerts.cron): minute granularity, aliases,
timezones, invalid expressions.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
import pytz

from backend_sifa.alerts.cron import is_due, is_valid, truncate_to_minute
from backend_sifa.core.exceptions import InvalidCronExpressionError


def _utc(day: int, hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 10, day, hour, minute, second, tzinfo=timezone.utc)


def test_daily_schedule_matches_whole_minute():
    """"0 9 * * *" is due for every second of 09:00 and not at 09:01."""
    assert is_due("0 9 * * *", _utc(18, 9, 0, 0)) is True
    assert is_due("0 9 * * *", _utc(18, 9, 0, 59)) is True
    assert is_due("0 9 * * *", _utc(18, 9, 1, 0)) is False
    assert is_due("0 9 * * *", _utc(18, 8, 59, 59)) is False


def test_step_and_alias_schedules():
    assert is_due("*/15 * * * *", _utc(18, 12, 30)) is True
    assert is_due("*/15 * * * *", _utc(18, 12, 31)) is False
    assert is_due("@hourly", _utc(18, 13, 0)) is True
    assert is_due("@hourly", _utc(18, 13, 5)) is False
    assert is_due("@daily", _utc(19, 0, 0)) is True


def test_day_of_week_field():
    """2026-10-18 is a Sunday, 2026-10-19 a Monday."""
    assert is_due("0 9 * * 1", _utc(19, 9, 0)) is True
    assert is_due("0 9 * * 1", _utc(18, 9, 0)) is False
    assert is_due("0 9 * * 0", _utc(18, 9, 0)) is True


def test_evaluated_in_timezone_of_now():
    """09:00 in Berlin (CEST, UTC+2 in October) is 07:00 UTC."""
    berlin = pytz.timezone("Europe/Berlin")
    local_nine = berlin.localize(datetime(2026, 10, 19, 9, 0))
    assert is_due("0 9 * * *", local_nine) is True
    assert is_due("0 9 * * *", local_nine.astimezone(timezone.utc)) is False
    assert is_due("0 7 * * *", local_nine.astimezone(timezone.utc)) is True


@pytest.mark.parametrize("expression", ["", "   ", "not a cron", "61 * * * *", "* * * *", "0 25 * * *"])
def test_invalid_expression_raises(expression):
    assert is_valid(expression) is False
    with pytest.raises(InvalidCronExpressionError):
        is_due(expression, _utc(18, 12, 0))


def test_invalid_expression_error_is_value_error():
    with pytest.raises(ValueError, match="Invalid cron expression"):
        is_due("bogus", _utc(18, 12, 0))


@pytest.mark.parametrize("expression", ["* * * * *", "0 9 * * 1-5", "@hourly", "@weekly", " 0 * * * * "])
def test_valid_expressions(expression):
    assert is_valid(expression) is True


def test_truncate_to_minute():
    assert truncate_to_minute(_utc(18, 12, 34, 56)) == _utc(18, 12, 34, 0)


def test_day_of_month_and_day_of_week_must_both_match():
    """"0 9 1 * 1" is due only on a Monday that is the 1st (2026-06-01)."""
    assert is_due("0 9 1 * 1", datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)) is True
    # Monday, not the 1st
    assert is_due("0 9 1 * 1", _utc(19, 9, 0)) is False
    # The 1st, a Thursday
    assert is_due("0 9 1 * 1", _utc(1, 9, 0)) is False
