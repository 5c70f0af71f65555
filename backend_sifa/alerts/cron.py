"""
Cron evaluator: is a schedule expression due at a given instant?

Minute granularity, five fields (minute, hour, day-of-month, month,
day-of-week) plus the usual @hourly / @daily aliases. Every field must
match, day-of-month and day-of-week included ("0 9 1 * 1" is due only on a
Monday that is the 1st). Evaluated in the timezone carried by `now`. Pure
functions; no state.
"""

from __future__ import annotations

from datetime import datetime

from croniter import croniter  # type: ignore[import-untyped]

from backend_sifa.core.exceptions import InvalidCronExpressionError


def truncate_to_minute(now: datetime) -> datetime:
    return now.replace(second=0, microsecond=0)


def is_valid(expression: str) -> bool:
    """True if croniter accepts the expression."""
    if not isinstance(expression, str) or not expression.strip():
        return False
    return bool(croniter.is_valid(expression.strip()))


def is_due(expression: str, now: datetime) -> bool:
    """
    True iff now, truncated to the minute, matches every field of expression.

    Raises InvalidCronExpressionError when the expression cannot be parsed.
    """
    if not is_valid(expression):
        raise InvalidCronExpressionError(str(expression))
    try:
        return bool(croniter.match(expression.strip(), truncate_to_minute(now), day_or=False))
    except (ValueError, KeyError, TypeError) as e:
        raise InvalidCronExpressionError(str(expression), str(e)) from e
