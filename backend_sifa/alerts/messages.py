"""
Alert title and body for an overdue target.
"""

from __future__ import annotations

from datetime import timedelta

from backend_sifa.database.models import Target

_UNITS = (
    ("year", 365 * 86400),
    ("month", 30 * 86400),
    ("week", 7 * 86400),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def humanize_elapsed(elapsed: timedelta) -> str:
    """Largest whole unit, e.g. "2 hours ago", "1 day ago", "now"."""
    seconds = int(elapsed.total_seconds())
    if seconds <= 0:
        return "now"
    for unit, size in _UNITS:
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'' if count == 1 else 's'} ago"
    return "now"


def alert_title(target: Target) -> str:
    return f"Alert: Target {target.id} is overdue"


def alert_message(target: Target, elapsed: timedelta, mute_url: str | None = None) -> str:
    lines = [
        f"Target {target.id} has not acted since {humanize_elapsed(elapsed)} "
        f"(allowed silence: {target.max_age} seconds)."
    ]
    if mute_url:
        lines.append("")
        lines.append("To mute these alerts until the target acts again, click here:")
        lines.append(mute_url)
    return "\n".join(lines)
