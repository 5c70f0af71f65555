"""
Domain models for targets and their mutable state.

Target definitions (immutable during a cycle) and per-target state
(last acted, last alerted, muted). No ORM coupling so backends stay swappable.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class Target:
    """Monitored target: must report liveness at least every max_age seconds."""

    id: str
    max_age: int
    """Maximum allowed silence in seconds."""
    alert_schedule: str
    """Cron expression governing repeat alerts while overdue."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "maxAge": self.max_age,
            "alertSchedule": self.alert_schedule,
        }


@dataclass(frozen=True)
class TargetState:
    """
    Mutable state of one target, as read from the store.

    None means absent: never reported (last_acted) or no alert outstanding
    (last_alerted). A zero timestamp is never used as a marker.
    """

    target_id: str
    last_acted: datetime | None = None
    last_alerted: datetime | None = None
    muted: bool = False

    @property
    def alerting(self) -> bool:
        """True while an alert is outstanding."""
        return self.last_alerted is not None

    def with_liveness(self, now: datetime) -> TargetState:
        """State after a liveness report: acted now, alert and mute cleared."""
        return replace(self, last_acted=now, last_alerted=None, muted=False)


def to_timestamp(value: datetime | None) -> float | None:
    """Datetime to unix seconds for storage; None stays None."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.timestamp()


def from_timestamp(value: float | None) -> datetime | None:
    """Unix seconds from storage to an aware UTC datetime; NULL stays None."""
    if value is None:
        return None
    return datetime.fromtimestamp(float(value), tz=timezone.utc)
