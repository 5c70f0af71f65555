"""
Alert engine: per-target state machine deciding fire / suppress / clear.

Pure decision function: given a target, its current state and the evaluation
instant, return the action and the state change to apply. No I/O; the
scheduler applies the delta inside a store transaction and dispatches the
notification after commit.

Rules, in order:
1. never reported (no last_acted) → SKIP, nothing to do yet;
2. within max_age → CLEAR_ALERT if an alert is outstanding, else NONE;
3. overdue and muted → NONE (mute is sticky until the next liveness report);
4. overdue, no alert outstanding → FIRE_FIRST_ALERT, regardless of schedule;
5. overdue, alert outstanding → FIRE_SCHEDULED_ALERT only when the alert
   schedule is due now and at least MIN_REALERT_INTERVAL has passed since
   the last alert; otherwise NONE.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

from backend_sifa.alerts.cron import is_due
from backend_sifa.core.exceptions import InvalidCronExpressionError
from backend_sifa.database.models import Target, TargetState
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

# Fixed floor between two alerts for the same target, whatever the schedule
# says; a schedule like "* 9 * * *" matches sixty minutes in a row.
MIN_REALERT_INTERVAL = timedelta(hours=1)


class Action(str, Enum):
    NONE = "none"
    SKIP = "skip"
    FIRE_FIRST_ALERT = "fire_first_alert"
    FIRE_SCHEDULED_ALERT = "fire_scheduled_alert"
    CLEAR_ALERT = "clear_alert"

    @property
    def fires(self) -> bool:
        return self in (Action.FIRE_FIRST_ALERT, Action.FIRE_SCHEDULED_ALERT)


# Reasons (logged with every decision)
REASON_NOT_OBSERVED = "not_yet_observed"
REASON_HEALTHY = "healthy"
REASON_RECOVERED = "recovered"
REASON_MUTED = "overdue_muted"
REASON_FIRST_ALERT = "overdue_first_alert"
REASON_SCHEDULE_DUE = "overdue_schedule_due"
REASON_SCHEDULE_NOT_DUE = "overdue_schedule_not_due"
REASON_RECENTLY_ALERTED = "overdue_recently_alerted"
REASON_INVALID_SCHEDULE = "invalid_schedule"


@dataclass(frozen=True)
class StateDelta:
    """
    Change to the outstanding-alert bookkeeping.

    set_last_alerted: record an alert sent at this instant.
    clear_last_alerted: drop the outstanding alert.
    Both unset means no change.
    """

    set_last_alerted: datetime | None = None
    clear_last_alerted: bool = False

    @property
    def is_empty(self) -> bool:
        return self.set_last_alerted is None and not self.clear_last_alerted

    def apply(self, state: TargetState) -> TargetState:
        if self.set_last_alerted is not None:
            return replace(state, last_alerted=self.set_last_alerted)
        if self.clear_last_alerted:
            return replace(state, last_alerted=None)
        return state


NO_CHANGE = StateDelta()


@dataclass(frozen=True)
class Decision:
    """Result of evaluating one target at one instant."""

    action: Action
    delta: StateDelta
    reason: str
    elapsed: timedelta | None = None
    """now - last_acted; None when the target never reported."""
    since_last_alert: timedelta | None = None


def evaluate(target: Target, state: TargetState, now: datetime) -> Decision:
    """
    Decide what to do for target at now. Never raises for a bad alert
    schedule: that target simply gets NONE for this cycle.
    """
    if state.last_acted is None:
        return Decision(Action.SKIP, NO_CHANGE, REASON_NOT_OBSERVED)

    elapsed = now - state.last_acted
    if elapsed <= timedelta(seconds=target.max_age):
        if state.last_alerted is not None:
            return Decision(
                Action.CLEAR_ALERT,
                StateDelta(clear_last_alerted=True),
                REASON_RECOVERED,
                elapsed=elapsed,
            )
        return Decision(Action.NONE, NO_CHANGE, REASON_HEALTHY, elapsed=elapsed)

    if state.muted:
        return Decision(Action.NONE, NO_CHANGE, REASON_MUTED, elapsed=elapsed)

    if state.last_alerted is None:
        return Decision(
            Action.FIRE_FIRST_ALERT,
            StateDelta(set_last_alerted=now),
            REASON_FIRST_ALERT,
            elapsed=elapsed,
        )

    since_last_alert = now - state.last_alerted
    try:
        due = is_due(target.alert_schedule, now)
    except InvalidCronExpressionError as e:
        logger.warning(
            "alert_schedule_invalid",
            target_id=target.id,
            alert_schedule=target.alert_schedule,
            error=str(e),
        )
        return Decision(
            Action.NONE,
            NO_CHANGE,
            REASON_INVALID_SCHEDULE,
            elapsed=elapsed,
            since_last_alert=since_last_alert,
        )

    if not due:
        return Decision(
            Action.NONE,
            NO_CHANGE,
            REASON_SCHEDULE_NOT_DUE,
            elapsed=elapsed,
            since_last_alert=since_last_alert,
        )
    if since_last_alert >= MIN_REALERT_INTERVAL:
        return Decision(
            Action.FIRE_SCHEDULED_ALERT,
            StateDelta(set_last_alerted=now),
            REASON_SCHEDULE_DUE,
            elapsed=elapsed,
            since_last_alert=since_last_alert,
        )
    return Decision(
        Action.NONE,
        NO_CHANGE,
        REASON_RECENTLY_ALERTED,
        elapsed=elapsed,
        since_last_alert=since_last_alert,
    )
