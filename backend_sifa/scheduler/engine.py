"""
Evaluation cycle: run the alert engine over every known target.

For each target, the decision and its state change happen inside one store
transaction; the notification (if any) is sent after commit. Per-target
failures (store errors, anything unexpected) are logged and counted and never
abort the rest of the batch. A failed send keeps the alert recorded as sent,
so the one-hour re-alert floor still applies.
"""

from __future__ import annotations

import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from backend_sifa.alerts.cron import truncate_to_minute
from backend_sifa.alerts.engine import REASON_HEALTHY, Action, Decision, evaluate
from backend_sifa.alerts.messages import alert_message, alert_title
from backend_sifa.core.exceptions import NotificationError, StoreError
from backend_sifa.database.models import Target
from backend_sifa.sifa_logging import bind_target, get_logger

logger = get_logger(__name__)


@dataclass
class TargetOutcome:
    target_id: str
    decision: Decision
    dispatched: bool = False


@dataclass
class CycleReport:
    """Summary of one evaluation cycle."""

    started_at: datetime
    actions: Counter = field(default_factory=Counter)
    errors: int = 0
    dispatched: int = 0
    dispatch_failures: int = 0
    duration_sec: float = 0.0
    outcomes: list[TargetOutcome] = field(default_factory=list)

    def record(self, outcome: TargetOutcome) -> None:
        self.outcomes.append(outcome)
        self.actions[outcome.decision.action.value] += 1
        if outcome.decision.action.fires:
            if outcome.dispatched:
                self.dispatched += 1
            else:
                self.dispatch_failures += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "targets": len(self.outcomes) + self.errors,
            "actions": dict(self.actions),
            "errors": self.errors,
            "dispatched": self.dispatched,
            "dispatch_failures": self.dispatch_failures,
            "duration_sec": round(self.duration_sec, 3),
        }


def _log_decision(log: Any, target: Target, decision: Decision) -> None:
    fields: dict[str, Any] = {
        "action": decision.action.value,
        "reason": decision.reason,
        "max_age": target.max_age,
        "alert_schedule": target.alert_schedule,
    }
    if decision.elapsed is not None:
        fields["elapsed_sec"] = int(decision.elapsed.total_seconds())
    if decision.since_last_alert is not None:
        fields["since_last_alert_min"] = round(decision.since_last_alert.total_seconds() / 60, 1)

    if decision.action is Action.SKIP:
        log.info("target_not_yet_observed", **fields)
    elif decision.action is Action.CLEAR_ALERT:
        log.info("target_recovered_alert_cleared", **fields)
    elif decision.action.fires:
        log.info("target_overdue_alerting", **fields)
    elif decision.reason == REASON_HEALTHY:
        log.debug("target_healthy", **fields)
    else:
        log.info("target_overdue_suppressed", **fields)


def dispatch_alert(context: Any, target: Target, decision: Decision, log: Any = None) -> bool:
    """Send the alert for a FIRE_* decision. Returns False (logged) on transport failure."""
    log = log or bind_target(target.id, __name__)
    title = alert_title(target)
    message = alert_message(target, decision.elapsed, context.mute_url(target.id))
    channel = context.notifier.channel
    try:
        context.notifier.send(title, message)
    except NotificationError as e:
        log.warning("alert_dispatch_failed", channel=channel, error=str(e))
        return False
    log.info("alert_dispatched", channel=channel, action=decision.action.value)
    return True


def process_target(context: Any, target: Target, now: datetime) -> TargetOutcome:
    """Evaluate one target, apply its state change atomically, dispatch if needed."""
    log = bind_target(target.id, __name__)
    with context.db.locked_state(target.id) as txn:
        decision = evaluate(target, txn.state, now)
        if not decision.delta.is_empty:
            txn.save(decision.delta.apply(txn.state))
    _log_decision(log, target, decision)
    dispatched = False
    if decision.action.fires:
        dispatched = dispatch_alert(context, target, decision, log)
    return TargetOutcome(target_id=target.id, decision=decision, dispatched=dispatched)


def check_targets(
    context: Any,
    *,
    now: datetime | None = None,
    reload_targets: bool = True,
) -> CycleReport:
    """
    Run one evaluation cycle over all targets of context.

    now: evaluation instant (aware); defaults to the current time. It is
    converted to the schedule timezone so alert schedules match local wall
    clock time, and truncated to the minute so consecutive cycles on the
    same cadence are exactly one period apart.
    """
    if reload_targets:
        context.reload_targets()
    now = truncate_to_minute((now or context.now()).astimezone(context.timezone))
    report = CycleReport(started_at=now)
    tick_start = time.monotonic()
    targets = list(context.targets.values())
    logger.info("alert_cycle_started", targets=len(targets), now=now.isoformat())

    for target in targets:
        try:
            outcome = process_target(context, target, now)
        except StoreError as e:
            report.errors += 1
            logger.warning("target_state_unavailable", target_id=target.id, error=str(e))
            continue
        except Exception as e:
            report.errors += 1
            logger.exception("target_evaluation_failed", target_id=target.id, error=str(e))
            continue
        report.record(outcome)

    report.duration_sec = time.monotonic() - tick_start
    logger.info("alert_cycle_done", **report.to_dict())
    return report
