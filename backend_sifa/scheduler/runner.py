"""
Scheduler runner — background evaluation loop and its lifecycle.

- run_scheduler(): one cycle immediately, then one cycle at every fire time of
  CHECK_SCHEDULE (default @hourly). Runs until stop_event is set; a cycle in
  flight always completes. Crashes in a cycle are caught and logged.
- start_scheduler_thread() / stop_scheduler_thread(): used by the FastAPI
  lifespan; the loop never blocks the API.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Any

from croniter import croniter  # type: ignore[import-untyped]

from backend_sifa.alerts.cron import is_valid
from backend_sifa.config.settings import DEFAULT_CHECK_SCHEDULE
from backend_sifa.scheduler.engine import CycleReport, check_targets
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0
# Upper bound on a single wait so stop_event is observed promptly
_WAKE_INTERVAL_SEC = 1.0


def next_fire_time(schedule: str, after: datetime) -> datetime:
    """Next instant strictly after `after` matching schedule (same tz as after)."""
    return croniter(schedule, after, day_or=False).get_next(datetime)


def _resolve_schedule(schedule: str) -> str:
    if is_valid(schedule):
        return schedule
    logger.error(
        "check_schedule_invalid",
        check_schedule=schedule,
        fallback=DEFAULT_CHECK_SCHEDULE,
    )
    return DEFAULT_CHECK_SCHEDULE


def _run_cycle(context: Any, cycle: int) -> CycleReport | None:
    try:
        return check_targets(context)
    except Exception as e:
        logger.exception("scheduler_cycle_failed", cycle=cycle, error=str(e))
        return None


def run_scheduler(context: Any, stop_event: threading.Event) -> int:
    """
    Run evaluation cycles until stop_event is set. Returns the number of
    cycles run. Intended to run in a background thread.
    """
    schedule = _resolve_schedule(context.settings.check_schedule)
    logger.info("scheduler_started", check_schedule=schedule)

    cycle = 1
    logger.info("scheduler_initial_cycle")
    _run_cycle(context, cycle)

    while not stop_event.is_set():
        local_now = context.now().astimezone(context.timezone)
        next_run = next_fire_time(schedule, local_now)
        logger.debug("scheduler_next_cycle", next_run=next_run.isoformat())
        # Sleep until next fire time; wake periodically to check stop_event
        while not stop_event.is_set():
            remaining = (next_run - context.now()).total_seconds()
            if remaining <= 0:
                break
            stop_event.wait(timeout=min(_WAKE_INTERVAL_SEC, remaining))
        if stop_event.is_set():
            break
        cycle += 1
        _run_cycle(context, cycle)

    logger.info("scheduler_stopped", cycles=cycle)
    return cycle


def start_scheduler_thread(context: Any) -> tuple[threading.Thread, threading.Event]:
    stop_event = threading.Event()
    thread = threading.Thread(
        target=run_scheduler,
        args=(context, stop_event),
        name="alert-scheduler",
        daemon=True,
    )
    thread.start()
    return thread, stop_event


def stop_scheduler_thread(
    thread: threading.Thread,
    stop_event: threading.Event,
    timeout_sec: float = SHUTDOWN_JOIN_TIMEOUT_SEC,
) -> bool:
    """Signal stop and wait for the in-flight cycle. Returns False if the thread outlived the timeout."""
    stop_event.set()
    thread.join(timeout=timeout_sec)
    if thread.is_alive():
        logger.warning("scheduler_shutdown_timeout", timeout_sec=timeout_sec)
        return False
    logger.info("scheduler_shutdown_complete")
    return True
