"""
Scheduler — drives the alert engine over every target, at startup and then on
the CHECK_SCHEDULE cadence, independent of the HTTP request path.
"""

from backend_sifa.scheduler.engine import CycleReport, check_targets
from backend_sifa.scheduler.runner import (
    run_scheduler,
    start_scheduler_thread,
    stop_scheduler_thread,
)

__all__ = [
    "CycleReport",
    "check_targets",
    "run_scheduler",
    "start_scheduler_thread",
    "stop_scheduler_thread",
]
