"""
Test that sifa_logging can be imported without circular import and logger works.
"""

from __future__ import annotations

from datetime import timedelta

from structlog.testing import capture_logs

from conftest import NOW


def test_logging_import():
    """Import get_logger from sifa_logging and use the logger."""
    from backend_sifa.sifa_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "exception")
    logger.info("test_message", key="value")


def test_event_renamed_to_event_type():
    from backend_sifa.sifa_logging.logger import _rename_event

    event = _rename_event(None, "info", {"event": "alert_cycle_done", "errors": 0})
    assert event["event_type"] == "alert_cycle_done"
    assert event["message"] == "alert_cycle_done"
    assert "event" not in event


def test_bind_target_carries_target_id():
    from backend_sifa.sifa_logging import bind_target

    with capture_logs() as logs:
        bind_target("backup", "test").info("target_event", action="none")
    assert logs == [
        {"event": "target_event", "action": "none", "target_id": "backup", "logger": "test", "log_level": "info"}
    ]


def test_decision_and_dispatch_records_name_the_target(context, db):
    from backend_sifa.scheduler.engine import check_targets

    db.record_liveness("backup", NOW - timedelta(hours=2))
    with capture_logs() as logs:
        check_targets(context, now=NOW, reload_targets=False)

    by_event = {entry["event"]: entry for entry in logs}
    assert by_event["target_overdue_alerting"]["target_id"] == "backup"
    assert by_event["alert_dispatched"]["target_id"] == "backup"
    assert by_event["target_not_yet_observed"]["target_id"] == "report"
