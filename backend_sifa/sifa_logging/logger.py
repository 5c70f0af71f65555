"""
structlog setup for Sifa.

Every record carries `timestamp` (ISO 8601, UTC), `level`, `logger` and
`event_type`; decision and dispatch records also carry `target_id`.
LOG_FORMAT=json (default) renders one JSON object per line, anything else the
structlog console renderer. LOG_LEVEL filters (default INFO).

Configured once on first import. Nothing from backend_sifa is imported here
so every module can log at import time.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

_ROOT_LOGGER_NAME = "backend_sifa"


def _rename_event(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog's positional `event` becomes `event_type`; `message` defaults to it."""
    if "event" in event_dict and "event_type" not in event_dict:
        event_dict["event_type"] = event_dict.pop("event")
    event_dict.setdefault("message", str(event_dict.get("event_type", "")))
    return event_dict


def _renderer(log_format: str) -> Any:
    if log_format == "json":
        return structlog.processors.JSONRenderer(default=str)
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(level: str | None = None, log_format: str | None = None) -> None:
    """
    (Re)configure structlog. Arguments override LOG_LEVEL / LOG_FORMAT;
    unknown level names fall back to INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").strip().upper()
    log_format = (log_format or os.getenv("LOG_FORMAT") or "json").strip().lower()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _rename_event,
            _renderer(log_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger; pass the event type first and context as keywords:

        logger = get_logger(__name__)
        logger.info("alert_cycle_done", targets=3, errors=0)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_target(target_id: str, name: str = _ROOT_LOGGER_NAME) -> structlog.BoundLogger:
    """Logger with target_id bound, for a run of records about one target."""
    return get_logger(name).bind(target_id=target_id)
