"""
Application-level exceptions.

One base class so the API and the scheduler can tell domain failures apart
from programming errors. None of these is fatal to the process.
"""

from __future__ import annotations


class SifaError(Exception):
    """Base class for all Sifa errors."""


class ConfigError(SifaError):
    """Settings or target definitions could not be loaded."""


class InvalidCronExpressionError(SifaError, ValueError):
    """A cron expression could not be parsed."""

    def __init__(self, expression: str, reason: str = "") -> None:
        self.expression = expression
        self.reason = reason
        msg = f"Invalid cron expression {expression!r}"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class StoreError(SifaError):
    """The target state backend failed (unavailable, locked, corrupt)."""


class NotificationError(SifaError):
    """The notification transport rejected or failed to deliver an alert."""


class TargetNotFoundError(SifaError, KeyError):
    """No target with the given id is configured."""

    def __init__(self, target_id: str) -> None:
        self.target_id = target_id
        super().__init__(target_id)

    def __str__(self) -> str:
        return f"Unknown target {self.target_id!r}"
