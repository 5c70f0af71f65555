"""
Core utilities — domain exceptions shared by the store, engine, scheduler and API.
"""

from backend_sifa.core.exceptions import (
    ConfigError,
    InvalidCronExpressionError,
    NotificationError,
    SifaError,
    StoreError,
    TargetNotFoundError,
)

__all__ = [
    "ConfigError",
    "InvalidCronExpressionError",
    "NotificationError",
    "SifaError",
    "StoreError",
    "TargetNotFoundError",
]
