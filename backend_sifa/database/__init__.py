"""
Persistence layer — per-target state store and target registry.

SQLite state store via Database and get_database(); backend is swappable.
Target definitions live in the SQLAlchemy TargetRegistry.
"""

from backend_sifa.database.database import (
    Database,
    SQLiteBackend,
    StateBackend,
    StateTransaction,
    get_database,
)
from backend_sifa.database.models import Target, TargetState
from backend_sifa.database.target_registry import TargetRegistry

__all__ = [
    "Database",
    "SQLiteBackend",
    "StateBackend",
    "StateTransaction",
    "get_database",
    "Target",
    "TargetRegistry",
    "TargetState",
]
