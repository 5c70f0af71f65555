"""
Target state store: last acted, last alerted and mute flag per target.

Uses SQLite; designed so the backend can be swapped (e.g. PostgreSQL or a
key-value store) via a different StateBackend implementation. All access goes
through the abstract interface. Every mutation runs inside one write
transaction per target, so the liveness path and a scheduler cycle can never
interleave a read-modify-write on the same target.
"""

from __future__ import annotations

import sqlite3
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator

from backend_sifa.core.exceptions import StoreError
from backend_sifa.database.models import TargetState, from_timestamp, to_timestamp
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

# -----------------------------------------------------------------------------
# Schema (SQLite). NULL timestamps mean "absent"; never store 0 as a marker.
# -----------------------------------------------------------------------------

SCHEMA_TARGET_STATE = """
CREATE TABLE IF NOT EXISTS target_state (
    target_id TEXT PRIMARY KEY,
    last_acted REAL,
    last_alerted REAL,
    muted INTEGER NOT NULL DEFAULT 0,
    updated_at INTEGER
);
"""

_UPSERT_STATE = """
INSERT INTO target_state (target_id, last_acted, last_alerted, muted, updated_at)
VALUES (?, ?, ?, ?, ?)
ON CONFLICT(target_id) DO UPDATE SET
    last_acted = excluded.last_acted,
    last_alerted = excluded.last_alerted,
    muted = excluded.muted,
    updated_at = excluded.updated_at
"""

_SELECT_STATE = "SELECT target_id, last_acted, last_alerted, muted FROM target_state"


def _row_to_state(row: sqlite3.Row) -> TargetState:
    return TargetState(
        target_id=row["target_id"],
        last_acted=from_timestamp(row["last_acted"]),
        last_alerted=from_timestamp(row["last_alerted"]),
        muted=bool(row["muted"]),
    )


class StateTransaction:
    """
    Open write transaction on one target's state.

    Read `state`, decide, then `save()` the new state; the write commits when
    the surrounding `locked_state()` block exits without error.
    """

    def __init__(self, cursor: Any, state: TargetState) -> None:
        self._cursor = cursor
        self._state = state

    @property
    def state(self) -> TargetState:
        return self._state

    def save(self, state: TargetState) -> None:
        if state.target_id != self._state.target_id:
            raise ValueError(
                f"cannot save state of {state.target_id!r} in transaction for {self._state.target_id!r}"
            )
        self._cursor.execute(
            _UPSERT_STATE,
            (
                state.target_id,
                to_timestamp(state.last_acted),
                to_timestamp(state.last_alerted),
                1 if state.muted else 0,
                int(time.time()),
            ),
        )
        self._state = state


# -----------------------------------------------------------------------------
# Abstract backend
# -----------------------------------------------------------------------------


class StateBackend(ABC):
    """Abstract interface for target state persistence."""

    @abstractmethod
    def ensure_schema(self) -> None:
        """Create tables if they do not exist."""
        ...

    @abstractmethod
    def get_state(self, target_id: str) -> TargetState:
        """Return state for target_id; an empty state when nothing is stored."""
        ...

    @abstractmethod
    def locked_state(self, target_id: str):
        """Context manager yielding a StateTransaction; commits on clean exit."""
        ...

    @abstractmethod
    def list_states(self) -> list[TargetState]:
        """Return all stored states."""
        ...


# -----------------------------------------------------------------------------
# SQLite backend
# -----------------------------------------------------------------------------


class SQLiteBackend(StateBackend):
    """SQLite implementation; single file, one connection per operation."""

    def __init__(self, path: str | Path, *, timeout_sec: float = 5.0) -> None:
        self._path = Path(path)
        self._timeout_sec = timeout_sec

    def _connect(self) -> sqlite3.Connection:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # Autocommit mode: transactions are opened explicitly below.
        conn = sqlite3.connect(
            str(self._path),
            timeout=self._timeout_sec,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode = WAL")
        return conn

    @contextmanager
    def _transaction(self, *, write: bool) -> Iterator[sqlite3.Cursor]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open state store {self._path}: {e}") from e
        try:
            cur = conn.cursor()
            # IMMEDIATE takes the write lock up front so read-decide-write is serialized.
            cur.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            try:
                yield cur
            except BaseException:
                conn.rollback()
                raise
            conn.commit()
        except sqlite3.Error as e:
            raise StoreError(f"state store error: {e}") from e
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._transaction(write=True) as cur:
            cur.execute(SCHEMA_TARGET_STATE)

    def get_state(self, target_id: str) -> TargetState:
        with self._transaction(write=False) as cur:
            cur.execute(_SELECT_STATE + " WHERE target_id = ?", (target_id,))
            row = cur.fetchone()
        if row is None:
            return TargetState(target_id=target_id)
        return _row_to_state(row)

    @contextmanager
    def locked_state(self, target_id: str) -> Iterator[StateTransaction]:
        with self._transaction(write=True) as cur:
            cur.execute(_SELECT_STATE + " WHERE target_id = ?", (target_id,))
            row = cur.fetchone()
            state = _row_to_state(row) if row is not None else TargetState(target_id=target_id)
            yield StateTransaction(cur, state)

    def list_states(self) -> list[TargetState]:
        with self._transaction(write=False) as cur:
            cur.execute(_SELECT_STATE + " ORDER BY target_id")
            rows = cur.fetchall()
        return [_row_to_state(row) for row in rows]


# -----------------------------------------------------------------------------
# Database facade: single entrypoint; backend is swappable.
# -----------------------------------------------------------------------------


class Database:
    """
    Target state store used by the scheduler and the HTTP handlers.

    Uses a StateBackend (SQLite by default). Each mutating call is one atomic
    transaction for that target.
    """

    def __init__(self, backend: StateBackend) -> None:
        self._backend = backend

    def ensure_schema(self) -> None:
        """Create tables if they do not exist."""
        self._backend.ensure_schema()

    def get_state(self, target_id: str) -> TargetState:
        return self._backend.get_state(target_id)

    def list_states(self) -> list[TargetState]:
        return self._backend.list_states()

    def locked_state(self, target_id: str):
        """Open a write transaction on target_id; see StateTransaction."""
        return self._backend.locked_state(target_id)

    def _update(self, target_id: str, **changes: Any) -> TargetState:
        with self._backend.locked_state(target_id) as txn:
            new_state = replace(txn.state, **changes)
            txn.save(new_state)
        return new_state

    def set_last_acted(self, target_id: str, when: datetime) -> TargetState:
        return self._update(target_id, last_acted=when)

    def set_last_alerted(self, target_id: str, when: datetime | None) -> TargetState:
        """Set the outstanding-alert timestamp; None clears it."""
        return self._update(target_id, last_alerted=when)

    def set_muted(self, target_id: str, muted: bool) -> TargetState:
        return self._update(target_id, muted=muted)

    def record_liveness(self, target_id: str, now: datetime) -> TargetState:
        """
        Liveness report: last acted = now, outstanding alert and mute cleared,
        all in one transaction.
        """
        with self._backend.locked_state(target_id) as txn:
            new_state = txn.state.with_liveness(now)
            txn.save(new_state)
        logger.debug("target_liveness_recorded", target_id=target_id, last_acted=now.isoformat())
        return new_state


def get_database(path: str | Path | None = None) -> Database:
    """
    Return a Database backed by SQLite with the schema in place.

    path: Path to the SQLite file. Default: "sifa_state.db" in cwd.
    """
    if path is None:
        path = Path("sifa_state.db")
    backend = SQLiteBackend(path)
    db = Database(backend)
    db.ensure_schema()
    return db
