"""
Target registry — SQLAlchemy-backed list of target definitions.

Filled by the ingest tool (upsert by id) and read by the service at the start
of every evaluation cycle. Works with SQLite by default; any SQLAlchemy URL
(e.g. PostgreSQL) can be passed instead.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterable, Iterator

from sqlalchemy import Column, Integer, String, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from backend_sifa.core.exceptions import StoreError
from backend_sifa.database.models import Target
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)

Base = declarative_base()


class TargetRow(Base):
    """One monitored target definition."""

    __tablename__ = "targets"

    id = Column(String(256), primary_key=True)
    max_age = Column(Integer, nullable=False)
    alert_schedule = Column(String(128), nullable=False)

    def to_target(self) -> Target:
        return Target(id=self.id, max_age=int(self.max_age), alert_schedule=self.alert_schedule)


class TargetRegistry:
    """Upsert and list target definitions; one engine per registry."""

    def __init__(self, url: str) -> None:
        self._url = url
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self._engine: Engine = create_engine(url, future=True, connect_args=connect_args)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def init_db(self) -> None:
        """Create the targets table if it does not exist."""
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StoreError(f"cannot initialize target registry: {e}") from e

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise StoreError(f"target registry error: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def upsert_targets(self, targets: Iterable[Target]) -> int:
        """Insert new targets or update max_age/alert_schedule of existing ones. Returns rows written."""
        written = 0
        with self._session() as session:
            for target in targets:
                row = session.get(TargetRow, target.id)
                if row is None:
                    session.add(
                        TargetRow(
                            id=target.id,
                            max_age=target.max_age,
                            alert_schedule=target.alert_schedule,
                        )
                    )
                elif row.max_age != target.max_age or row.alert_schedule != target.alert_schedule:
                    row.max_age = target.max_age
                    row.alert_schedule = target.alert_schedule
                else:
                    continue
                written += 1
                logger.info(
                    "target_upserted",
                    target_id=target.id,
                    max_age=target.max_age,
                    alert_schedule=target.alert_schedule,
                )
        return written

    def list_targets(self) -> list[Target]:
        with self._session() as session:
            rows = session.execute(select(TargetRow).order_by(TargetRow.id)).scalars().all()
            return [row.to_target() for row in rows]

    def dispose(self) -> None:
        self._engine.dispose()
