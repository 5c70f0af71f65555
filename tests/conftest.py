"""
Pytest fixtures for Sifa tests. Uses temporary SQLite files for the state
store and the target registry, and an explicit AppContext per test.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from backend_sifa.alerts.mute_token import MuteTokenSigner
from backend_sifa.alerts.notifier import Notifier
from backend_sifa.config.settings import Settings
from backend_sifa.context import AppContext
from backend_sifa.core.exceptions import NotificationError
from backend_sifa.database import Target, get_database

# Sunday 2026-10-18 12:00 UTC
NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)

ACCESS_TOKEN = "test-access-token"
MUTE_SECRET = "test-mute-secret"

# Hourly schedule: due at NOW; "0 0 1 1 *": not due at NOW
HOURLY = "0 * * * *"
NEVER_DUE = "0 0 1 1 *"


class RecordingNotifier(Notifier):
    """Collects (title, message) pairs; raises NotificationError when fail is set."""

    channel = "recording"

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send(self, title: str, message: str) -> None:
        if self.fail:
            raise NotificationError("transport down")
        self.sent.append((title, message))


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        db_path=tmp_path / "state.db",
        config_path=tmp_path / "config.json",
        targets_db_url=f"sqlite:///{tmp_path / 'registry.db'}",
        public_url="https://sifa.example.com",
        access_token=ACCESS_TOKEN,
        mute_secret=MUTE_SECRET,
    )


@pytest.fixture
def db(settings):
    return get_database(settings.db_path)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def targets() -> dict[str, Target]:
    return {
        "backup": Target(id="backup", max_age=3600, alert_schedule=HOURLY),
        "report": Target(id="report", max_age=86400, alert_schedule=NEVER_DUE),
    }


@pytest.fixture
def context(settings, db, notifier, targets) -> AppContext:
    """Context whose config file lists `targets`, so reloads keep the same set."""
    settings.config_path.write_text(
        json.dumps({"targets": [t.to_dict() for t in targets.values()]}),
        encoding="utf-8",
    )
    return AppContext(
        settings=settings,
        db=db,
        notifier=notifier,
        signer=MuteTokenSigner(settings.mute_secret),
        targets=dict(targets),
    )


@pytest.fixture
def client(context):
    """FastAPI TestClient over the test context; scheduler not started."""
    from fastapi.testclient import TestClient

    from backend_sifa.api_server.server import create_app

    return TestClient(create_app(context, run_scheduler=False))


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"X-Secret": ACCESS_TOKEN}
