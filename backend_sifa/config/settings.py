"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Provide defaults for optional settings.
- Expose typed settings (state DB path, target sources, secrets, notifier,
  scheduler cadence, API bind address) for the scheduler and the API server.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from backend_sifa.config.env import env_float, env_int, env_str, load_sifa_env

DEFAULT_DB_PATH = "sifa_state.db"
DEFAULT_CONFIG_PATH = "config.json"
DEFAULT_TARGETS_DB_URL = "sqlite:///sifa.db"
DEFAULT_CHECK_SCHEDULE = "@hourly"
DEFAULT_SCHEDULE_TIMEZONE = "UTC"
DEFAULT_NOTIFY_TIMEOUT_SEC = 10.0
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 8000


@dataclass(frozen=True)
class Settings:
    """Resolved service configuration; build with get_settings() or directly in tests."""

    db_path: Path = Path(DEFAULT_DB_PATH)
    """SQLite file holding per-target state (last acted, last alerted, muted)."""
    config_path: Path = Path(DEFAULT_CONFIG_PATH)
    """JSON file with {"targets": [...]} definitions; optional."""
    targets_db_url: str = DEFAULT_TARGETS_DB_URL
    """SQLAlchemy URL of the target registry filled by the ingest tool."""
    public_url: str = ""
    """Public base URL used to build mute links; no link in alerts when empty."""
    access_token: str = ""
    """Shared token for the webhook and inspection endpoints."""
    mute_secret: str = ""
    """HMAC key for mute links."""
    check_schedule: str = DEFAULT_CHECK_SCHEDULE
    """Cron expression driving evaluation cycles (after the startup cycle)."""
    schedule_timezone: str = DEFAULT_SCHEDULE_TIMEZONE
    """Timezone in which alert schedules are evaluated."""
    notify_webhook_url: str = ""
    postmark_api_key: str = ""
    alert_email_from: str = ""
    alert_email_to: str = ""
    notify_timeout_sec: float = DEFAULT_NOTIFY_TIMEOUT_SEC
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT


def get_settings() -> Settings:
    """
    Return settings read from the environment (after loading .env).

    MUTE_SECRET falls back to TOKEN so a single secret is enough for small
    deployments; rotating it invalidates every outstanding mute link.
    """
    load_sifa_env()
    access_token = env_str("TOKEN")
    return Settings(
        db_path=Path(env_str("DB_PATH", DEFAULT_DB_PATH)),
        config_path=Path(env_str("CONFIG_PATH", DEFAULT_CONFIG_PATH)),
        targets_db_url=env_str("TARGETS_DB_URL", DEFAULT_TARGETS_DB_URL),
        public_url=env_str("SIFA_URL").rstrip("/"),
        access_token=access_token,
        mute_secret=env_str("MUTE_SECRET", access_token),
        check_schedule=env_str("CHECK_SCHEDULE", DEFAULT_CHECK_SCHEDULE),
        schedule_timezone=env_str("SCHEDULE_TIMEZONE", DEFAULT_SCHEDULE_TIMEZONE),
        notify_webhook_url=env_str("NOTIFY_WEBHOOK_URL"),
        postmark_api_key=env_str("POSTMARK_API_KEY"),
        alert_email_from=env_str("ALERT_EMAIL_FROM"),
        alert_email_to=env_str("ALERT_EMAIL_TO"),
        notify_timeout_sec=env_float("NOTIFY_TIMEOUT_SEC", DEFAULT_NOTIFY_TIMEOUT_SEC),
        api_host=env_str("API_HOST", DEFAULT_API_HOST),
        api_port=env_int("API_PORT", DEFAULT_API_PORT),
    )
