"""
Application context: everything the scheduler and the HTTP handlers share.

Built once by build_context() (or directly in tests) and passed explicitly;
there is no process-wide mutable state besides the store itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

import pytz

from backend_sifa.alerts.mute_token import MuteTokenSigner
from backend_sifa.alerts.notifier import Notifier, build_notifier
from backend_sifa.config.settings import Settings
from backend_sifa.config.targets import load_targets
from backend_sifa.core.exceptions import ConfigError, StoreError, TargetNotFoundError
from backend_sifa.database import Database, Target, TargetRegistry, get_database
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


@dataclass
class AppContext:
    settings: Settings
    db: Database
    notifier: Notifier
    signer: MuteTokenSigner
    registry: TargetRegistry | None = None
    targets: dict[str, Target] = field(default_factory=dict)

    @property
    def timezone(self):
        """Timezone for alert schedule evaluation; UTC when the name is unknown."""
        try:
            return pytz.timezone(self.settings.schedule_timezone)
        except pytz.UnknownTimeZoneError:
            logger.warning("schedule_timezone_unknown", timezone=self.settings.schedule_timezone)
            return pytz.utc

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def get_target(self, target_id: str) -> Target:
        try:
            return self.targets[target_id]
        except KeyError:
            raise TargetNotFoundError(target_id) from None

    def reload_targets(self) -> dict[str, Target]:
        """
        Re-read target definitions. On failure the previous set is kept so a
        broken config file never empties the watch list.
        """
        try:
            targets = load_targets(self.settings, self.registry)
        except (ConfigError, StoreError) as e:
            logger.error("targets_reload_failed", error=str(e), kept=len(self.targets))
            return self.targets
        # Swap the whole mapping; readers never see a half-built dict.
        self.targets = targets
        return targets

    def mute_url(self, target_id: str) -> str | None:
        if not self.settings.public_url:
            return None
        return self.signer.mute_url(self.settings.public_url, target_id)

    def close(self) -> None:
        self.notifier.close()
        if self.registry is not None:
            self.registry.dispose()


def build_context(settings: Settings) -> AppContext:
    """Open the state store and registry, build the notifier, load targets."""
    if not settings.access_token:
        logger.warning("access_token_missing", message="TOKEN not set; authenticated endpoints reject every request")
    if not settings.mute_secret:
        logger.warning("mute_secret_missing", message="MUTE_SECRET/TOKEN not set; mute links are signed with an empty key")
    db = get_database(settings.db_path)
    registry = TargetRegistry(settings.targets_db_url)
    registry.init_db()
    notifier = build_notifier(settings)
    context = AppContext(
        settings=settings,
        db=db,
        notifier=notifier,
        signer=MuteTokenSigner(settings.mute_secret),
        registry=registry,
    )
    context.reload_targets()
    logger.info(
        "context_ready",
        targets=len(context.targets),
        notifier=notifier.channel,
        db_path=str(settings.db_path),
    )
    return context
