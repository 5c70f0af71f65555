"""
Target definitions from the JSON config file and the target registry.

Config file format (CONFIG_PATH, default config.json):
    {"targets": [{"id": "nightly-backup", "maxAge": 90000, "alertSchedule": "0 9 * * *"}]}

The ingest tool accepts a bare JSON array of the same objects. Invalid entries
are skipped with a warning; a broken alert schedule is only warned about here
and handled per cycle by the alert engine.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend_sifa.alerts.cron import is_valid
from backend_sifa.config.settings import Settings
from backend_sifa.core.exceptions import ConfigError
from backend_sifa.database.models import Target
from backend_sifa.database.target_registry import TargetRegistry
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


class TargetDefinition(BaseModel):
    """One target as written in config.json or fed to the ingest tool."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, max_length=256, description="Unique target id")
    max_age: int = Field(..., gt=0, alias="maxAge", description="Maximum allowed silence (seconds)")
    alert_schedule: str = Field(
        ..., min_length=1, alias="alertSchedule", description="Cron expression for repeat alerts"
    )

    def to_target(self) -> Target:
        return Target(id=self.id.strip(), max_age=self.max_age, alert_schedule=self.alert_schedule.strip())


def parse_target_definitions(items: Any, *, source: str) -> list[Target]:
    """
    Validate a list of raw target objects. Entries that fail validation are
    logged and skipped; duplicate ids keep the last definition.
    """
    if not isinstance(items, list):
        raise ConfigError(f"{source}: expected a list of targets, got {type(items).__name__}")
    targets: dict[str, Target] = {}
    for index, raw in enumerate(items):
        try:
            target = TargetDefinition.model_validate(raw).to_target()
        except ValidationError as e:
            logger.warning(
                "target_definition_invalid",
                source=source,
                index=index,
                errors=[err["msg"] for err in e.errors()],
            )
            continue
        if not target.id:
            logger.warning("target_definition_invalid", source=source, index=index, errors=["empty id"])
            continue
        if not is_valid(target.alert_schedule):
            logger.warning(
                "target_alert_schedule_invalid",
                source=source,
                target_id=target.id,
                alert_schedule=target.alert_schedule,
            )
        targets[target.id] = target
    return list(targets.values())


def load_config_file(path: str | Path) -> list[Target]:
    """Read {"targets": [...]} from path. Missing file → no targets."""
    path = Path(path)
    if not path.is_file():
        logger.info("target_config_missing", path=str(path))
        return []
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read target config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected an object with a 'targets' list")
    return parse_target_definitions(data.get("targets") or [], source=str(path))


def load_targets(settings: Settings, registry: TargetRegistry | None = None) -> dict[str, Target]:
    """
    Return all known targets by id: config file first, registry entries
    override file entries with the same id.
    """
    targets = {t.id: t for t in load_config_file(settings.config_path)}
    file_count = len(targets)
    registry_count = 0
    if registry is not None:
        for target in registry.list_targets():
            targets[target.id] = target
            registry_count += 1
    logger.info(
        "targets_loaded",
        total=len(targets),
        from_file=file_count,
        from_registry=registry_count,
    )
    return targets
