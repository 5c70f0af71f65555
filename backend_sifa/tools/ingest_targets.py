"""
Ingest target definitions into the target registry.

Reads a JSON array of {"id", "maxAge", "alertSchedule"} objects from a file or
stdin and upserts them (insert, or update maxAge/alertSchedule on conflict).

Usage:
  python -m backend_sifa.tools.ingest_targets targets.json
  cat targets.json | python -m backend_sifa.tools.ingest_targets
  python -m backend_sifa.tools.ingest_targets --db-url sqlite:///other.db targets.json
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import TextIO

from backend_sifa.config import get_settings
from backend_sifa.config.targets import parse_target_definitions
from backend_sifa.core.exceptions import ConfigError, StoreError
from backend_sifa.database.target_registry import TargetRegistry
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


def ingest(stream: TextIO, registry: TargetRegistry) -> tuple[int, int]:
    """Parse definitions from stream and upsert them. Returns (parsed, written)."""
    try:
        data = json.load(stream)
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to parse target JSON: {e}") from e
    targets = parse_target_definitions(data, source=getattr(stream, "name", "stdin"))
    registry.init_db()
    written = registry.upsert_targets(targets)
    return len(targets), written


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Upsert Sifa target definitions from JSON.")
    parser.add_argument(
        "file",
        nargs="?",
        type=argparse.FileType("r", encoding="utf-8"),
        default=sys.stdin,
        help="JSON file with a list of targets (default: stdin).",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="SQLAlchemy URL of the target registry (default: TARGETS_DB_URL).",
    )
    args = parser.parse_args(argv)

    registry = TargetRegistry(args.db_url or get_settings().targets_db_url)
    try:
        parsed, written = ingest(args.file, registry)
    except (ConfigError, StoreError) as e:
        logger.error("ingest_failed", error=str(e))
        return 1
    finally:
        registry.dispose()
        if args.file is not sys.stdin:
            args.file.close()
    logger.info("ingest_done", parsed=parsed, written=written)
    print(f"ingested {parsed} targets ({written} changed)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
