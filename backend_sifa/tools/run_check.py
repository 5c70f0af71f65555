"""
Run one alert evaluation cycle and exit (cron-driven deployments, debugging).

Usage:
  python -m backend_sifa.tools.run_check
"""

from __future__ import annotations

import sys

from backend_sifa.config import get_settings
from backend_sifa.context import build_context
from backend_sifa.scheduler.engine import check_targets
from backend_sifa.sifa_logging import get_logger

logger = get_logger(__name__)


def main() -> int:
    context = build_context(get_settings())
    try:
        report = check_targets(context, reload_targets=False)
    finally:
        context.close()
    return 1 if report.errors else 0


if __name__ == "__main__":
    sys.exit(main())
