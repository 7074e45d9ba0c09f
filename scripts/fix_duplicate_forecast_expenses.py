#!/usr/bin/env python3
"""Repair expenses broken by the duplicate-forecast-description bug.

Usage:
    DRY_RUN=1 python3 scripts/fix_duplicate_forecast_expenses.py   # preview only
    python3 scripts/fix_duplicate_forecast_expenses.py             # apply fixes
"""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.services.config import Settings, get_settings
from backend.services.database import open_db
from backend.services.logging_config import setup_logging
from backend.services.reconciler import ReconcileSummary, reconcile
from backend.services.store import ForecastExpenseStore

logger = logging.getLogger("scripts.fix_duplicate_forecast_expenses")

SEPARATOR = "=" * 70


def print_banner(dry_run: bool) -> None:
    print(f"\n{SEPARATOR}")
    if dry_run:
        print("  DRY RUN - no changes will be written")
    else:
        print("  APPLY MODE - changes will be written to the database")
    print(f"{SEPARATOR}\n")


def print_summary(summary: ReconcileSummary) -> None:
    print(f"\n{SEPARATOR}")
    print("  SUMMARY")
    print(SEPARATOR)
    print(f"  Already correct:   {summary.already_ok}")
    print(f"  Corrected:         {summary.fixed}")
    print(f"  Created:           {summary.created}")
    print(f"  Total processed:   {summary.total_processed}")
    if summary.dry_run:
        print("\n  DRY RUN - run without DRY_RUN=1 to apply the corrections.")
    else:
        print("\n  Corrections applied.")
    print("")


async def run(settings: Settings) -> ReconcileSummary:
    async with open_db(settings.resolved_database_path) as conn:
        return await reconcile(ForecastExpenseStore(conn), dry_run=settings.is_dry_run)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, format_as_json=settings.log_json)
    print_banner(settings.is_dry_run)

    try:
        summary = asyncio.run(run(settings))
    except Exception:
        logger.exception("Fatal error")
        raise SystemExit(1)

    print_summary(summary)


if __name__ == "__main__":
    main()
