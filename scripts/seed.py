#!/usr/bin/env python3
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.services.config import Settings, get_settings
from backend.services.database import apply_schema, open_db
from backend.services.logging_config import setup_logging
from backend.services.seeding import SeedResult, seed

logger = logging.getLogger("scripts.seed")


async def run(settings: Settings) -> SeedResult:
    async with open_db(settings.resolved_database_path) as conn:
        await apply_schema(conn)
        return await seed(conn, settings)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, format_as_json=settings.log_json)

    try:
        result = asyncio.run(run(settings))
    except Exception:
        logger.exception("Seed failed")
        raise SystemExit(1)

    logger.info(
        "Seed completed: instance_id=%s admin_email=%s is_super_admin=%s permissions_assigned=%d",
        result.instance_id,
        result.admin_email,
        result.is_super_admin,
        result.permissions_assigned,
    )


if __name__ == "__main__":
    main()
