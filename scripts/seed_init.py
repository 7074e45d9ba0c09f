#!/usr/bin/env python3
"""First-boot seed: instance, roles and admin user, only on an empty user table."""
from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from backend.services.config import Settings, get_settings
from backend.services.database import apply_schema, open_db
from backend.services.logging_config import setup_logging
from backend.services.seeding import SeedResult, seed_init

logger = logging.getLogger("scripts.seed_init")


async def run(settings: Settings) -> Optional[SeedResult]:
    async with open_db(settings.resolved_database_path) as conn:
        await apply_schema(conn)
        return await seed_init(conn, settings)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level, format_as_json=settings.log_json)

    try:
        result = asyncio.run(run(settings))
    except Exception:
        logger.exception("Seed failed")
        raise SystemExit(1)

    if result is None:
        return
    logger.info(
        "Seed completed: instance_id=%s admin_email=%s is_super_admin=%s",
        result.instance_id,
        result.admin_email,
        result.is_super_admin,
    )


if __name__ == "__main__":
    main()
