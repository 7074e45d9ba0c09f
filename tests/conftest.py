from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Iterator

import pytest

from backend.services.config import get_settings
from backend.services.database import apply_schema, open_db


@pytest.fixture(autouse=True)
def _restore_logging() -> Iterator[None]:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    path = tmp_path / "obra.db"
    monkeypatch.setenv("DATABASE_PATH", str(path))
    monkeypatch.delenv("DRY_RUN", raising=False)
    get_settings.cache_clear()

    async def _create() -> None:
        async with open_db(path) as conn:
            await apply_schema(conn)

    asyncio.run(_create())
    yield path
    get_settings.cache_clear()
