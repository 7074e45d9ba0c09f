from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import aiosqlite

from backend.services.config import BASE_DIR, get_settings

SCHEMA_PATH = BASE_DIR / "data" / "schema.sql"


async def connect_db(path: Optional[Path] = None) -> aiosqlite.Connection:
    database_path = path or get_settings().resolved_database_path
    database_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(database_path)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@asynccontextmanager
async def open_db(path: Optional[Path] = None) -> AsyncIterator[aiosqlite.Connection]:
    conn = await connect_db(path)
    try:
        yield conn
    finally:
        await conn.close()


async def apply_schema(conn: aiosqlite.Connection, path: Path = SCHEMA_PATH) -> None:
    await conn.executescript(path.read_text())
    await conn.commit()


async def fetchall(conn: aiosqlite.Connection, query: str, params: tuple[Any, ...] = ()) -> list[aiosqlite.Row]:
    cursor = await conn.execute(query, params)
    return list(await cursor.fetchall())


async def fetchone(conn: aiosqlite.Connection, query: str, params: tuple[Any, ...] = ()) -> Optional[aiosqlite.Row]:
    cursor = await conn.execute(query, params)
    return await cursor.fetchone()
