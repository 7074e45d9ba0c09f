from __future__ import annotations

import asyncio
from pathlib import Path

import bcrypt

from backend.services.config import Settings
from backend.services.database import open_db
from backend.services.seeding import PERMISSIONS, ensure_instance, ensure_role, seed, seed_init, utc_now
from tests.helpers import query


def make_settings(path: Path, **overrides) -> Settings:
    values = {
        "database_path": str(path),
        "admin_email": "admin@obra.test",
        "admin_password": "s3nha-forte",
        "password_hash_rounds": 4,
    }
    values.update(overrides)
    return Settings(**values)


def run_seed(path: Path, settings: Settings, fn=seed):
    async def _run():
        async with open_db(path) as conn:
            return await fn(conn, settings)

    return asyncio.run(_run())


def count(path: Path, table: str) -> int:
    return query(path, f"SELECT COUNT(*) AS n FROM {table}")[0]["n"]


def test_seed_bootstraps_instance_roles_admin_and_permissions(db_path: Path) -> None:
    result = run_seed(db_path, make_settings(db_path))

    assert result.admin_email == "admin@obra.test"
    assert result.is_super_admin is True
    assert result.permissions_assigned == len(PERMISSIONS) * 2

    assert count(db_path, "permissions") == 30
    assert {row["name"] for row in query(db_path, "SELECT name FROM roles")} == {"ADMIN", "SUPER_ADMIN", "USER"}
    assert count(db_path, "role_permissions") == 60

    instance = query(db_path, "SELECT * FROM instances")[0]
    assert instance["id"] == result.instance_id
    assert instance["name"] == "Instancia Principal"
    assert instance["status"] == "ACTIVE"
    settings_row = query(db_path, "SELECT * FROM global_settings")[0]
    assert settings_row["currency_symbol"] == "R$"
    assert settings_row["language"] == "pt-BR"
    subscription = query(db_path, "SELECT * FROM subscriptions")[0]
    assert (subscription["plan"], subscription["status"], subscription["billing_cycle"]) == ("TRIAL", "ACTIVE", "monthly")

    user = query(db_path, "SELECT * FROM users")[0]
    assert user["name"] == "Administrador"
    assert bcrypt.checkpw(b"s3nha-forte", user["password_hash"].encode("utf-8"))
    role_names = {
        row["name"]
        for row in query(
            db_path,
            "SELECT r.name FROM user_roles ur JOIN roles r ON r.id = ur.role_id WHERE ur.user_id = ?",
            (user["id"],),
        )
    }
    assert role_names == {"ADMIN", "SUPER_ADMIN"}


def test_seed_twice_changes_nothing(db_path: Path) -> None:
    settings = make_settings(db_path)
    first = run_seed(db_path, settings)
    password_hash = query(db_path, "SELECT password_hash FROM users")[0]["password_hash"]

    second = run_seed(db_path, make_settings(db_path, admin_password="outra"))

    assert second.instance_id == first.instance_id
    assert count(db_path, "instances") == 1
    assert count(db_path, "permissions") == 30
    assert count(db_path, "roles") == 3
    assert count(db_path, "users") == 1
    assert count(db_path, "user_roles") == 2
    assert count(db_path, "role_permissions") == 60
    assert query(db_path, "SELECT password_hash FROM users")[0]["password_hash"] == password_hash


def test_seed_without_super_admin_grant(db_path: Path) -> None:
    result = run_seed(db_path, make_settings(db_path, admin_is_superadmin="false"))

    assert result.is_super_admin is False
    assert count(db_path, "user_roles") == 1


def test_seed_init_skips_populated_database(db_path: Path) -> None:
    first = run_seed(db_path, make_settings(db_path), fn=seed_init)

    assert first is not None
    assert count(db_path, "permissions") == 0
    assert count(db_path, "roles") == 3
    assert count(db_path, "user_roles") == 2

    second = run_seed(db_path, make_settings(db_path, admin_email="outro@obra.test"), fn=seed_init)

    assert second is None
    assert count(db_path, "users") == 1


def test_ensure_role_returns_existing_row(db_path: Path) -> None:
    async def _run():
        async with open_db(db_path) as conn:
            instance_id = await ensure_instance(conn, "Obra Teste")
            first = await ensure_role(conn, instance_id, "ADMIN")
            second = await ensure_role(conn, instance_id, "ADMIN")
            await conn.commit()
            return first, second

    first, second = asyncio.run(_run())

    assert first == second
    roles = query(db_path, "SELECT id, description FROM roles")
    assert roles == [{"id": first, "description": "Administrador da instância"}]


def test_utc_now_is_second_precision_with_z_suffix() -> None:
    stamp = utc_now()

    assert stamp.endswith("Z")
    assert "+" not in stamp
    assert "." not in stamp
    assert len(stamp) == len("2026-01-01T00:00:00Z")
