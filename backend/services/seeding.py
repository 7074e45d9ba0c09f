from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import aiosqlite
import bcrypt

from backend.services.config import Settings
from backend.services.database import fetchone

logger = logging.getLogger(__name__)

PERMISSIONS: list[tuple[str, str]] = [
    ("biddings.view", "View biddings"),
    ("biddings.edit", "Edit biddings"),
    ("suppliers.view", "View suppliers"),
    ("suppliers.edit", "Edit suppliers"),
    ("projects.view", "View projects list"),
    ("projects.edit", "Edit projects list"),
    ("projects_general.view", "View all projects in instance"),
    ("projects_general.edit", "Edit all projects in instance"),
    ("projects_specific.view", "View assigned projects only"),
    ("projects_specific.edit", "Edit assigned projects only"),
    ("wbs.view", "View WBS"),
    ("wbs.edit", "Edit WBS"),
    ("technical_analysis.view", "View technical analysis"),
    ("technical_analysis.edit", "Edit technical analysis"),
    ("financial_flow.view", "View financial flow"),
    ("financial_flow.edit", "Edit financial flow"),
    ("supplies.view", "View supplies"),
    ("supplies.edit", "Edit supplies"),
    ("workforce.view", "View workforce"),
    ("workforce.edit", "Edit workforce"),
    ("planning.view", "View planning"),
    ("planning.edit", "Edit planning"),
    ("journal.view", "View journal"),
    ("journal.edit", "Edit journal"),
    ("documents.view", "View documents"),
    ("documents.edit", "Edit documents"),
    ("project_settings.view", "View project settings"),
    ("project_settings.edit", "Edit project settings"),
    ("global_settings.view", "View global settings"),
    ("global_settings.edit", "Edit global settings"),
]

ROLE_ADMIN = "ADMIN"
ROLE_SUPER_ADMIN = "SUPER_ADMIN"
ROLE_USER = "USER"

ROLE_DESCRIPTIONS = {
    ROLE_ADMIN: "Administrador da instância",
    ROLE_SUPER_ADMIN: "Administrador global",
    ROLE_USER: "Usuário padrão",
}

DEFAULT_GLOBAL_SETTINGS = {
    "default_company_name": "Sua Empresa de Engenharia",
    "company_cnpj": "",
    "user_name": "Administrador",
    "language": "pt-BR",
    "currency_symbol": "R$",
}

ADMIN_USER_NAME = "Administrador"


class SeedError(RuntimeError):
    pass


@dataclass(frozen=True)
class SeedResult:
    instance_id: str
    admin_email: str
    is_super_admin: bool
    permissions_assigned: int = 0


def utc_now() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0, tzinfo=None).isoformat() + "Z"


def new_id() -> str:
    return str(uuid4())


def hash_password(password: str, rounds: int = 10) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


async def ensure_permission(conn: aiosqlite.Connection, code: str, description: str) -> str:
    await conn.execute(
        """
        INSERT INTO permissions (id, code, description)
        VALUES (?, ?, ?)
        ON CONFLICT(code) DO NOTHING
        """,
        (new_id(), code, description),
    )
    row = await fetchone(conn, "SELECT id FROM permissions WHERE code = ?", (code,))
    if row is None:
        raise SeedError(f"Permission {code} missing after upsert")
    return row["id"]


async def ensure_permissions(conn: aiosqlite.Connection) -> list[str]:
    """Upsert every known permission; returns their ids in PERMISSIONS order."""
    return list(
        await asyncio.gather(
            *(ensure_permission(conn, code, description) for code, description in PERMISSIONS)
        )
    )


async def ensure_instance(conn: aiosqlite.Connection, name: str) -> str:
    row = await fetchone(conn, "SELECT id FROM instances WHERE name = ? ORDER BY created_at LIMIT 1", (name,))
    if row is not None:
        return row["id"]

    instance_id = new_id()
    now = utc_now()
    await conn.execute(
        "INSERT INTO instances (id, name, status, created_at) VALUES (?, ?, 'ACTIVE', ?)",
        (instance_id, name, now),
    )
    await conn.execute(
        """
        INSERT INTO global_settings (
            id, instance_id, default_company_name, company_cnpj, user_name, language, currency_symbol
        )
        VALUES (:id, :instance_id, :default_company_name, :company_cnpj, :user_name, :language, :currency_symbol)
        """,
        {"id": new_id(), "instance_id": instance_id, **DEFAULT_GLOBAL_SETTINGS},
    )
    await conn.execute(
        """
        INSERT INTO subscriptions (id, instance_id, plan, status, start_date, billing_cycle)
        VALUES (?, ?, 'TRIAL', 'ACTIVE', ?, 'monthly')
        """,
        (new_id(), instance_id, now),
    )
    logger.info("Created instance %s (%s)", name, instance_id)
    return instance_id


async def ensure_role(conn: aiosqlite.Connection, instance_id: str, name: str) -> str:
    await conn.execute(
        """
        INSERT INTO roles (id, name, description, instance_id)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(name, instance_id) DO NOTHING
        """,
        (new_id(), name, ROLE_DESCRIPTIONS[name], instance_id),
    )
    row = await fetchone(conn, "SELECT id FROM roles WHERE name = ? AND instance_id = ?", (name, instance_id))
    if row is None:
        raise SeedError(f"Role {name} missing after insert")
    return row["id"]


async def ensure_admin_user(
    conn: aiosqlite.Connection,
    instance_id: str,
    email: str,
    password_hash: str,
) -> str:
    # An existing account keeps its password and instance.
    await conn.execute(
        """
        INSERT INTO users (id, name, email, password_hash, status, instance_id, created_at)
        VALUES (?, ?, ?, ?, 'ACTIVE', ?, ?)
        ON CONFLICT(email) DO NOTHING
        """,
        (new_id(), ADMIN_USER_NAME, email, password_hash, instance_id, utc_now()),
    )
    row = await fetchone(conn, "SELECT id FROM users WHERE email = ?", (email,))
    if row is None:
        raise SeedError(f"User {email} missing after upsert")
    return row["id"]


async def assign_role(conn: aiosqlite.Connection, user_id: str, role_id: str) -> None:
    await conn.execute(
        "INSERT INTO user_roles (user_id, role_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
        (user_id, role_id),
    )


async def grant_permissions(conn: aiosqlite.Connection, role_id: str, permission_ids: list[str]) -> None:
    await asyncio.gather(
        *(
            conn.execute(
                "INSERT INTO role_permissions (role_id, permission_id) VALUES (?, ?) ON CONFLICT DO NOTHING",
                (role_id, permission_id),
            )
            for permission_id in permission_ids
        )
    )


async def count_users(conn: aiosqlite.Connection) -> int:
    row = await fetchone(conn, "SELECT COUNT(*) AS total FROM users")
    return int(row["total"]) if row is not None else 0


async def _bootstrap_admin(conn: aiosqlite.Connection, settings: Settings) -> tuple[str, dict[str, str]]:
    instance_id = await ensure_instance(conn, settings.admin_instance_name)
    password_hash = hash_password(settings.admin_password, settings.password_hash_rounds)

    roles = {name: await ensure_role(conn, instance_id, name) for name in (ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_USER)}

    user_id = await ensure_admin_user(conn, instance_id, settings.admin_email, password_hash)
    await assign_role(conn, user_id, roles[ROLE_ADMIN])
    if settings.grant_super_admin:
        await assign_role(conn, user_id, roles[ROLE_SUPER_ADMIN])
    return instance_id, roles


async def seed(conn: aiosqlite.Connection, settings: Settings) -> SeedResult:
    """Full bootstrap: permissions, instance, roles, admin user and role grants."""
    permission_ids = await ensure_permissions(conn)
    logger.info("Permissions ensured: %d", len(permission_ids))

    instance_id, roles = await _bootstrap_admin(conn, settings)
    await grant_permissions(conn, roles[ROLE_ADMIN], permission_ids)
    await grant_permissions(conn, roles[ROLE_SUPER_ADMIN], permission_ids)
    await conn.commit()

    return SeedResult(
        instance_id=instance_id,
        admin_email=settings.admin_email,
        is_super_admin=settings.grant_super_admin,
        permissions_assigned=len(permission_ids) * 2,
    )


async def seed_init(conn: aiosqlite.Connection, settings: Settings) -> Optional[SeedResult]:
    """First-boot bootstrap without permissions; skipped once any user exists."""
    if await count_users(conn) > 0:
        logger.info("Database already seeded. Skipping...")
        return None

    instance_id, _ = await _bootstrap_admin(conn, settings)
    await conn.commit()

    return SeedResult(
        instance_id=instance_id,
        admin_email=settings.admin_email,
        is_super_admin=settings.grant_super_admin,
    )
