from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional

import aiosqlite

from backend.services.database import fetchall, fetchone
from backend.services.models import MaterialForecast, Planning, Project, ProjectExpense

EXPENSE_COLUMNS = (
    "id",
    "project_id",
    "parent_id",
    "type",
    "item_type",
    "wbs",
    "order",
    "date",
    "description",
    "entity_name",
    "unit",
    "quantity",
    "unit_price",
    "discount_value",
    "discount_percentage",
    "amount",
    "is_paid",
    "status",
    "payment_date",
    "payment_proof",
    "invoice_doc",
    "delivery_date",
)


def _check_columns(fields: Mapping[str, Any]) -> None:
    unknown = sorted(set(fields) - set(EXPENSE_COLUMNS))
    if unknown:
        raise ValueError(f"Unknown project_expenses columns: {', '.join(unknown)}")


def _to_db(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, Enum):
        return value.value
    return value


class ForecastExpenseStore:
    """Reads forecasts/expenses and writes expense corrections over one connection.

    Each write is committed on its own, so a failure halfway through a run
    leaves the earlier writes in place.
    """

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn

    async def list_projects(self) -> list[Project]:
        rows = await fetchall(self.conn, "SELECT id, name FROM projects ORDER BY name, id")
        return [Project(id=row["id"], name=row["name"]) for row in rows]

    async def get_planning(self, project_id: str) -> Optional[Planning]:
        row = await fetchone(
            self.conn,
            "SELECT id, project_id FROM project_plannings WHERE project_id = ?",
            (project_id,),
        )
        if row is None:
            return None
        return Planning(id=row["id"], project_id=row["project_id"])

    async def list_active_forecasts(self, planning_id: str) -> list[MaterialForecast]:
        rows = await fetchall(
            self.conn,
            """
            SELECT f.*,
                   s.name AS supplier_name,
                   g.title AS supply_group_title
            FROM material_forecasts f
            LEFT JOIN suppliers s ON s.id = f.supplier_id
            LEFT JOIN supply_groups g ON g.id = f.supply_group_id
            WHERE f.project_planning_id = ?
              AND f.status != 'pending'
            ORDER BY f.rowid
            """,
            (planning_id,),
        )
        return [MaterialForecast.from_row(row) for row in rows]

    async def list_material_expenses(self, project_id: str) -> list[ProjectExpense]:
        rows = await fetchall(
            self.conn,
            """
            SELECT * FROM project_expenses
            WHERE project_id = ?
              AND type = 'material'
              AND item_type = 'item'
            ORDER BY rowid
            """,
            (project_id,),
        )
        return [ProjectExpense.from_row(row) for row in rows]

    async def get_expense(self, expense_id: str) -> Optional[ProjectExpense]:
        row = await fetchone(self.conn, "SELECT * FROM project_expenses WHERE id = ?", (expense_id,))
        return ProjectExpense.from_row(row) if row is not None else None

    async def update_expense(self, expense_id: str, fields: Mapping[str, Any]) -> None:
        _check_columns(fields)
        if "id" in fields:
            raise ValueError("Expense id cannot be changed")
        assignments = ", ".join(f'"{name}" = ?' for name in fields)
        params = tuple(_to_db(value) for value in fields.values())
        cursor = await self.conn.execute(
            f"UPDATE project_expenses SET {assignments} WHERE id = ?",
            (*params, expense_id),
        )
        if cursor.rowcount == 0:
            raise LookupError(f"Expense not found: {expense_id}")
        await self.conn.commit()

    async def create_expense(self, fields: Mapping[str, Any]) -> None:
        _check_columns(fields)
        if not fields.get("id"):
            raise ValueError("Expense id is required")
        columns = ", ".join(f'"{name}"' for name in fields)
        placeholders = ", ".join("?" for _ in fields)
        await self.conn.execute(
            f"INSERT INTO project_expenses ({columns}) VALUES ({placeholders})",
            tuple(_to_db(value) for value in fields.values()),
        )
        await self.conn.commit()
