from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Any


def insert(path: Path, table: str, rows: list[dict[str, Any]]) -> None:
    conn = sqlite3.connect(path)
    try:
        for row in rows:
            columns = ", ".join(f'"{name}"' for name in row)
            placeholders = ", ".join(f":{name}" for name in row)
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", row)
        conn.commit()
    finally:
        conn.close()


def query(path: Path, sql: str, params: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        return [dict(row) for row in conn.execute(sql, params).fetchall()]
    finally:
        conn.close()


def forecast_row(forecast_id: str, planning_id: str, description: str, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": forecast_id,
        "project_planning_id": planning_id,
        "description": description,
        "unit": "sc",
        "quantity_needed": 10.0,
        "unit_price": 35.5,
        "discount_value": None,
        "discount_percentage": None,
        "status": "ordered",
        "is_paid": 0,
        "supplier_id": None,
        "supply_group_id": None,
        "category_id": None,
        "purchase_date": None,
        "estimated_date": None,
        "delivery_date": None,
        "payment_proof": None,
    }
    row.update(overrides)
    return row


def expense_row(expense_id: str, project_id: str, description: str, **overrides: Any) -> dict[str, Any]:
    row = {
        "id": expense_id,
        "project_id": project_id,
        "parent_id": None,
        "type": "material",
        "item_type": "item",
        "wbs": "",
        "order": 0,
        "date": "2026-01-10",
        "description": description,
        "entity_name": "",
        "unit": "sc",
        "quantity": 10.0,
        "unit_price": 35.5,
        "discount_value": 0.0,
        "discount_percentage": None,
        "amount": 355.0,
        "is_paid": 0,
        "status": "PENDING",
        "payment_date": None,
        "payment_proof": None,
        "invoice_doc": None,
        "delivery_date": None,
    }
    row.update(overrides)
    return row
