from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional


class ExpenseStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    DELIVERED = "DELIVERED"


@dataclass(frozen=True)
class Project:
    id: str
    name: str


@dataclass(frozen=True)
class Planning:
    id: str
    project_id: str


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str


@dataclass(frozen=True)
class SupplyGroup:
    """A purchase lot ("lote") clustering forecasts under one label."""

    id: str
    title: Optional[str]


@dataclass(frozen=True)
class MaterialForecast:
    id: str
    project_planning_id: str
    description: str
    unit: str
    quantity_needed: float
    unit_price: float
    status: str
    is_paid: bool
    discount_value: Optional[float] = None
    discount_percentage: Optional[float] = None
    supplier: Optional[Supplier] = None
    supply_group: Optional[SupplyGroup] = None
    category_id: Optional[str] = None
    purchase_date: Optional[str] = None
    estimated_date: Optional[str] = None
    delivery_date: Optional[str] = None
    payment_proof: Optional[str] = None

    @property
    def supply_group_id(self) -> Optional[str]:
        return self.supply_group.id if self.supply_group else None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MaterialForecast:
        supplier = None
        if row["supplier_id"]:
            supplier = Supplier(id=row["supplier_id"], name=row["supplier_name"] or "")
        supply_group = None
        if row["supply_group_id"]:
            supply_group = SupplyGroup(id=row["supply_group_id"], title=row["supply_group_title"])
        return cls(
            id=row["id"],
            project_planning_id=row["project_planning_id"],
            description=row["description"],
            unit=row["unit"],
            quantity_needed=row["quantity_needed"],
            unit_price=row["unit_price"],
            status=row["status"],
            is_paid=bool(row["is_paid"]),
            discount_value=row["discount_value"],
            discount_percentage=row["discount_percentage"],
            supplier=supplier,
            supply_group=supply_group,
            category_id=row["category_id"],
            purchase_date=row["purchase_date"],
            estimated_date=row["estimated_date"],
            delivery_date=row["delivery_date"],
            payment_proof=row["payment_proof"],
        )


@dataclass(frozen=True)
class ProjectExpense:
    id: str
    project_id: str
    type: str
    item_type: str
    description: str
    entity_name: str
    unit: str
    quantity: float
    unit_price: float
    amount: float
    is_paid: bool
    status: ExpenseStatus
    parent_id: Optional[str] = None
    discount_value: Optional[float] = None
    discount_percentage: Optional[float] = None
    date: Optional[str] = None
    payment_date: Optional[str] = None
    payment_proof: Optional[str] = None
    delivery_date: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ProjectExpense:
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            type=row["type"],
            item_type=row["item_type"],
            description=row["description"],
            entity_name=row["entity_name"],
            unit=row["unit"],
            quantity=row["quantity"],
            unit_price=row["unit_price"],
            amount=row["amount"],
            is_paid=bool(row["is_paid"]),
            status=ExpenseStatus(row["status"]),
            parent_id=row["parent_id"],
            discount_value=row["discount_value"],
            discount_percentage=row["discount_percentage"],
            date=row["date"],
            payment_date=row["payment_date"],
            payment_proof=row["payment_proof"],
            delivery_date=row["delivery_date"],
        )
