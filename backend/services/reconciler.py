"""Repair of material forecasts whose expense rows were lost or overwritten.

Expenses are created with the same id as the forecast they come from. An
older description-based lookup matched the first expense for every forecast
sharing a description, so some expenses carry a sibling's values and some
forecasts never got an expense. ``reconcile`` walks every project, compares
each non-pending forecast to the expense with its id and fixes or creates
the expense. Nothing is written when ``dry_run`` is set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Optional, Protocol

from backend.services.models import (
    ExpenseStatus,
    MaterialForecast,
    Planning,
    Project,
    ProjectExpense,
    SupplyGroup,
)

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
FORECAST_DELIVERED = "delivered"


class ReconcileStore(Protocol):
    async def list_projects(self) -> list[Project]: ...

    async def get_planning(self, project_id: str) -> Optional[Planning]: ...

    async def list_active_forecasts(self, planning_id: str) -> list[MaterialForecast]: ...

    async def list_material_expenses(self, project_id: str) -> list[ProjectExpense]: ...

    async def update_expense(self, expense_id: str, fields: dict[str, Any]) -> None: ...

    async def create_expense(self, fields: dict[str, Any]) -> None: ...


def expense_prefix(status: str, is_paid: bool) -> str:
    if status == FORECAST_DELIVERED:
        return "Pedido Entregue"
    if is_paid:
        return "Pedido Pago"
    return "Pedido Pendente"


def resolve_expense_status(status: str, is_paid: bool) -> ExpenseStatus:
    if status == FORECAST_DELIVERED:
        return ExpenseStatus.DELIVERED
    if is_paid:
        return ExpenseStatus.PAID
    return ExpenseStatus.PENDING


def normalize_money(value: float) -> float:
    """Round to cents, halves away from zero, on the value's decimal repr."""
    return float(Decimal(repr(value)).quantize(CENT, rounding=ROUND_HALF_UP))


def compute_net_amount(quantity: float, unit_price: float, discount_value: float = 0.0) -> float:
    gross = quantity * unit_price
    return max(0.0, normalize_money(gross - discount_value))


def supply_group_label(group: Optional[SupplyGroup]) -> str:
    if group is None:
        return ""
    return f' | Lote "{group.title or group.id[:8]}"'


def _num(value: Optional[float]) -> str:
    if value is None:
        return "null"
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


@dataclass(frozen=True)
class ExpectedExpense:
    description: str
    unit: str
    quantity: float
    unit_price: float
    discount_value: float
    discount_percentage: Optional[float]
    amount: float
    is_paid: bool
    status: ExpenseStatus
    entity_name: Optional[str]


def expected_projection(forecast: MaterialForecast) -> ExpectedExpense:
    discount = normalize_money(forecast.discount_value or 0)
    return ExpectedExpense(
        description=f"{expense_prefix(forecast.status, forecast.is_paid)}: {forecast.description}",
        unit=forecast.unit,
        quantity=forecast.quantity_needed,
        unit_price=forecast.unit_price,
        discount_value=discount,
        discount_percentage=forecast.discount_percentage,
        amount=compute_net_amount(forecast.quantity_needed, forecast.unit_price, discount),
        is_paid=forecast.is_paid,
        status=resolve_expense_status(forecast.status, forecast.is_paid),
        entity_name=forecast.supplier.name if forecast.supplier else None,
    )


def expense_diffs(expense: ProjectExpense, expected: ExpectedExpense) -> list[str]:
    """Human-readable mismatches; empty when the expense is already correct."""
    diffs: list[str] = []
    if expense.quantity != expected.quantity:
        diffs.append(f"qty: {_num(expense.quantity)} → {_num(expected.quantity)}")
    if expense.unit_price != expected.unit_price:
        diffs.append(f"unitPrice: {_num(expense.unit_price)} → {_num(expected.unit_price)}")
    current_amount = normalize_money(expense.amount)
    if current_amount != expected.amount:
        diffs.append(f"amount: {_num(current_amount)} → {_num(expected.amount)}")
    if expense.description != expected.description:
        diffs.append(f'desc: "{expense.description}" → "{expected.description}"')
    return diffs


def find_orphan_expense(
    forecast: MaterialForecast,
    expenses: list[ProjectExpense],
    forecast_ids: set[str],
) -> Optional[ProjectExpense]:
    suffix = f": {forecast.description}"
    for expense in expenses:
        if expense.description.endswith(suffix) and expense.id in forecast_ids and expense.id != forecast.id:
            return expense
    return None


def resolve_parent_id(
    forecast: MaterialForecast,
    forecasts: list[MaterialForecast],
    expense_by_id: dict[str, ProjectExpense],
) -> Optional[str]:
    if forecast.category_id:
        return forecast.category_id
    if not forecast.supply_group_id:
        return None
    for sibling in forecasts:
        if sibling.id == forecast.id or sibling.supply_group_id != forecast.supply_group_id:
            continue
        sibling_expense = expense_by_id.get(sibling.id)
        if sibling_expense is not None and sibling_expense.parent_id:
            return sibling_expense.parent_id
    return None


def correction_fields(expense: ProjectExpense, expected: ExpectedExpense) -> dict[str, Any]:
    return {
        "description": expected.description,
        "unit": expected.unit,
        "quantity": expected.quantity,
        "unit_price": expected.unit_price,
        "discount_value": expected.discount_value,
        "discount_percentage": expected.discount_percentage,
        "amount": expected.amount,
        "is_paid": expected.is_paid,
        "status": expected.status,
        "entity_name": expected.entity_name or expense.entity_name,
    }


def creation_fields(
    forecast: MaterialForecast,
    project: Project,
    expected: ExpectedExpense,
    parent_id: Optional[str],
    today: date,
) -> dict[str, Any]:
    effective_date = forecast.purchase_date or forecast.estimated_date or today.isoformat()
    return {
        "id": forecast.id,
        "project_id": project.id,
        "parent_id": parent_id,
        "type": "material",
        "item_type": "item",
        "wbs": "",
        "order": 0,
        "date": effective_date,
        "description": expected.description,
        "entity_name": expected.entity_name or "",
        "unit": expected.unit,
        "quantity": expected.quantity,
        "unit_price": expected.unit_price,
        "discount_value": expected.discount_value,
        "discount_percentage": expected.discount_percentage,
        "amount": expected.amount,
        "is_paid": expected.is_paid,
        "status": expected.status,
        "payment_date": effective_date if expected.is_paid else None,
        "payment_proof": forecast.payment_proof,
        "invoice_doc": None,
        "delivery_date": forecast.delivery_date,
    }


@dataclass
class ReconcileAction:
    kind: str
    project_id: str
    project_name: str
    forecast_id: str
    forecast_description: str
    expected: ExpectedExpense
    diffs: list[str] = field(default_factory=list)
    orphan_expense_id: Optional[str] = None
    parent_id: Optional[str] = None


@dataclass
class ProjectTally:
    project_id: str
    project_name: str
    already_ok: int = 0
    fixed: int = 0
    created: int = 0


@dataclass
class ReconcileSummary:
    dry_run: bool
    already_ok: int = 0
    fixed: int = 0
    created: int = 0
    projects: list[ProjectTally] = field(default_factory=list)
    actions: list[ReconcileAction] = field(default_factory=list)

    @property
    def total_processed(self) -> int:
        return self.already_ok + self.fixed + self.created


def _log_fix(project: Project, forecast: MaterialForecast, diffs: list[str]) -> None:
    logger.info(
        '[FIX] Project "%s" | Forecast "%s" (%s)%s\n      %s',
        project.name,
        forecast.description,
        forecast.id[:8],
        supply_group_label(forecast.supply_group),
        " | ".join(diffs),
    )


def _log_create(
    project: Project,
    forecast: MaterialForecast,
    expected: ExpectedExpense,
    orphan: Optional[ProjectExpense],
) -> None:
    if orphan is not None:
        reason = (
            f"Expense never created; expense {orphan.id[:8]} with the same description "
            f"belongs to forecast {orphan.id[:8]}"
        )
    else:
        reason = "No expense with a matching id."
    logger.info(
        '[CREATE] Project "%s" | Forecast "%s" (%s)%s\n         %s\n         Create: qty=%s, unit=%s, unitPrice=%s, amount=%s',
        project.name,
        forecast.description,
        forecast.id[:8],
        supply_group_label(forecast.supply_group),
        reason,
        _num(expected.quantity),
        expected.unit,
        _num(expected.unit_price),
        _num(expected.amount),
    )


async def reconcile_project(
    store: ReconcileStore,
    project: Project,
    summary: ReconcileSummary,
    *,
    today: date,
) -> Optional[ProjectTally]:
    planning = await store.get_planning(project.id)
    if planning is None:
        return None

    forecasts = await store.list_active_forecasts(planning.id)
    if not forecasts:
        return None

    expenses = await store.list_material_expenses(project.id)
    expense_by_id = {expense.id: expense for expense in expenses}
    forecast_ids = {forecast.id for forecast in forecasts}
    tally = ProjectTally(project_id=project.id, project_name=project.name)

    for forecast in forecasts:
        expected = expected_projection(forecast)
        expense = expense_by_id.get(forecast.id)

        if expense is not None:
            diffs = expense_diffs(expense, expected)
            if not diffs:
                tally.already_ok += 1
                continue

            _log_fix(project, forecast, diffs)
            summary.actions.append(
                ReconcileAction(
                    kind="fix",
                    project_id=project.id,
                    project_name=project.name,
                    forecast_id=forecast.id,
                    forecast_description=forecast.description,
                    expected=expected,
                    diffs=diffs,
                    parent_id=expense.parent_id,
                )
            )
            if not summary.dry_run:
                await store.update_expense(expense.id, correction_fields(expense, expected))
            tally.fixed += 1
            continue

        orphan = find_orphan_expense(forecast, expenses, forecast_ids)
        parent_id = resolve_parent_id(forecast, forecasts, expense_by_id)
        _log_create(project, forecast, expected, orphan)
        summary.actions.append(
            ReconcileAction(
                kind="create",
                project_id=project.id,
                project_name=project.name,
                forecast_id=forecast.id,
                forecast_description=forecast.description,
                expected=expected,
                orphan_expense_id=orphan.id if orphan else None,
                parent_id=parent_id,
            )
        )
        if not summary.dry_run:
            await store.create_expense(creation_fields(forecast, project, expected, parent_id, today))
        tally.created += 1

    if tally.fixed or tally.created:
        logger.info(
            '  → Project "%s": %d fixed, %d created',
            project.name,
            tally.fixed,
            tally.created,
        )
    return tally


async def reconcile(
    store: ReconcileStore,
    *,
    dry_run: bool,
    today: Optional[Callable[[], date]] = None,
) -> ReconcileSummary:
    summary = ReconcileSummary(dry_run=dry_run)
    run_date = (today or date.today)()

    for project in await store.list_projects():
        tally = await reconcile_project(store, project, summary, today=run_date)
        if tally is None:
            continue
        summary.projects.append(tally)
        summary.already_ok += tally.already_ok
        summary.fixed += tally.fixed
        summary.created += tally.created

    return summary
