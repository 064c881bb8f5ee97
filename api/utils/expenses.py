"""Additional cost creation shared by clock-out and the manager expense screen."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from models import AdditionalCost, ClockEntry, ExpenseType, Worker
from utils.money import ensure_decimal, validate_decimal_amount
from utils.uk_time import uk_date, uk_today


def get_expense_type(db: Session, organization_id: int, expense_type_id: int, active_only: bool = True) -> ExpenseType:
    """
    Raises:
        ValueError: type missing, inactive, or owned by another organization
    """
    query = db.query(ExpenseType).filter(
        ExpenseType.id == expense_type_id,
        ExpenseType.organization_id == organization_id,
    )
    if active_only:
        query = query.filter(ExpenseType.is_active.is_(True))
    expense_type = query.first()
    if expense_type is None:
        raise ValueError(f"Expense type {expense_type_id} not found")
    return expense_type


def add_cost(
    db: Session,
    worker: Worker,
    expense_type: Optional[ExpenseType] = None,
    clock_entry: Optional[ClockEntry] = None,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    cost_date: Optional[date] = None,
) -> AdditionalCost:
    """
    Attach a cost to a worker (caller commits).

    Defaults: amount from the expense type, date from the entry's UK clock-in
    day (else today), description from the type name.
    """
    if amount is None:
        if expense_type is None:
            raise ValueError("amount is required without an expense type")
        amount = expense_type.amount
    amount = validate_decimal_amount(ensure_decimal(amount))

    if cost_date is None:
        cost_date = uk_date(clock_entry.clock_in) if clock_entry is not None else uk_today()
    if description is None and expense_type is not None:
        description = expense_type.name

    cost = AdditionalCost(
        worker_id=worker.id,
        clock_entry_id=clock_entry.id if clock_entry is not None else None,
        expense_type_id=expense_type.id if expense_type is not None else None,
        amount=amount,
        description=description,
        date=cost_date,
    )
    db.add(cost)
    return cost
