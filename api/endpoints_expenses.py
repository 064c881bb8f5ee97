"""Expense types and additional costs."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_any_role, require_manager
from endpoints_clock_entries import get_org_entry
from models import AdditionalCost, ExpenseType, UserAccount, Worker
from schemas import AdditionalCostIn, AdditionalCostOut, ExpenseTypeIn, ExpenseTypeOut, ExpenseTypeUpdateIn
from utils.audit import record_metric
from utils.expenses import add_cost, get_expense_type
from utils.validation import sanitize_input

router = APIRouter(prefix="/api", tags=["expenses"])


def _get_type(db: Session, type_id: int, org_id: int) -> ExpenseType:
    try:
        return get_expense_type(db, org_id, type_id, active_only=False)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _ensure_unique_name(db: Session, org_id: int, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(ExpenseType.id).filter(
        ExpenseType.organization_id == org_id,
        func.lower(ExpenseType.name) == name.lower(),
    )
    if exclude_id is not None:
        query = query.filter(ExpenseType.id != exclude_id)
    if query.first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=f"Expense type '{name}' already exists")


def _cost_out(cost: AdditionalCost) -> AdditionalCostOut:
    out = AdditionalCostOut.model_validate(cost)
    out.worker_name = cost.worker.name if cost.worker else None
    out.expense_type_name = cost.expense_type.name if cost.expense_type else None
    return out


# --- Expense types ---

@router.get("/expense-types", response_model=List[ExpenseTypeOut])
def list_expense_types(
    include_inactive: bool = Query(False),
    account: UserAccount = Depends(require_any_role),
    db: Session = Depends(get_db),
):
    query = db.query(ExpenseType).filter(ExpenseType.organization_id == get_org_id(account))
    if account.role == "worker" or not include_inactive:
        query = query.filter(ExpenseType.is_active.is_(True))
    return query.order_by(ExpenseType.name).all()


@router.post("/expense-types", response_model=ExpenseTypeOut, status_code=status.HTTP_201_CREATED)
def create_expense_type(
    payload: ExpenseTypeIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    org_id = get_org_id(account)
    name = sanitize_input(payload.name)
    if not name:
        raise HTTPException(status_code=400, detail="Name is required")
    _ensure_unique_name(db, org_id, name)

    expense_type = ExpenseType(
        organization_id=org_id,
        name=name,
        amount=payload.amount,
        calculation_type=payload.calculation_type,
        is_active=True,
    )
    db.add(expense_type)
    db.commit()
    db.refresh(expense_type)
    return expense_type


@router.put("/expense-types/{type_id}", response_model=ExpenseTypeOut)
def update_expense_type(
    type_id: int,
    payload: ExpenseTypeUpdateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    org_id = get_org_id(account)
    expense_type = _get_type(db, type_id, org_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    if "name" in changes:
        changes["name"] = sanitize_input(changes["name"])
        if not changes["name"]:
            raise HTTPException(status_code=400, detail="Name is required")
        _ensure_unique_name(db, org_id, changes["name"], exclude_id=expense_type.id)

    for field, value in changes.items():
        setattr(expense_type, field, value)
    db.commit()
    db.refresh(expense_type)
    return expense_type


@router.delete("/expense-types/{type_id}")
def deactivate_expense_type(
    type_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Deactivate; existing costs keep pointing at the type."""
    expense_type = _get_type(db, type_id, get_org_id(account))
    expense_type.is_active = False
    db.commit()
    return {"status": "ok", "id": expense_type.id, "is_active": False}


# --- Additional costs ---

@router.post("/additional-costs", response_model=AdditionalCostOut, status_code=status.HTTP_201_CREATED)
def create_additional_cost(
    payload: AdditionalCostIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    org_id = get_org_id(account)
    worker = db.query(Worker).filter(Worker.id == payload.worker_id, Worker.organization_id == org_id).first()
    if not worker:
        raise HTTPException(status_code=404, detail=f"Worker {payload.worker_id} not found")

    entry = None
    if payload.clock_entry_id is not None:
        entry = get_org_entry(db, payload.clock_entry_id, org_id)
        if entry.worker_id != worker.id:
            raise HTTPException(status_code=400, detail="Clock entry belongs to another worker")

    try:
        expense_type = get_expense_type(db, org_id, payload.expense_type_id) if payload.expense_type_id else None
        cost = add_cost(
            db, worker,
            expense_type=expense_type,
            clock_entry=entry,
            amount=payload.amount,
            description=sanitize_input(payload.description) or None,
            cost_date=payload.date,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    db.commit()
    db.refresh(cost)

    record_metric("expense.create", {"worker_id": worker.id, "cost_id": cost.id, "amount": cost.amount})
    return _cost_out(cost)


@router.get("/additional-costs", response_model=List[AdditionalCostOut])
def list_additional_costs(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    worker_id: Optional[int] = Query(None),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    query = (
        db.query(AdditionalCost)
        .join(Worker, Worker.id == AdditionalCost.worker_id)
        .filter(Worker.organization_id == get_org_id(account))
    )
    if date_from:
        query = query.filter(AdditionalCost.date >= date_from)
    if date_to:
        query = query.filter(AdditionalCost.date <= date_to)
    if worker_id:
        query = query.filter(AdditionalCost.worker_id == worker_id)
    return [_cost_out(c) for c in query.order_by(AdditionalCost.date.desc(), AdditionalCost.id.desc()).all()]
