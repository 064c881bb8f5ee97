"""Worker management endpoints (CRUD scoped to the caller's organization)."""
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from auth import create_account, get_current_worker, get_db, get_org_id, require_manager
from models import Manager, UserAccount, Worker
from schemas_workers import (
    PaginatedWorkersOut,
    WorkerCreatedOut,
    WorkerCreateIn,
    WorkerOut,
    WorkerUpdateIn,
)
from utils.audit import log_action, record_metric
from utils.capacity import CapacityError, ensure_capacity
from utils.postcodes import format_postcode, is_valid_uk_postcode
from utils.validation import sanitize_input, validate_email, validate_name, validate_phone

router = APIRouter(prefix="/api/workers", tags=["workers"])


def _get_worker(db: Session, worker_id: int, org_id: int) -> Worker:
    worker = db.query(Worker).filter(
        Worker.id == worker_id,
        Worker.organization_id == org_id
    ).first()
    if not worker:
        raise HTTPException(status_code=404, detail=f"Worker {worker_id} not found")
    return worker


def _check_manager(db: Session, manager_id: Optional[int], org_id: int) -> None:
    if manager_id is None:
        return
    exists = db.query(Manager.id).filter(
        Manager.id == manager_id,
        Manager.organization_id == org_id
    ).first()
    if not exists:
        raise HTTPException(status_code=400, detail=f"Manager {manager_id} not found")


def _clean_fields(data: dict) -> dict:
    """Sanitize and validate the editable text fields present in data."""
    if data.get("name") is not None:
        data["name"] = sanitize_input(data["name"])
        if not validate_name(data["name"]):
            raise HTTPException(status_code=400, detail="Invalid name")
    for field in ("phone", "emergency_phone"):
        if data.get(field) and not validate_phone(data[field]):
            raise HTTPException(status_code=400, detail=f"Invalid {field.replace('_', ' ')}")
    if data.get("postcode"):
        if not is_valid_uk_postcode(data["postcode"]):
            raise HTTPException(status_code=400, detail="Invalid UK postcode")
        data["postcode"] = format_postcode(data["postcode"])
    for field in ("address", "emergency_contact"):
        if data.get(field) is not None:
            data[field] = sanitize_input(data[field])
    return data


@router.get("", response_model=PaginatedWorkersOut)
async def list_workers(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    is_active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """List workers with pagination, active filter and name/email search."""
    query = db.query(Worker).filter(Worker.organization_id == get_org_id(account))

    if is_active is not None:
        query = query.filter(Worker.is_active == is_active)

    if search:
        term = f"%{search.lower()}%"
        query = query.filter(or_(
            func.lower(Worker.name).like(term),
            func.lower(Worker.email).like(term),
        ))

    total = query.count()
    items = query.order_by(Worker.name, Worker.id).offset((page - 1) * limit).limit(limit).all()

    return PaginatedWorkersOut(
        items=items,
        total=total,
        page=page,
        pages=math.ceil(total / limit) if total else 0,
        limit=limit,
    )


@router.post("", response_model=WorkerCreatedOut, status_code=status.HTTP_201_CREATED)
async def create_worker(
    data: WorkerCreateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """
    Create a worker and its login.

    The response carries temporary_password once; the worker must change
    it on first login.
    """
    org_id = get_org_id(account)
    fields = _clean_fields(data.model_dump())
    email = fields.pop("email").strip().lower()
    if not validate_email(email):
        raise HTTPException(status_code=400, detail="Invalid email address")
    _check_manager(db, fields.get("manager_id"), org_id)

    try:
        ensure_capacity(db, org_id, "workers")
    except CapacityError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Capacity limit reached")

    new_account, temporary_password = create_account(db, email, "worker", org_id)
    worker = Worker(
        account_id=new_account.id,
        organization_id=org_id,
        email=email,
        is_active=True,
        **fields,
    )
    db.add(worker)
    db.commit()
    db.refresh(worker)

    record_metric("worker.create", {"org_id": org_id, "worker_id": worker.id})
    out = WorkerOut.model_validate(worker).model_dump()
    return WorkerCreatedOut(**out, temporary_password=temporary_password)


@router.get("/me", response_model=WorkerOut)
async def get_my_profile(worker: Worker = Depends(get_current_worker)):
    return worker


@router.get("/{worker_id}", response_model=WorkerOut)
async def get_worker(
    worker_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    return _get_worker(db, worker_id, get_org_id(account))


@router.put("/{worker_id}", response_model=WorkerOut)
async def update_worker(
    worker_id: int,
    data: WorkerUpdateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Partial update. Re-activating a worker needs a free seat."""
    org_id = get_org_id(account)
    worker = _get_worker(db, worker_id, org_id)
    changes = _clean_fields(data.model_dump(exclude_unset=True))
    _check_manager(db, changes.get("manager_id"), org_id)

    if changes.get("is_active") and not worker.is_active:
        try:
            ensure_capacity(db, org_id, "workers")
        except CapacityError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Capacity limit reached")

    for field, value in changes.items():
        if value is None and field in ("name", "hourly_rate", "is_active"):
            continue
        setattr(worker, field, value)

    if "is_active" in changes and changes["is_active"] is not None:
        linked = db.get(UserAccount, worker.account_id)
        if linked:
            linked.is_active = changes["is_active"]

    db.commit()
    db.refresh(worker)
    return worker


@router.delete("/{worker_id}", status_code=status.HTTP_200_OK)
async def deactivate_worker(
    worker_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db)
):
    """Soft delete: the worker and its login are deactivated, history is kept."""
    worker = _get_worker(db, worker_id, get_org_id(account))
    worker.is_active = False
    linked = db.get(UserAccount, worker.account_id)
    if linked:
        linked.is_active = False
    db.commit()

    log_action(account.id, "worker.deactivate", {"worker_id": worker.id})
    return {"status": "ok", "id": worker.id, "is_active": False}
