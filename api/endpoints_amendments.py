"""Time amendment requests (worker) and decisions (manager)."""
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import case
from sqlalchemy.orm import Session

from auth import get_current_worker, get_db, get_manager_profile, get_org_id, require_manager
from models import ClockEntry, TimeAmendment, UserAccount, Worker
from schemas import AmendmentCreateIn, AmendmentDecisionIn, AmendmentOut
from utils.audit import record_metric
from utils.clocking import apply_amendment
from utils.notifications import notify_template
from utils.uk_time import as_utc, fmt_long_date, utcnow
from utils.validation import sanitize_input

router = APIRouter(prefix="/api/amendments", tags=["amendments"])


def _amendment_out(amendment: TimeAmendment) -> AmendmentOut:
    out = AmendmentOut.model_validate(amendment)
    entry = amendment.clock_entry
    out.worker_name = amendment.worker.name if amendment.worker else None
    if entry is not None:
        out.job_name = entry.job.name if entry.job else None
        out.original_clock_in = as_utc(entry.clock_in)
        out.original_clock_out = as_utc(entry.clock_out)
    return out


def _get_org_amendment(db: Session, amendment_id: int, org_id: int) -> TimeAmendment:
    amendment = (
        db.query(TimeAmendment)
        .join(Worker, Worker.id == TimeAmendment.worker_id)
        .filter(TimeAmendment.id == amendment_id, Worker.organization_id == org_id)
        .first()
    )
    if not amendment:
        raise HTTPException(status_code=404, detail=f"Amendment {amendment_id} not found")
    return amendment


@router.post("", response_model=AmendmentOut, status_code=status.HTTP_201_CREATED)
def create_amendment(
    payload: AmendmentCreateIn,
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    """Ask a manager to correct the times of one of the caller's entries."""
    entry = db.query(ClockEntry).filter(
        ClockEntry.id == payload.clock_entry_id,
        ClockEntry.worker_id == worker.id,
    ).first()
    if not entry:
        raise HTTPException(status_code=404, detail=f"Clock entry {payload.clock_entry_id} not found")

    reason = sanitize_input(payload.reason)
    if not reason:
        raise HTTPException(status_code=400, detail="Reason is required")
    if payload.requested_clock_in is None and payload.requested_clock_out is None:
        raise HTTPException(status_code=400, detail="Provide requested_clock_in and/or requested_clock_out")

    effective_in = payload.requested_clock_in or as_utc(entry.clock_in)
    effective_out = payload.requested_clock_out or as_utc(entry.clock_out)
    if effective_out is not None and effective_out <= effective_in:
        raise HTTPException(status_code=400, detail="Clock out must be after clock in")

    pending = db.query(TimeAmendment.id).filter(
        TimeAmendment.clock_entry_id == entry.id,
        TimeAmendment.status == "pending",
    ).first()
    if pending:
        raise HTTPException(status_code=409, detail="A pending amendment already exists for this entry")

    amendment = TimeAmendment(
        clock_entry_id=entry.id,
        worker_id=worker.id,
        status="pending",
        requested_clock_in=payload.requested_clock_in,
        requested_clock_out=payload.requested_clock_out,
        reason=reason,
        manager_id=worker.manager_id,
    )
    db.add(amendment)
    db.commit()
    db.refresh(amendment)

    record_metric("amendment.create", {"worker_id": worker.id, "amendment_id": amendment.id})
    return _amendment_out(amendment)


@router.get("/mine", response_model=List[AmendmentOut])
def my_amendments(
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    rows = (
        db.query(TimeAmendment)
        .filter(TimeAmendment.worker_id == worker.id)
        .order_by(TimeAmendment.created_at.desc(), TimeAmendment.id.desc())
        .all()
    )
    return [_amendment_out(a) for a in rows]


@router.get("", response_model=List[AmendmentOut])
def list_amendments(
    status_filter: Optional[Literal["pending", "approved", "rejected"]] = Query(None, alias="status"),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Organization amendments, pending first then newest."""
    query = (
        db.query(TimeAmendment)
        .join(Worker, Worker.id == TimeAmendment.worker_id)
        .filter(Worker.organization_id == get_org_id(account))
    )
    if status_filter:
        query = query.filter(TimeAmendment.status == status_filter)
    pending_first = case((TimeAmendment.status == "pending", 0), else_=1)
    rows = query.order_by(pending_first, TimeAmendment.created_at.desc(), TimeAmendment.id.desc()).all()
    return [_amendment_out(a) for a in rows]


def _decide(db: Session, account: UserAccount, amendment_id: int, decision: str, notes: Optional[str]) -> TimeAmendment:
    amendment = _get_org_amendment(db, amendment_id, get_org_id(account))
    if amendment.status != "pending":
        raise HTTPException(status_code=409, detail=f"Amendment already {amendment.status}")

    if decision == "approved":
        entry = amendment.clock_entry
        effective_in = as_utc(amendment.requested_clock_in or entry.clock_in)
        effective_out = as_utc(amendment.requested_clock_out or entry.clock_out)
        if effective_out is not None and effective_out <= effective_in:
            raise HTTPException(
                status_code=400,
                detail="Clock-out time must be after clock-in time (entry changed since the request)",
            )

    manager = get_manager_profile(db, account)
    now = utcnow()
    amendment.status = decision
    amendment.manager_notes = notes
    amendment.manager_id = manager.id if manager else amendment.manager_id
    amendment.approved_by = manager.id if manager else None
    amendment.approved_at = now
    amendment.processed_at = now

    if decision == "approved":
        apply_amendment(db, amendment, approved_by_manager_id=amendment.approved_by, changed_by=account.id)

    notify_template(
        db, amendment.worker_id, f"amendment_{decision}",
        {"date": fmt_long_date(amendment.clock_entry.clock_in), "notes": notes},
    )
    db.commit()
    db.refresh(amendment)

    record_metric("amendment.decision", {"amendment_id": amendment.id, "account_id": account.id}, outcome=decision)
    return amendment


@router.post("/{amendment_id}/approve", response_model=AmendmentOut)
def approve_amendment(
    amendment_id: int,
    payload: AmendmentDecisionIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Approve and copy the requested times onto the clock entry."""
    notes = sanitize_input(payload.manager_notes) or None
    return _amendment_out(_decide(db, account, amendment_id, "approved", notes))


@router.post("/{amendment_id}/reject", response_model=AmendmentOut)
def reject_amendment(
    amendment_id: int,
    payload: AmendmentDecisionIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    notes = sanitize_input(payload.manager_notes)
    if not notes:
        raise HTTPException(status_code=400, detail="manager_notes is required when rejecting")
    return _amendment_out(_decide(db, account, amendment_id, "rejected", notes))
