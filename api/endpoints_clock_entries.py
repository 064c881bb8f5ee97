"""
Manager review of clock entries.

Paginated listing with worker/job/date filters, change history, and manual
time corrections (recorded as "manual_edit" history rows).
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_manager
from models import ClockEntry, ClockEntryHistory, UserAccount, Worker
from schemas import ClockEntryEditIn, ClockEntryHistoryOut, ClockEntryOut, PaginatedClockEntriesOut
from utils.audit import record_metric
from utils.clocking import append_note, compute_total_hours, write_history
from utils.uk_time import as_utc, uk_day_bounds_utc
from utils.validation import sanitize_input

router = APIRouter(prefix="/api/clock-entries", tags=["clock-entries"])


def get_org_entry(db: Session, entry_id: int, org_id: int) -> ClockEntry:
    entry = (
        db.query(ClockEntry)
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(ClockEntry.id == entry_id, Worker.organization_id == org_id)
        .first()
    )
    if not entry:
        raise HTTPException(status_code=404, detail=f"Clock entry {entry_id} not found")
    return entry


@router.get("", response_model=PaginatedClockEntriesOut)
def list_clock_entries(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    worker_id: Optional[int] = Query(None),
    job_id: Optional[int] = Query(None),
    date_from: Optional[date] = Query(None, description="UK calendar day, inclusive"),
    date_to: Optional[date] = Query(None, description="UK calendar day, inclusive"),
    open_only: bool = Query(False),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    query = (
        db.query(ClockEntry)
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(Worker.organization_id == get_org_id(account))
    )

    if worker_id:
        query = query.filter(ClockEntry.worker_id == worker_id)
    if job_id:
        query = query.filter(ClockEntry.job_id == job_id)
    if date_from:
        query = query.filter(ClockEntry.clock_in >= uk_day_bounds_utc(date_from)[0])
    if date_to:
        query = query.filter(ClockEntry.clock_in < uk_day_bounds_utc(date_to)[1])
    if open_only:
        query = query.filter(ClockEntry.clock_out.is_(None))

    total = query.count()
    pages = (total + limit - 1) // limit if total > 0 else 1
    entries = query.order_by(desc(ClockEntry.clock_in)).offset((page - 1) * limit).limit(limit).all()

    return PaginatedClockEntriesOut(
        items=[ClockEntryOut.from_entry(e) for e in entries],
        total=total,
        pages=pages,
        page=page,
        limit=limit,
    )


@router.get("/{entry_id}/history", response_model=List[ClockEntryHistoryOut])
def entry_history(
    entry_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    entry = get_org_entry(db, entry_id, get_org_id(account))
    return (
        db.query(ClockEntryHistory)
        .filter(ClockEntryHistory.clock_entry_id == entry.id)
        .order_by(ClockEntryHistory.created_at, ClockEntryHistory.id)
        .all()
    )


@router.put("/{entry_id}", response_model=ClockEntryOut)
def edit_clock_entry(
    entry_id: int,
    payload: ClockEntryEditIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Correct an entry's times; total_hours is recomputed."""
    entry = get_org_entry(db, entry_id, get_org_id(account))
    if payload.clock_in is None and payload.clock_out is None and payload.notes is None:
        raise HTTPException(status_code=400, detail="Nothing to update")

    new_in = payload.clock_in or as_utc(entry.clock_in)
    new_out = payload.clock_out or as_utc(entry.clock_out)
    if new_out is not None and new_out <= new_in:
        raise HTTPException(status_code=400, detail="clock_out must be after clock_in")

    old_in, old_out, old_hours = entry.clock_in, entry.clock_out, entry.total_hours
    entry.clock_in = new_in
    entry.clock_out = new_out
    entry.total_hours = compute_total_hours(new_in, new_out)

    note = sanitize_input(payload.notes) if payload.notes else None
    if note:
        entry.notes = append_note(entry.notes, note)

    write_history(
        db, entry, "manual_edit",
        old_clock_in=old_in, old_clock_out=old_out, old_total_hours=old_hours,
        changed_by=account.id,
        notes=note,
    )
    db.commit()
    db.refresh(entry)

    record_metric("clock.manual_edit", {"entry_id": entry.id, "account_id": account.id})
    return ClockEntryOut.from_entry(entry)
