"""Worker clock-in/out endpoints."""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from sqlalchemy.orm import Session

from auth import get_current_worker, get_db
from config import settings
from db import SessionLocal
from models import ClockEntry, Job, Worker
from schemas import ClockEntryOut, ClockInIn, ClockOutIn, OvertimeRequestIn
from utils.audit import record_metric
from utils.clocking import append_note, compute_total_hours
from utils.expenses import add_cost, get_expense_type
from utils.geo import GeofenceError, check_geofence
from utils.idempotency import remember
from utils.photos import decode_photo, save_photo, store_photo
from utils.uk_time import uk_day_bounds_utc, utcnow

router = APIRouter(prefix="/api/clock", tags=["clock"])


def _open_entry(db: Session, worker_id: int) -> Optional[ClockEntry]:
    return (
        db.query(ClockEntry)
        .filter(ClockEntry.worker_id == worker_id, ClockEntry.clock_out.is_(None))
        .order_by(ClockEntry.clock_in.desc())
        .first()
    )


@router.post("/in", response_model=ClockEntryOut, status_code=status.HTTP_201_CREATED)
def clock_in(
    payload: ClockInIn,
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    """
    Start a shift at a job.

    Errors:
        403 outside the job's geofence (detail carries the distance)
        404 job missing, inactive or in another organization
        409 already clocked in, or Idempotency-Key replayed
    """
    if _open_entry(db, worker.id):
        raise HTTPException(status_code=409, detail="Already clocked in")

    job = db.query(Job).filter(
        Job.id == payload.job_id,
        Job.organization_id == worker.organization_id,
        Job.is_active.is_(True),
    ).first()
    if not job:
        raise HTTPException(status_code=404, detail=f"Job {payload.job_id} not found")

    try:
        distance = check_geofence(job, payload.latitude, payload.longitude)
    except GeofenceError as e:
        record_metric(
            "clock.geofence_rejected",
            {"worker_id": worker.id, "job_id": job.id, "distance_m": e.distance_m, "radius_m": e.radius_m},
            outcome="denied",
        )
        raise HTTPException(status_code=403, detail=str(e))

    photo = None
    if payload.photo:
        try:
            photo = decode_photo(payload.photo)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    if idempotency_key and not remember(idempotency_key, SessionLocal, scope=f"clock.in:{worker.id}"):
        raise HTTPException(status_code=409, detail="Duplicate request (Idempotency-Key already used)")

    photo_path = store_photo(*photo, worker.id, "clock_in") if photo else None

    entry = ClockEntry(
        worker_id=worker.id,
        job_id=job.id,
        clock_in=utcnow(),
        clock_in_lat=payload.latitude,
        clock_in_lng=payload.longitude,
        clock_in_photo=photo_path,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)

    record_metric("clock.in", {"worker_id": worker.id, "job_id": job.id, "entry_id": entry.id, "distance_m": distance})
    return ClockEntryOut.from_entry(entry)


@router.post("/out", response_model=ClockEntryOut)
def clock_out(
    payload: ClockOutIn,
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    """
    Close the open shift and attach selected expenses.

    Shifts shorter than MIN_SHIFT_DURATION_S are kept but flagged
    needs_approval.
    """
    entry = _open_entry(db, worker.id)
    if not entry:
        raise HTTPException(status_code=404, detail="Not clocked in")

    try:
        expense_types = [
            get_expense_type(db, worker.organization_id, sel.expense_type_id)
            for sel in payload.expenses
        ]
        photo_path = save_photo(payload.photo, worker.id, "clock_out") if payload.photo else None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    entry.clock_out = utcnow()
    entry.clock_out_lat = payload.latitude
    entry.clock_out_lng = payload.longitude
    entry.clock_out_photo = photo_path
    entry.total_hours = compute_total_hours(entry.clock_in, entry.clock_out)
    if payload.notes:
        entry.notes = append_note(entry.notes, payload.notes.strip())
    if entry.total_hours * 3600 < settings.MIN_SHIFT_DURATION_S:
        entry.needs_approval = True

    for expense_type in expense_types:
        add_cost(db, worker, expense_type=expense_type, clock_entry=entry)

    db.commit()
    db.refresh(entry)

    record_metric(
        "clock.out",
        {"worker_id": worker.id, "entry_id": entry.id, "hours": entry.total_hours, "expenses": len(expense_types)},
    )
    return ClockEntryOut.from_entry(entry)


@router.get("/current", response_model=Optional[ClockEntryOut])
def current_entry(
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    entry = _open_entry(db, worker.id)
    return ClockEntryOut.from_entry(entry) if entry else None


@router.get("/entries", response_model=List[ClockEntryOut])
def my_entries(
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    """Own entries, newest first; dates are UK calendar days (inclusive)."""
    query = db.query(ClockEntry).filter(ClockEntry.worker_id == worker.id)
    if date_from:
        query = query.filter(ClockEntry.clock_in >= uk_day_bounds_utc(date_from)[0])
    if date_to:
        query = query.filter(ClockEntry.clock_in < uk_day_bounds_utc(date_to)[1])
    return [ClockEntryOut.from_entry(e) for e in query.order_by(ClockEntry.clock_in.desc()).all()]


@router.post("/entries/{entry_id}/overtime", response_model=ClockEntryOut)
def request_overtime(
    entry_id: int,
    payload: OvertimeRequestIn,
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db),
):
    """Flag an own entry as overtime pending manager review."""
    entry = db.query(ClockEntry).filter(
        ClockEntry.id == entry_id,
        ClockEntry.worker_id == worker.id,
    ).first()
    if not entry:
        raise HTTPException(status_code=404, detail=f"Clock entry {entry_id} not found")
    if entry.ot_status in ("approved", "rejected"):
        raise HTTPException(status_code=409, detail=f"Overtime already {entry.ot_status}")

    entry.is_overtime = True
    entry.ot_status = "pending"
    entry.ot_requested_at = utcnow()
    if payload.reason:
        entry.notes = append_note(entry.notes, f"Overtime requested: {payload.reason.strip()}")
    db.commit()
    db.refresh(entry)

    record_metric("overtime.request", {"worker_id": worker.id, "entry_id": entry.id})
    return ClockEntryOut.from_entry(entry)
