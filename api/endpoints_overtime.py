"""Overtime review for managers."""
from datetime import timedelta
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import case
from sqlalchemy.orm import Session

from auth import get_db, get_manager_profile, get_org_id, require_manager
from config import settings
from endpoints_clock_entries import get_org_entry
from models import ClockEntry, UserAccount, Worker
from schemas import ClockEntryOut, OvertimeDecisionIn, OvertimeRequestOut
from utils.audit import record_metric
from utils.clocking import overtime_display_hours, overtime_notification_context
from utils.notifications import notify_template
from utils.uk_time import as_utc, utcnow
from utils.validation import sanitize_input

router = APIRouter(prefix="/api/overtime", tags=["overtime"])


@router.get("/requests", response_model=List[OvertimeRequestOut])
def list_overtime_requests(
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """
    Overtime-flagged entries from the last OVERTIME_LOOKBACK_DAYS.

    Pending first, then oldest request first. hours is rounded up to 0.1
    and capped at OVERTIME_MAX_HOURS; null while the worker is clocked in.
    """
    since = utcnow() - timedelta(days=settings.OVERTIME_LOOKBACK_DAYS)
    pending_first = case((ClockEntry.ot_status == "pending", 0), else_=1)
    entries = (
        db.query(ClockEntry)
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(
            Worker.organization_id == get_org_id(account),
            ClockEntry.is_overtime.is_(True),
            ClockEntry.clock_in >= since,
        )
        .order_by(pending_first, ClockEntry.ot_requested_at.asc(), ClockEntry.id)
        .all()
    )
    return [
        OvertimeRequestOut(
            id=e.id,
            worker_id=e.worker_id,
            worker_name=e.worker.name,
            job_name=e.job.name if e.job else None,
            clock_in=as_utc(e.clock_in),
            clock_out=as_utc(e.clock_out),
            hours=overtime_display_hours(e),
            ot_status=e.ot_status,
            ot_requested_at=as_utc(e.ot_requested_at),
            ot_approved_reason=e.ot_approved_reason,
            ot_approved_at=as_utc(e.ot_approved_at),
        )
        for e in entries
    ]


@router.post("/{entry_id}/decision", response_model=ClockEntryOut)
def decide_overtime(
    entry_id: int,
    payload: OvertimeDecisionIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    reason = sanitize_input(payload.reason)
    if not reason:
        raise HTTPException(status_code=400, detail="Reason is required")

    entry = get_org_entry(db, entry_id, get_org_id(account))
    if not entry.is_overtime:
        raise HTTPException(status_code=400, detail="Entry is not flagged as overtime")

    manager = get_manager_profile(db, account)
    entry.ot_status = payload.decision
    entry.ot_approved_by = manager.id if manager else None
    entry.ot_approved_reason = reason
    entry.ot_approved_at = utcnow()

    notify_template(
        db, entry.worker_id, f"overtime_{payload.decision}",
        overtime_notification_context(entry, reason),
    )
    db.commit()
    db.refresh(entry)

    record_metric("overtime.decision", {"entry_id": entry.id, "account_id": account.id}, outcome=payload.decision)
    return ClockEntryOut.from_entry(entry)
