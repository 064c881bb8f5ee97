"""Clock entry business rules.

Covers hours, history rows, amendment approval sync, overtime display
hours, and the scheduled jobs (auto clock-out, reminders).
"""
from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models import ClockEntry, ClockEntryHistory, TimeAmendment, Worker
from utils.audit import record_metric
from utils.notifications import notify_template
from utils.uk_time import UK_TZ, as_utc, fmt_long_date, uk_day_bounds_utc, utcnow

logger = logging.getLogger(__name__)


def compute_total_hours(clock_in: datetime, clock_out: Optional[datetime]) -> Optional[float]:
    """(clock_out - clock_in) in hours, 2 decimals; None while still clocked in."""
    if clock_out is None:
        return None
    seconds = (as_utc(clock_out) - as_utc(clock_in)).total_seconds()
    return round(seconds / 3600, 2)


def write_history(
    db: Session,
    entry: ClockEntry,
    change_type: str,
    old_clock_in: Optional[datetime],
    old_clock_out: Optional[datetime],
    old_total_hours: Optional[float],
    changed_by: Optional[int] = None,
    amendment_id: Optional[int] = None,
    notes: Optional[str] = None,
    meta: Optional[dict] = None,
) -> ClockEntryHistory:
    """Record an entry's before/after times (caller commits)."""
    row = ClockEntryHistory(
        clock_entry_id=entry.id,
        change_type=change_type,
        changed_by=changed_by,
        old_clock_in=old_clock_in,
        new_clock_in=entry.clock_in,
        old_clock_out=old_clock_out,
        new_clock_out=entry.clock_out,
        old_total_hours=old_total_hours,
        new_total_hours=entry.total_hours,
        amendment_id=amendment_id,
        notes=notes,
        meta=meta,
    )
    db.add(row)
    return row


def append_note(existing: Optional[str], note: str) -> str:
    return f"{existing}\n{note}" if existing else note


def apply_amendment(
    db: Session,
    amendment: TimeAmendment,
    approved_by_manager_id: int,
    changed_by: Optional[int] = None,
) -> ClockEntry:
    """
    Copy an approved amendment's times onto its clock entry (caller commits).

    Requested times fall back to the entry's current ones; hours are
    recomputed and a history row with change_type "amendment_approval" is
    written.
    """
    entry = amendment.clock_entry
    old_in, old_out, old_hours = entry.clock_in, entry.clock_out, entry.total_hours

    entry.clock_in = as_utc(amendment.requested_clock_in or entry.clock_in)
    entry.clock_out = as_utc(amendment.requested_clock_out or entry.clock_out)
    entry.total_hours = compute_total_hours(entry.clock_in, entry.clock_out)

    approved_at = as_utc(amendment.approved_at) or utcnow()
    note = f"Updated via approved time amendment on {approved_at.strftime('%Y-%m-%d %H:%M:%S')}"
    entry.notes = append_note(entry.notes, note)

    write_history(
        db, entry, "amendment_approval",
        old_clock_in=old_in, old_clock_out=old_out, old_total_hours=old_hours,
        changed_by=changed_by,
        amendment_id=amendment.id,
        notes=note,
        meta={
            "approved_by": approved_by_manager_id,
            "approved_at": approved_at.isoformat(),
            "reason": amendment.reason,
        },
    )
    return entry


def overtime_display_hours(entry: ClockEntry) -> Optional[float]:
    """Hours shown on an overtime request: rounded up to 0.1, capped at OVERTIME_MAX_HOURS."""
    if entry.clock_out is None:
        return None
    hours = entry.total_hours
    if hours is None:
        hours = compute_total_hours(entry.clock_in, entry.clock_out)
    return min(math.ceil(round(hours * 10, 6)) / 10, settings.OVERTIME_MAX_HOURS)


def auto_clock_out(db: Session, now: Optional[datetime] = None) -> int:
    """
    Close entries left open longer than AUTO_CLOCK_OUT_HOURS.

    clock_out is set to clock_in + the limit (not "now"), so a forgotten
    clock-out is paid as a capped shift.
    """
    now = as_utc(now) or utcnow()
    limit = timedelta(hours=settings.AUTO_CLOCK_OUT_HOURS)
    note = f"Auto clocked-out after {settings.AUTO_CLOCK_OUT_HOURS} hours"

    stale = (
        db.query(ClockEntry)
        .filter(ClockEntry.clock_out.is_(None), ClockEntry.clock_in < now - limit)
        .all()
    )
    for entry in stale:
        entry.clock_out = as_utc(entry.clock_in) + limit
        entry.total_hours = compute_total_hours(entry.clock_in, entry.clock_out)
        entry.auto_clocked_out = True
        entry.notes = append_note(entry.notes, note)
        write_history(db, entry, "auto_clock_out", as_utc(entry.clock_in), None, None, notes=note)
        notify_template(
            db, entry.worker_id, "auto_clocked_out",
            {"hours": settings.AUTO_CLOCK_OUT_HOURS, "job": entry.job.name if entry.job else ""},
            dedupe_key=f"auto_clocked_out:{entry.id}",
        )
    db.commit()

    if stale:
        logger.info("auto clock-out closed %d entries", len(stale))
    record_metric("clock.auto_out", {"closed": len(stale)})
    return len(stale)


def send_reminders(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Weekday reminders at the configured UK hours.

    - CLOCK_IN_REMINDER_HOUR: active workers without an entry today
    - CLOCK_OUT_REMINDER_HOUR: workers with an open entry

    Dedupe keys (type:worker:date) make repeated runs within the hour a no-op.
    """
    now = as_utc(now) or utcnow()
    uk_now = now.astimezone(UK_TZ)
    result = {"clock_in": 0, "clock_out": 0, "skipped": None}

    if uk_now.weekday() >= 5:
        result["skipped"] = "weekend"
        return result

    today = uk_now.date()
    start_utc, end_utc = uk_day_bounds_utc(today)

    if uk_now.hour == settings.CLOCK_IN_REMINDER_HOUR:
        clocked_today = {
            wid for (wid,) in db.query(ClockEntry.worker_id)
            .filter(ClockEntry.clock_in >= start_utc, ClockEntry.clock_in < end_utc)
            .distinct()
        }
        for worker in db.query(Worker).filter(Worker.is_active.is_(True)).all():
            if worker.id in clocked_today:
                continue
            if notify_template(db, worker.id, "clock_in_reminder",
                               dedupe_key=f"clock_in_reminder:{worker.id}:{today.isoformat()}"):
                result["clock_in"] += 1

    elif uk_now.hour == settings.CLOCK_OUT_REMINDER_HOUR:
        open_entries = db.query(ClockEntry).filter(ClockEntry.clock_out.is_(None)).all()
        for entry in open_entries:
            if notify_template(db, entry.worker_id, "clock_out_reminder",
                               dedupe_key=f"clock_out_reminder:{entry.worker_id}:{today.isoformat()}"):
                result["clock_out"] += 1
    else:
        result["skipped"] = "outside_reminder_hours"

    db.commit()
    logger.info("reminders sent: clock_in=%d clock_out=%d", result["clock_in"], result["clock_out"])
    record_metric("reminders.run", result)
    return result


def overtime_notification_context(entry: ClockEntry, reason: Optional[str] = None) -> dict:
    hours = overtime_display_hours(entry)
    return {
        "date": fmt_long_date(entry.clock_in),
        "hours": f"{hours:.1f}" if hours is not None else "0.0",
        "reason": reason or "",
    }

