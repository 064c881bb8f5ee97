"""
Manager dashboard: who is on site, today's totals, weekly hours, activity feed.

RBAC: manager, super_admin (worker access denied).
"""
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_manager
from models import ClockEntry, TimeAmendment, UserAccount, Worker
from utils.report_lines import week_bounds_utc
from utils.uk_time import as_utc, uk_day_bounds_utc, uk_today, utcnow, week_start_for

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

RECENT_ACTIVITY_LIMIT = 10


def _org_entries(session: Session, org_id: int):
    return (
        session.query(ClockEntry)
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(Worker.organization_id == org_id)
    )


@router.get("/clocked-in")
async def get_clocked_in(
    session: Session = Depends(get_db),
    current_user: UserAccount = Depends(require_manager)
):
    """Open entries, earliest clock-in first."""
    entries = (
        _org_entries(session, get_org_id(current_user))
        .filter(ClockEntry.clock_out.is_(None))
        .order_by(ClockEntry.clock_in)
        .all()
    )
    return [
        {
            "entry_id": e.id,
            "worker_id": e.worker_id,
            "worker_name": e.worker.name,
            "job_id": e.job_id,
            "job_name": e.job.name if e.job else None,
            "clock_in": as_utc(e.clock_in).isoformat(),
        }
        for e in entries
    ]


@router.get("/summary")
async def get_dashboard_summary(
    session: Session = Depends(get_db),
    current_user: UserAccount = Depends(require_manager)
):
    """
    Get dashboard summary KPIs for today (UK calendar day).

    Returns:
        - active_workers: active worker profiles
        - clocked_in_now: open entries
        - total_hours_today: completed hours of entries clocked in today
        - pending_amendments / pending_overtime: review queues
        - generated_at: timestamp of response
    """
    org_id = get_org_id(current_user)
    start_utc, end_utc = uk_day_bounds_utc(uk_today())

    active_workers = session.query(func.count(Worker.id)).filter(
        Worker.organization_id == org_id,
        Worker.is_active.is_(True)
    ).scalar() or 0

    clocked_in_now = _org_entries(session, org_id).filter(ClockEntry.clock_out.is_(None)).count()

    total_hours_today = (
        session.query(func.sum(ClockEntry.total_hours))
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(
            Worker.organization_id == org_id,
            ClockEntry.clock_in >= start_utc,
            ClockEntry.clock_in < end_utc,
            ClockEntry.clock_out.isnot(None),
        )
        .scalar()
    ) or 0

    pending_amendments = (
        session.query(func.count(TimeAmendment.id))
        .join(Worker, Worker.id == TimeAmendment.worker_id)
        .filter(Worker.organization_id == org_id, TimeAmendment.status == "pending")
        .scalar()
    ) or 0

    pending_overtime = _org_entries(session, org_id).filter(
        ClockEntry.is_overtime.is_(True),
        ClockEntry.ot_status == "pending"
    ).count()

    return {
        "active_workers": active_workers,
        "clocked_in_now": clocked_in_now,
        "total_hours_today": round(float(total_hours_today), 2),
        "pending_amendments": pending_amendments,
        "pending_overtime": pending_overtime,
        "generated_at": utcnow().isoformat()
    }


@router.get("/weekly-hours")
async def get_weekly_hours(
    week_start: Optional[date] = Query(None, description="Any day of the week; defaults to this week"),
    session: Session = Depends(get_db),
    current_user: UserAccount = Depends(require_manager)
):
    """Completed hours per worker for one Monday-Sunday week."""
    monday = week_start_for(week_start or uk_today())
    start_utc, end_utc = week_bounds_utc(monday)

    rows = (
        session.query(Worker.id, Worker.name, func.sum(ClockEntry.total_hours))
        .join(ClockEntry, ClockEntry.worker_id == Worker.id)
        .filter(
            Worker.organization_id == get_org_id(current_user),
            ClockEntry.clock_in >= start_utc,
            ClockEntry.clock_in < end_utc,
            ClockEntry.clock_out.isnot(None),
        )
        .group_by(Worker.id, Worker.name)
        .order_by(Worker.name)
        .all()
    )
    return {
        "week_start": monday.isoformat(),
        "week_end": (monday + timedelta(days=6)).isoformat(),
        "workers": [
            {"worker_id": wid, "worker_name": name, "hours": round(float(hours or 0), 2)}
            for wid, name, hours in rows
        ],
    }


@router.get("/recent-activity")
async def get_recent_activity(
    session: Session = Depends(get_db),
    current_user: UserAccount = Depends(require_manager)
):
    """
    Latest clock-ins and clock-outs, newest first.

    Built from the 10 most recent entries: each gives a clock-in event and,
    when closed, a clock-out event.
    """
    entries = (
        _org_entries(session, get_org_id(current_user))
        .order_by(ClockEntry.clock_in.desc(), ClockEntry.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )

    events = []
    for e in entries:
        job_name = e.job.name if e.job else "Unknown job"
        events.append({
            "type": "clock_in",
            "entry_id": e.id,
            "worker_id": e.worker_id,
            "message": f"{e.worker.name} clocked in at {job_name}",
            "timestamp": as_utc(e.clock_in),
        })
        if e.clock_out:
            events.append({
                "type": "clock_out",
                "entry_id": e.id,
                "worker_id": e.worker_id,
                "message": f"{e.worker.name} clocked out from {job_name}",
                "timestamp": as_utc(e.clock_out),
            })

    events.sort(key=lambda ev: ev["timestamp"], reverse=True)
    for ev in events:
        ev["timestamp"] = ev["timestamp"].isoformat()
    return events
