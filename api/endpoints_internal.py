"""Scheduled job triggers (cron / automation via X-Admin-Secret)."""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from auth import get_db
from deps_auth import get_system_caller
from utils.clocking import auto_clock_out, send_reminders

router = APIRouter(prefix="/api/internal", tags=["internal"])


@router.post("/auto-clock-out")
def run_auto_clock_out(
    now: Optional[datetime] = Query(None, description="Override current time (ISO, for replays)"),
    caller: dict = Depends(get_system_caller),
    db: Session = Depends(get_db),
):
    closed = auto_clock_out(db, now=now)
    return {"status": "ok", "closed": closed, "caller": caller["source"]}


@router.post("/reminders")
def run_reminders(
    now: Optional[datetime] = Query(None, description="Override current time (ISO, for replays)"),
    caller: dict = Depends(get_system_caller),
    db: Session = Depends(get_db),
):
    result = send_reminders(db, now=now)
    return {"status": "ok", **result, "caller": caller["source"]}
