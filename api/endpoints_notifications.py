"""Worker notification inbox and preferences."""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from auth import get_current_worker, get_db
from models import Notification, NotificationPreference, Worker
from schemas_notifications import NotificationOut, NotificationPreferencesIn, NotificationPreferencesOut

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _preferences(db: Session, worker_id: int) -> NotificationPreference:
    prefs = db.query(NotificationPreference).filter(NotificationPreference.worker_id == worker_id).first()
    if prefs is None:
        prefs = NotificationPreference(worker_id=worker_id, email_notifications=True, push_notifications=True)
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
    return prefs


@router.get("", response_model=List[NotificationOut])
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db)
):
    query = db.query(Notification).filter(Notification.worker_id == worker.id)
    if unread_only:
        query = query.filter(Notification.read.is_(False))
    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


@router.post("/read-all")
async def mark_all_read(
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db)
):
    updated = db.query(Notification).filter(
        Notification.worker_id == worker.id,
        Notification.read.is_(False)
    ).update({"read": True}, synchronize_session=False)
    db.commit()
    return {"status": "ok", "updated": updated}


@router.get("/preferences", response_model=NotificationPreferencesOut)
async def get_preferences(
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db)
):
    """Created with defaults (both channels on) on first read."""
    return _preferences(db, worker.id)


@router.put("/preferences", response_model=NotificationPreferencesOut)
async def update_preferences(
    data: NotificationPreferencesIn,
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db)
):
    prefs = _preferences(db, worker.id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field != "push_token":
            continue
        setattr(prefs, field, value)
    db.commit()
    db.refresh(prefs)
    return prefs


@router.post("/{notification_id}/read", response_model=NotificationOut)
async def mark_read(
    notification_id: int,
    worker: Worker = Depends(get_current_worker),
    db: Session = Depends(get_db)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.worker_id == worker.id
    ).first()
    if not notification:
        raise HTTPException(status_code=404, detail=f"Notification {notification_id} not found")
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification
