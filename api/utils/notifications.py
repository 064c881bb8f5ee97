"""Worker notifications (stored in DB, rendered from YAML jinja2 templates)."""
from __future__ import annotations

from typing import Any, Optional

from jinja2 import Template
from sqlalchemy.orm import Session

from models import Notification
from payroll_rules import notification_template


def render_notification(kind: str, context: dict[str, Any] | None = None) -> tuple[str, str]:
    """Render (title, body) for a standard notification type."""
    tpl = notification_template(kind)
    ctx = context or {}
    return Template(tpl["title"]).render(**ctx), Template(tpl["body"]).render(**ctx)


def notify(
    db: Session,
    worker_id: int,
    type: str,
    title: str,
    body: str,
    dedupe_key: Optional[str] = None,
) -> Optional[Notification]:
    """
    Queue a notification for a worker (caller commits).

    Returns None when dedupe_key was already used, so reminders sent by
    overlapping job runs reach the worker once.
    """
    if dedupe_key:
        exists = db.query(Notification.id).filter(Notification.dedupe_key == dedupe_key).first()
        if exists:
            return None

    notification = Notification(
        worker_id=worker_id,
        type=type,
        title=title,
        body=body,
        read=False,
        dedupe_key=dedupe_key,
    )
    db.add(notification)
    db.flush()
    return notification


def notify_template(
    db: Session,
    worker_id: int,
    kind: str,
    context: dict[str, Any] | None = None,
    dedupe_key: Optional[str] = None,
) -> Optional[Notification]:
    title, body = render_notification(kind, context)
    return notify(db, worker_id, kind, title, body, dedupe_key=dedupe_key)
