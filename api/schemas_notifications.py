"""Notification schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    body: str
    read: bool
    created_at: datetime

    class Config:
        from_attributes = True


class NotificationPreferencesOut(BaseModel):
    push_token: Optional[str] = None
    email_notifications: bool
    push_notifications: bool

    class Config:
        from_attributes = True


class NotificationPreferencesIn(BaseModel):
    push_token: Optional[str] = Field(None, max_length=500)
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None
