"""Worker and manager management schemas."""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal


class ManagerCreateIn(BaseModel):
    """Create manager request."""
    name: str
    email: str
    phone: Optional[str] = None


class ManagerOut(BaseModel):
    id: int
    account_id: int
    organization_id: int
    name: str
    email: str
    phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ManagerCreatedOut(ManagerOut):
    temporary_password: str  # Shown once


class WorkerCreateIn(BaseModel):
    """Create worker request."""
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = Field(None, max_length=1000)
    postcode: Optional[str] = None
    hourly_rate: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    date_started: Optional[date] = None
    emergency_contact: Optional[str] = Field(None, max_length=100)
    emergency_phone: Optional[str] = None
    manager_id: Optional[int] = None


class WorkerUpdateIn(BaseModel):
    """Update worker request (partial)."""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(None, max_length=1000)
    postcode: Optional[str] = None
    hourly_rate: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    date_started: Optional[date] = None
    emergency_contact: Optional[str] = Field(None, max_length=100)
    emergency_phone: Optional[str] = None
    manager_id: Optional[int] = None
    is_active: Optional[bool] = None


class WorkerOut(BaseModel):
    """Worker response."""
    id: int
    account_id: int
    organization_id: int
    manager_id: Optional[int] = None
    name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    postcode: Optional[str] = None
    hourly_rate: Decimal
    is_active: bool
    date_started: Optional[date] = None
    emergency_contact: Optional[str] = None
    emergency_phone: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class WorkerCreatedOut(WorkerOut):
    temporary_password: str  # Shown once


class PaginatedWorkersOut(BaseModel):
    """Paginated response for worker list."""
    items: list[WorkerOut]
    total: int
    page: int
    pages: int
    limit: int
