"""Organization, capacity and subscription schemas."""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import datetime


class OrganizationOut(BaseModel):
    id: int
    name: str
    company_number: Optional[str] = None
    vat_number: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = None
    subscription_status: str
    trial_ends_at: Optional[datetime] = None
    max_managers: Optional[int] = None
    max_workers: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class OrganizationUpdateIn(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    company_number: Optional[str] = Field(None, max_length=50)
    vat_number: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = Field(None, max_length=1000)
    phone: Optional[str] = None
    email: Optional[str] = None
    logo_url: Optional[str] = Field(None, max_length=500)


class CapacityOut(BaseModel):
    resource: str
    can_create: bool
    current: int
    limit: Optional[int] = None  # None = unlimited
    remaining: Optional[int] = None


class UpgradeIn(BaseModel):
    plan_type: Literal["starter", "pro", "enterprise"]


class SubscriptionUsageOut(BaseModel):
    id: int
    plan_type: str
    max_managers: Optional[int] = None
    max_workers: Optional[int] = None
    current_manager_count: int
    current_worker_count: int
    started_at: datetime
    ended_at: Optional[datetime] = None
    is_active: bool

    class Config:
        from_attributes = True


class PlanOut(BaseModel):
    type: str
    name: str
    max_managers: Optional[int] = None
    max_workers: Optional[int] = None
    monthly_price: int


class OrganizationSummaryOut(BaseModel):
    """Super admin listing row."""
    id: int
    name: str
    subscription_status: str
    worker_count: int
    manager_count: int
    max_workers: Optional[int] = None
    max_managers: Optional[int] = None
    created_at: datetime
