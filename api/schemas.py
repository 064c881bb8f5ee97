"""Pydantic schemas for AutoTime API (clock entries, amendments, overtime)."""
from datetime import date as date_type, datetime
from decimal import Decimal
from typing import Annotated, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field, condecimal

from utils.uk_time import as_utc

# Stored as UTC; SQLite returns naive values, inputs may carry any offset
UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]

# Money type - Decimal only, 10 digits max, 2 decimal places
Money = condecimal(max_digits=10, decimal_places=2, ge=0)


class Paginated(BaseModel):
    total: int
    pages: int
    page: int
    limit: int


# --- Clock ---

class ExpenseSelection(BaseModel):
    expense_type_id: int


class ClockInIn(BaseModel):
    """Input schema for clock-in."""

    job_id: int
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    photo: Optional[str] = Field(default=None, description="Base64 image or data URL")


class ClockOutIn(BaseModel):
    """Input schema for clock-out."""

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    photo: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=1000)
    expenses: list[ExpenseSelection] = []


class ClockEntryOut(BaseModel):
    id: int
    worker_id: int
    job_id: int
    job_name: Optional[str] = None
    worker_name: Optional[str] = None
    clock_in: UtcDatetime
    clock_out: Optional[UtcDatetime] = None
    clock_in_lat: Optional[float] = None
    clock_in_lng: Optional[float] = None
    clock_out_lat: Optional[float] = None
    clock_out_lng: Optional[float] = None
    clock_in_photo: Optional[str] = None
    clock_out_photo: Optional[str] = None
    total_hours: Optional[float] = None
    notes: Optional[str] = None
    needs_approval: bool = False
    auto_clocked_out: bool = False
    is_overtime: bool = False
    ot_status: Optional[str] = None

    class Config:
        from_attributes = True

    @classmethod
    def from_entry(cls, entry) -> "ClockEntryOut":
        out = cls.model_validate(entry)
        out.job_name = entry.job.name if entry.job else None
        out.worker_name = entry.worker.name if entry.worker else None
        return out


class PaginatedClockEntriesOut(Paginated):
    items: list[ClockEntryOut]


class ClockEntryEditIn(BaseModel):
    """Manager correction of an entry's times."""

    clock_in: Optional[UtcDatetime] = None
    clock_out: Optional[UtcDatetime] = None
    notes: Optional[str] = Field(default=None, max_length=1000)


class ClockEntryHistoryOut(BaseModel):
    id: int
    clock_entry_id: int
    change_type: str
    changed_by: Optional[int] = None
    old_clock_in: Optional[UtcDatetime] = None
    new_clock_in: Optional[UtcDatetime] = None
    old_clock_out: Optional[UtcDatetime] = None
    new_clock_out: Optional[UtcDatetime] = None
    old_total_hours: Optional[float] = None
    new_total_hours: Optional[float] = None
    amendment_id: Optional[int] = None
    notes: Optional[str] = None
    metadata: Optional[dict] = Field(default=None, validation_alias="meta")
    created_at: UtcDatetime

    class Config:
        from_attributes = True


# --- Overtime ---

class OvertimeRequestIn(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


class OvertimeRequestOut(BaseModel):
    id: int
    worker_id: int
    worker_name: str
    job_name: Optional[str]
    clock_in: UtcDatetime
    clock_out: Optional[UtcDatetime]
    hours: Optional[float]
    ot_status: Optional[str]
    ot_requested_at: Optional[UtcDatetime]
    ot_approved_reason: Optional[str] = None
    ot_approved_at: Optional[UtcDatetime] = None


class OvertimeDecisionIn(BaseModel):
    decision: Literal["approved", "rejected"]
    reason: str = Field(..., max_length=1000)


# --- Amendments ---

class AmendmentCreateIn(BaseModel):
    clock_entry_id: int
    requested_clock_in: Optional[UtcDatetime] = None
    requested_clock_out: Optional[UtcDatetime] = None
    reason: str = Field(..., max_length=1000)


class AmendmentDecisionIn(BaseModel):
    manager_notes: Optional[str] = Field(default=None, max_length=1000)


class AmendmentOut(BaseModel):
    id: int
    clock_entry_id: int
    worker_id: int
    worker_name: Optional[str] = None
    job_name: Optional[str] = None
    status: str
    requested_clock_in: Optional[UtcDatetime] = None
    requested_clock_out: Optional[UtcDatetime] = None
    original_clock_in: Optional[UtcDatetime] = None
    original_clock_out: Optional[UtcDatetime] = None
    reason: str
    manager_notes: Optional[str] = None
    approved_by: Optional[int] = None
    approved_at: Optional[UtcDatetime] = None
    processed_at: Optional[UtcDatetime] = None
    created_at: UtcDatetime

    class Config:
        from_attributes = True


# --- Expenses ---

class ExpenseTypeIn(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    amount: Money
    calculation_type: Literal["flat_rate", "hourly_multiplied"] = "flat_rate"


class ExpenseTypeUpdateIn(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    amount: Optional[Money] = None
    calculation_type: Optional[Literal["flat_rate", "hourly_multiplied"]] = None
    is_active: Optional[bool] = None


class ExpenseTypeOut(BaseModel):
    id: int
    name: str
    amount: Decimal
    calculation_type: str
    is_active: bool

    class Config:
        from_attributes = True


class AdditionalCostIn(BaseModel):
    worker_id: int
    expense_type_id: Optional[int] = None
    clock_entry_id: Optional[int] = None
    amount: Optional[Money] = None
    description: Optional[str] = Field(default=None, max_length=1000)
    date: Optional[date_type] = None


class AdditionalCostOut(BaseModel):
    id: int
    worker_id: int
    worker_name: Optional[str] = None
    clock_entry_id: Optional[int] = None
    expense_type_id: Optional[int] = None
    expense_type_name: Optional[str] = None
    amount: Decimal
    description: Optional[str] = None
    date: date_type

    class Config:
        from_attributes = True
