"""Report line item and export schemas."""
from pydantic import BaseModel, Field
from typing import Literal, Optional
from datetime import date, datetime
from decimal import Decimal


class LineItemOut(BaseModel):
    """Single payroll report row."""
    id: int
    week_start: date
    worker_id: int
    worker_name: Optional[str] = None
    work_date: date
    job_id: Optional[int] = None
    job_name: Optional[str] = None
    entry_type: str
    expense_type: Optional[str] = None
    description: str
    quantity: Decimal
    unit_amount: Decimal
    line_total: Decimal = Decimal("0")
    account_code: str
    tax_type: str
    source_clock_entry_id: Optional[int] = None
    source_cost_id: Optional[int] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LineItemUpdateIn(BaseModel):
    """Editable fields (all optional)."""
    entry_type: Optional[Literal["work", "overtime", "expense"]] = None
    expense_type: Optional[str] = Field(None, max_length=100)
    quantity: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    unit_amount: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    account_code: Optional[str] = Field(None, min_length=1, max_length=20)
    tax_type: Optional[str] = Field(None, min_length=1, max_length=50)
    job_name: Optional[str] = Field(None, max_length=255)


class LineItemTotals(BaseModel):
    work_total: Decimal
    overtime_total: Decimal
    expense_total: Decimal
    grand_total: Decimal


class LineItemsOut(BaseModel):
    week_start: date
    week_end: date
    items: list[LineItemOut]
    totals: LineItemTotals


class XeroSettingsOut(BaseModel):
    invoice_prefix: str
    starting_invoice_number: int
    default_account_code: str
    default_tax_type: str
    payment_terms_days: int

    class Config:
        from_attributes = True


class XeroSettingsIn(BaseModel):
    invoice_prefix: Optional[str] = Field(None, min_length=1, max_length=20)
    starting_invoice_number: Optional[int] = Field(None, ge=1)
    default_account_code: Optional[str] = Field(None, min_length=1, max_length=20)
    default_tax_type: Optional[str] = Field(None, min_length=1, max_length=50)
    payment_terms_days: Optional[int] = Field(None, ge=0, le=365)
