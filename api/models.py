"""SQLAlchemy ORM models for AutoTime API.

Multi-tenant schema: every business row hangs off an organization, either
directly (organization_id) or through its worker.
"""
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


# --- Tenancy & auth ---

class Organization(Base):
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    company_number = Column(String(50), nullable=True)
    vat_number = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    phone = Column(String(30), nullable=True)
    email = Column(String(255), nullable=True)
    logo_url = Column(String(500), nullable=True)
    subscription_status = Column(String(20), nullable=False, default="trial")  # trial/starter/pro/enterprise
    trial_ends_at = Column(DateTime(timezone=True), nullable=True)
    max_managers = Column(Integer, nullable=True, default=3)  # NULL = unlimited
    max_workers = Column(Integer, nullable=True, default=10)  # NULL = unlimited
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


class UserAccount(Base):
    """Login identity. Role decides which profile table (managers/workers) it links to."""
    __tablename__ = "user_accounts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # super_admin/manager/worker
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    must_change_password = Column(Boolean, nullable=False, default=False)
    failed_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    organization = relationship("Organization")


class RefreshToken(Base):
    __tablename__ = "refresh_tokens"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(500), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


# --- People ---

class Manager(Base):
    __tablename__ = "managers"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, unique=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class Worker(Base):
    __tablename__ = "workers"

    id = Column(Integer, primary_key=True, index=True)
    account_id = Column(Integer, ForeignKey("user_accounts.id", ondelete="CASCADE"), nullable=False, unique=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("managers.id", ondelete="SET NULL"), nullable=True)
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=True)
    address = Column(Text, nullable=True)
    postcode = Column(String(10), nullable=True)
    hourly_rate = Column(Numeric(10, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    date_started = Column(Date, nullable=True)
    emergency_contact = Column(String(100), nullable=True)
    emergency_phone = Column(String(30), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


# --- Sites & time ---

class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    code = Column(String(50), nullable=False)
    address = Column(Text, nullable=True)
    postcode = Column(String(10), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    geofence_radius = Column(Integer, nullable=False, default=100)  # meters, 50..500
    geofence_enabled = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ClockEntry(Base):
    __tablename__ = "clock_entries"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id"), nullable=False, index=True)
    clock_in = Column(DateTime(timezone=True), nullable=False, index=True)
    clock_out = Column(DateTime(timezone=True), nullable=True)
    clock_in_lat = Column(Float, nullable=True)
    clock_in_lng = Column(Float, nullable=True)
    clock_out_lat = Column(Float, nullable=True)
    clock_out_lng = Column(Float, nullable=True)
    clock_in_photo = Column(String(500), nullable=True)
    clock_out_photo = Column(String(500), nullable=True)
    total_hours = Column(Float, nullable=True)
    notes = Column(Text, nullable=True)
    needs_approval = Column(Boolean, nullable=False, default=False)
    approved_by = Column(Integer, ForeignKey("managers.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    auto_clocked_out = Column(Boolean, nullable=False, default=False)
    is_overtime = Column(Boolean, nullable=False, default=False)
    ot_status = Column(String(20), nullable=True)  # pending/approved/rejected
    ot_requested_at = Column(DateTime(timezone=True), nullable=True)
    ot_approved_by = Column(Integer, ForeignKey("managers.id"), nullable=True)
    ot_approved_reason = Column(Text, nullable=True)
    ot_approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    worker = relationship("Worker")
    job = relationship("Job")


class TimeAmendment(Base):
    __tablename__ = "time_amendments"

    id = Column(Integer, primary_key=True, index=True)
    clock_entry_id = Column(Integer, ForeignKey("clock_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    requested_clock_in = Column(DateTime(timezone=True), nullable=True)
    requested_clock_out = Column(DateTime(timezone=True), nullable=True)
    reason = Column(Text, nullable=False)
    manager_notes = Column(Text, nullable=True)
    manager_id = Column(Integer, ForeignKey("managers.id"), nullable=True)
    approved_by = Column(Integer, ForeignKey("managers.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    clock_entry = relationship("ClockEntry")
    worker = relationship("Worker")


class ClockEntryHistory(Base):
    __tablename__ = "clock_entry_history"

    id = Column(Integer, primary_key=True)
    clock_entry_id = Column(Integer, ForeignKey("clock_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    change_type = Column(String(30), nullable=False)  # amendment_approval/manual_edit/report_edit/auto_clock_out
    changed_by = Column(Integer, ForeignKey("user_accounts.id"), nullable=True)
    old_clock_in = Column(DateTime(timezone=True), nullable=True)
    new_clock_in = Column(DateTime(timezone=True), nullable=True)
    old_clock_out = Column(DateTime(timezone=True), nullable=True)
    new_clock_out = Column(DateTime(timezone=True), nullable=True)
    old_total_hours = Column(Float, nullable=True)
    new_total_hours = Column(Float, nullable=True)
    amendment_id = Column(Integer, ForeignKey("time_amendments.id", ondelete="SET NULL"), nullable=True)
    notes = Column(Text, nullable=True)
    meta = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


# --- Expenses ---

class ExpenseType(Base):
    __tablename__ = "expense_types"
    __table_args__ = (UniqueConstraint("organization_id", "name", name="uq_expense_types_org_name"),)

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    calculation_type = Column(String(20), nullable=False, default="flat_rate")  # flat_rate/hourly_multiplied
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AdditionalCost(Base):
    __tablename__ = "additional_costs"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    clock_entry_id = Column(Integer, ForeignKey("clock_entries.id", ondelete="SET NULL"), nullable=True)
    expense_type_id = Column(Integer, ForeignKey("expense_types.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    worker = relationship("Worker")
    clock_entry = relationship("ClockEntry")
    expense_type = relationship("ExpenseType")


# --- Subscription ---

class SubscriptionUsage(Base):
    __tablename__ = "subscription_usage"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    plan_type = Column(String(20), nullable=False)
    max_managers = Column(Integer, nullable=True)
    max_workers = Column(Integer, nullable=True)
    current_manager_count = Column(Integer, nullable=False, default=0)
    current_worker_count = Column(Integer, nullable=False, default=0)
    started_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    ended_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)


# --- Notifications ---

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    read = Column(Boolean, nullable=False, default=False)
    dedupe_key = Column(String(255), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False, unique=True)
    push_token = Column(String(500), nullable=True)
    email_notifications = Column(Boolean, nullable=False, default=True)
    push_notifications = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=True, onupdate=func.now())


# --- Reporting ---

class ReportLineItem(Base):
    """One editable row of the weekly payroll report."""
    __tablename__ = "report_line_items"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    week_start = Column(Date, nullable=False)
    worker_id = Column(Integer, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    worker_name = Column(String(100), nullable=True)
    work_date = Column(Date, nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    job_name = Column(String(255), nullable=True)
    entry_type = Column(String(20), nullable=False)  # work/overtime/expense
    expense_type = Column(String(100), nullable=True)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(10, 2), nullable=False, default=1)
    unit_amount = Column(Numeric(10, 2), nullable=False, default=0)
    account_code = Column(String(20), nullable=False)
    tax_type = Column(String(50), nullable=False, default="No VAT")
    source_clock_entry_id = Column(Integer, ForeignKey("clock_entries.id", ondelete="SET NULL"), nullable=True)
    source_cost_id = Column(Integer, ForeignKey("additional_costs.id", ondelete="SET NULL"), nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class XeroSettings(Base):
    __tablename__ = "xero_settings"

    id = Column(Integer, primary_key=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, unique=True)
    invoice_prefix = Column(String(20), nullable=False, default="INV")
    starting_invoice_number = Column(Integer, nullable=False, default=1001)
    default_account_code = Column(String(20), nullable=False, default="5000")
    default_tax_type = Column(String(50), nullable=False, default="20% VAT")
    payment_terms_days = Column(Integer, nullable=False, default=30)


class UKPostcode(Base):
    """Geocoder cache (postcodes.io results)."""
    __tablename__ = "uk_postcodes"

    postcode = Column(String(10), primary_key=True)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)


class IdempotencyKey(Base):
    __tablename__ = "idempotency_keys"

    key = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
