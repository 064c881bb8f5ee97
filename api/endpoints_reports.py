"""Weekly payroll report (line items) and CSV / Xero export endpoints."""
from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from auth import get_db, get_org_id, require_any_role, require_manager
from models import ClockEntry, ReportLineItem, UserAccount, Worker, XeroSettings
from payroll_rules import xero_defaults
from schemas_reports import (
    LineItemOut,
    LineItemsOut,
    LineItemTotals,
    LineItemUpdateIn,
    XeroSettingsIn,
    XeroSettingsOut,
)
from utils.audit import record_metric
from utils.exports import (
    LINE_ITEM_HEADERS,
    TIMESHEET_HEADERS,
    XERO_HEADERS,
    csv_response,
    line_item_rows,
    render_csv,
    timesheet_rows,
    xero_rows,
)
from utils.money import line_total
from utils.report_lines import calculate_totals, fetch_or_generate, regenerate, update_line_item
from utils.uk_time import uk_day_bounds_utc

router = APIRouter(prefix="/api/reports", tags=["reports"])


def _monday(week_start: date) -> date:
    if week_start.weekday() != 0:
        raise HTTPException(status_code=400, detail=f"week_start must be a Monday (got {week_start.isoformat()})")
    return week_start


def _item_out(item: ReportLineItem) -> LineItemOut:
    out = LineItemOut.model_validate(item)
    out.line_total = line_total(item.quantity, item.unit_amount)
    return out


def _items_response(items: List[ReportLineItem], week_start: date) -> LineItemsOut:
    return LineItemsOut(
        week_start=week_start,
        week_end=week_start + timedelta(days=6),
        items=[_item_out(i) for i in items],
        totals=LineItemTotals(**calculate_totals(items)),
    )


def _get_item(db: Session, item_id: int, org_id: int) -> ReportLineItem:
    item = db.query(ReportLineItem).filter(
        ReportLineItem.id == item_id,
        ReportLineItem.organization_id == org_id,
        ReportLineItem.is_deleted.is_(False),
    ).first()
    if not item:
        raise HTTPException(status_code=404, detail=f"Line item {item_id} not found")
    return item


def get_xero_settings(db: Session, org_id: int) -> XeroSettings:
    """Organization's Xero settings, created with defaults on first use."""
    row = db.query(XeroSettings).filter(XeroSettings.organization_id == org_id).first()
    if row is None:
        row = XeroSettings(organization_id=org_id, **xero_defaults())
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


# --- Line items ---

@router.get("/line-items", response_model=LineItemsOut)
def get_line_items(
    week_start: date = Query(..., description="Monday of the week (YYYY-MM-DD)"),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Saved line items for the week; generated from clock entries and costs on first view."""
    week_start = _monday(week_start)
    items = fetch_or_generate(db, get_org_id(account), week_start)
    return _items_response(items, week_start)


@router.post("/line-items/regenerate", response_model=LineItemsOut)
def regenerate_line_items(
    week_start: date = Query(...),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Discard edits for the week and rebuild from source rows."""
    week_start = _monday(week_start)
    org_id = get_org_id(account)
    items = regenerate(db, org_id, week_start)
    record_metric("report.regenerate", {"org_id": org_id, "week_start": week_start, "items": len(items)})
    return _items_response(items, week_start)


@router.put("/line-items/{item_id}", response_model=LineItemOut)
def edit_line_item(
    item_id: int,
    payload: LineItemUpdateIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    item = _get_item(db, item_id, get_org_id(account))
    try:
        update_line_item(db, item, payload.model_dump(exclude_unset=True), changed_by=account.id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    db.commit()
    db.refresh(item)
    return _item_out(item)


@router.delete("/line-items/{item_id}")
def delete_line_item(
    item_id: int,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    item = _get_item(db, item_id, get_org_id(account))
    item.is_deleted = True
    db.commit()
    return {"status": "ok", "id": item.id}


# --- Exports ---

@router.get("/line-items/export.csv")
def export_line_items_csv(
    week_start: date = Query(...),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """
    Line items as CSV.

    Columns: Worker, Date, Job, Type, Description, Quantity, Unit Amount,
    Line Total, Account Code, Tax Type; followed by a blank row and the
    Work/Overtime/Expense/Grand totals.
    """
    week_start = _monday(week_start)
    org_id = get_org_id(account)
    items = fetch_or_generate(db, org_id, week_start)
    content = render_csv(LINE_ITEM_HEADERS, line_item_rows(items))

    record_metric("export.line_items", {"org_id": org_id, "week_start": week_start, "rows": len(items)})
    return csv_response(content, f"payroll_report_{week_start.isoformat()}.csv")


@router.get("/line-items/xero.csv")
def export_xero_csv(
    week_start: date = Query(...),
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    """Xero bills import file: one invoice per worker."""
    week_start = _monday(week_start)
    org_id = get_org_id(account)
    items = fetch_or_generate(db, org_id, week_start)
    xero = get_xero_settings(db, org_id)
    emails = dict(db.query(Worker.id, Worker.email).filter(Worker.organization_id == org_id).all())
    content = render_csv(XERO_HEADERS, xero_rows(items, week_start, xero, emails))

    record_metric("export.xero", {"org_id": org_id, "week_start": week_start, "rows": len(items)})
    return csv_response(content, f"xero_bills_{week_start.isoformat()}.csv")


@router.get("/timesheet.csv")
def export_timesheet_csv(
    worker_id: Optional[int] = Query(None, description="Required for managers"),
    date_from: Optional[date] = Query(None),
    date_to: Optional[date] = Query(None),
    account: UserAccount = Depends(require_any_role),
    db: Session = Depends(get_db),
):
    """One worker's clock entries; workers always get their own."""
    org_id = get_org_id(account)
    if account.role == "worker":
        worker = db.query(Worker).filter(Worker.account_id == account.id).first()
    else:
        if worker_id is None:
            raise HTTPException(status_code=400, detail="worker_id is required")
        worker = db.query(Worker).filter(Worker.id == worker_id, Worker.organization_id == org_id).first()
    if not worker:
        raise HTTPException(status_code=404, detail="Worker not found")

    query = db.query(ClockEntry).filter(ClockEntry.worker_id == worker.id)
    if date_from:
        query = query.filter(ClockEntry.clock_in >= uk_day_bounds_utc(date_from)[0])
    if date_to:
        query = query.filter(ClockEntry.clock_in < uk_day_bounds_utc(date_to)[1])
    entries = query.order_by(ClockEntry.clock_in).all()
    content = render_csv(TIMESHEET_HEADERS, timesheet_rows(entries))

    record_metric("export.timesheet", {"org_id": org_id, "worker_id": worker.id, "rows": len(entries)})
    suffix = f"_{date_from.isoformat()}" if date_from else ""
    return csv_response(content, f"timesheet_{worker.id}{suffix}.csv")


# --- Xero settings ---

@router.get("/xero-settings", response_model=XeroSettingsOut)
def read_xero_settings(
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    return get_xero_settings(db, get_org_id(account))


@router.put("/xero-settings", response_model=XeroSettingsOut)
def update_xero_settings(
    payload: XeroSettingsIn,
    account: UserAccount = Depends(require_manager),
    db: Session = Depends(get_db),
):
    row = get_xero_settings(db, get_org_id(account))
    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(row, field, value)
    db.commit()
    db.refresh(row)
    return row
