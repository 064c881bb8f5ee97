"""Weekly report line items: generation from clock entries/costs, editing, totals.

A line item is one payroll row:
- work / overtime: hours on one job for one worker on one day
- expense: one additional cost (flat or multiplied by shift hours)
"""
from __future__ import annotations

import re
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from models import AdditionalCost, ClockEntry, ClockEntryHistory, ReportLineItem, Worker
from payroll_rules import ENTRY_TYPES, default_account_code, default_tax_type
from utils.money import CENT, ensure_decimal, line_total
from utils.uk_time import uk_date, uk_day_bounds_utc, uk_today, utcnow

ADDRESS_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}[0-9]{1,2}[A-Z]?\s?[0-9][A-Z]{2}$", re.IGNORECASE)

GENERAL_JOB_NAME = "General"


# --- Pure helpers ---

def get_week_number(d: date) -> int:
    """Week of year, weeks starting Monday, week 1 = the week containing Jan 1."""
    def monday(x: date) -> date:
        return x - timedelta(days=x.weekday())

    if d >= monday(date(d.year + 1, 1, 1)):
        return 1
    return (monday(d) - monday(date(d.year, 1, 1))).days // 7 + 1


def generate_description(entry_type: str, work_date: date, expense_type: Optional[str] = None) -> str:
    """
    Build the line description:
        work:     "Construction Work - 03/03/2025 - Week 10 2025"
        overtime: "Overtime Work - 03/03/2025 - Week 10 2025"
        expense:  "{expense_type or 'Expense'} - 03/03/2025 - Week 10 2025"
    """
    suffix = f"{work_date.strftime('%d/%m/%Y')} - Week {get_week_number(work_date)} {work_date.year}"
    if entry_type == "work":
        return f"Construction Work - {suffix}"
    if entry_type == "overtime":
        return f"Overtime Work - {suffix}"
    if entry_type == "expense":
        return f"{expense_type or 'Expense'} - {suffix}"
    return f"Unknown Entry - {work_date.strftime('%d/%m/%Y')}"


def parse_address(address: Optional[str]) -> Dict[str, str]:
    """Split "line1, city, region, postcode" into parts (UK layout)."""
    if not address:
        return {"address_line1": "", "city": "", "region": "", "postcode": ""}

    parts = [p.strip() for p in address.split(",")]
    last = parts[-1]
    postcode = last if ADDRESS_POSTCODE_RE.match(last) else ""

    city = ""
    if postcode and len(parts) >= 2:
        city = parts[-2]
    elif len(parts) >= 2:
        city = parts[1]

    region = parts[-3] if postcode and len(parts) >= 3 else ""

    return {"address_line1": parts[0], "city": city, "region": region, "postcode": postcode}


def escape_csv(value: Any) -> str:
    """Quote a CSV field when it contains a comma, quote or newline."""
    if value is None:
        return ""
    s = str(value)
    if any(c in s for c in (",", '"', "\n", "\r")):
        return '"' + s.replace('"', '""') + '"'
    return s


def calculate_totals(items: Iterable[Any]) -> Dict[str, Decimal]:
    """Sum quantity × unit_amount per entry type plus a grand total."""
    totals = {"work": Decimal("0.00"), "overtime": Decimal("0.00"), "expense": Decimal("0.00")}
    for item in items:
        entry_type = _get(item, "entry_type")
        amount = line_total(_get(item, "quantity"), _get(item, "unit_amount"))
        if entry_type in totals:
            totals[entry_type] += amount
    return {
        "work_total": totals["work"],
        "overtime_total": totals["overtime"],
        "expense_total": totals["expense"],
        "grand_total": (totals["work"] + totals["overtime"] + totals["expense"]).quantize(CENT, rounding=ROUND_HALF_UP),
    }


def group_items_by_worker(items: Iterable[Any]) -> "OrderedDict[int, List[Any]]":
    """Group items by worker_id, keeping first-seen order."""
    groups: "OrderedDict[int, List[Any]]" = OrderedDict()
    for item in items:
        groups.setdefault(_get(item, "worker_id"), []).append(item)
    return groups


def _get(item: Any, key: str) -> Any:
    return item[key] if isinstance(item, dict) else getattr(item, key)


# --- Generation ---

def week_bounds_utc(week_start: date) -> tuple[datetime, datetime]:
    start, _ = uk_day_bounds_utc(week_start)
    _, end = uk_day_bounds_utc(week_start + timedelta(days=6))
    return start, end


def generate_line_items(db: Session, organization_id: int, week_start: date) -> List[Dict[str, Any]]:
    """
    Build (not persist) line items for one week.

    Work/overtime rows come from completed clock entries grouped by
    (worker, day, job, overtime flag); overtime that is not approved is
    left out. Expense rows come one per additional cost in the week.
    """
    start_utc, end_utc = week_bounds_utc(week_start)
    tax_type = default_tax_type()

    entries = (
        db.query(ClockEntry)
        .join(Worker, Worker.id == ClockEntry.worker_id)
        .filter(
            Worker.organization_id == organization_id,
            ClockEntry.clock_in >= start_utc,
            ClockEntry.clock_in < end_utc,
            ClockEntry.clock_out.isnot(None),
            ClockEntry.total_hours.isnot(None),
        )
        .order_by(ClockEntry.clock_in)
        .all()
    )

    groups: "OrderedDict[tuple, Dict[str, Any]]" = OrderedDict()
    for entry in entries:
        if entry.is_overtime and entry.ot_status != "approved":
            continue
        work_date = uk_date(entry.clock_in)
        key = (entry.worker_id, work_date, entry.job_id, bool(entry.is_overtime))
        group = groups.get(key)
        if group is None:
            entry_type = "overtime" if entry.is_overtime else "work"
            group = groups[key] = {
                "organization_id": organization_id,
                "week_start": week_start,
                "worker_id": entry.worker_id,
                "worker_name": entry.worker.name,
                "work_date": work_date,
                "job_id": entry.job_id,
                "job_name": entry.job.name if entry.job else GENERAL_JOB_NAME,
                "entry_type": entry_type,
                "expense_type": None,
                "description": generate_description(entry_type, work_date),
                "quantity": Decimal("0"),
                "unit_amount": ensure_decimal(entry.worker.hourly_rate),
                "account_code": default_account_code(entry_type),
                "tax_type": tax_type,
                "source_clock_entry_id": entry.id,
                "source_cost_id": None,
            }
        group["quantity"] += ensure_decimal(entry.total_hours)

    items = list(groups.values())
    for item in items:
        item["quantity"] = item["quantity"].quantize(CENT, rounding=ROUND_HALF_UP)

    costs = (
        db.query(AdditionalCost)
        .join(Worker, Worker.id == AdditionalCost.worker_id)
        .filter(
            Worker.organization_id == organization_id,
            AdditionalCost.date >= week_start,
            AdditionalCost.date <= week_start + timedelta(days=6),
        )
        .order_by(AdditionalCost.date, AdditionalCost.id)
        .all()
    )
    for cost in costs:
        expense_name = (cost.expense_type.name if cost.expense_type else None) or cost.description or "Expense"
        entry = cost.clock_entry
        quantity = Decimal("1")
        if cost.expense_type and cost.expense_type.calculation_type == "hourly_multiplied" and entry and entry.total_hours:
            quantity = ensure_decimal(entry.total_hours).quantize(CENT, rounding=ROUND_HALF_UP)
        items.append({
            "organization_id": organization_id,
            "week_start": week_start,
            "worker_id": cost.worker_id,
            "worker_name": cost.worker.name,
            "work_date": cost.date,
            "job_id": entry.job_id if entry else None,
            "job_name": entry.job.name if entry and entry.job else GENERAL_JOB_NAME,
            "entry_type": "expense",
            "expense_type": expense_name,
            "description": generate_description("expense", cost.date, expense_name),
            "quantity": quantity,
            "unit_amount": ensure_decimal(cost.amount),
            "account_code": default_account_code("expense"),
            "tax_type": tax_type,
            "source_clock_entry_id": entry.id if entry else None,
            "source_cost_id": cost.id,
        })

    items.sort(key=lambda i: (i["worker_name"] or "", i["work_date"]))
    return items


def _active_items_query(db: Session, organization_id: int, week_start: date):
    return db.query(ReportLineItem).filter(
        ReportLineItem.organization_id == organization_id,
        ReportLineItem.week_start == week_start,
        ReportLineItem.is_deleted.is_(False),
    )


def _sorted(items: List[ReportLineItem]) -> List[ReportLineItem]:
    return sorted(items, key=lambda i: (i.worker_name or "", i.work_date, i.id))


def fetch_or_generate(db: Session, organization_id: int, week_start: date) -> List[ReportLineItem]:
    """Return saved items for the week, generating and saving them on first view."""
    existing = _active_items_query(db, organization_id, week_start).all()
    if existing:
        return _sorted(existing)

    rows = [ReportLineItem(**data) for data in generate_line_items(db, organization_id, week_start)]
    db.add_all(rows)
    db.commit()
    return _sorted(_active_items_query(db, organization_id, week_start).all())


def regenerate(db: Session, organization_id: int, week_start: date) -> List[ReportLineItem]:
    """Throw away the week's items (including edits) and rebuild from source rows."""
    db.query(ReportLineItem).filter(
        ReportLineItem.organization_id == organization_id,
        ReportLineItem.week_start == week_start,
    ).delete(synchronize_session=False)
    db.flush()
    return fetch_or_generate(db, organization_id, week_start)


def update_line_item(
    db: Session,
    item: ReportLineItem,
    changes: Dict[str, Any],
    changed_by: Optional[int] = None,
) -> ReportLineItem:
    """
    Apply an edit from the report editor (caller commits).

    - entry_type/expense_type change regenerates the description
    - entry_type change resets account_code unless one was sent
    - quantity change on work/overtime rows writes the hours back to the
      source clock entry with a history row
    - work <-> overtime change syncs the source entry's is_overtime flag
    """
    if "entry_type" in changes and changes["entry_type"] is not None and changes["entry_type"] not in ENTRY_TYPES:
        raise ValueError(f"Invalid entry_type: {changes['entry_type']}")

    old_entry_type = item.entry_type
    old_expense_type = item.expense_type
    old_quantity = ensure_decimal(item.quantity)

    for field in ("entry_type", "expense_type", "quantity", "unit_amount", "account_code", "tax_type", "job_name", "work_date"):
        if field in changes and changes[field] is not None:
            setattr(item, field, changes[field])
    if "expense_type" in changes and changes["expense_type"] is None:
        item.expense_type = None

    entry_type_changed = item.entry_type != old_entry_type
    if entry_type_changed or item.expense_type != old_expense_type or "work_date" in changes:
        item.description = generate_description(item.entry_type, item.work_date, item.expense_type)
    if entry_type_changed and changes.get("account_code") is None:
        item.account_code = default_account_code(item.entry_type)

    entry = db.get(ClockEntry, item.source_clock_entry_id) if item.source_clock_entry_id else None

    new_quantity = ensure_decimal(item.quantity)
    if entry is not None and item.entry_type != "expense" and new_quantity != old_quantity:
        old_hours = entry.total_hours
        entry.total_hours = float(new_quantity)
        today = uk_today().isoformat()
        note = f"Hours updated via report editor from {old_quantity} to {new_quantity} on {today}"
        entry.notes = f"{entry.notes or ''} | {note}"
        db.add(ClockEntryHistory(
            clock_entry_id=entry.id,
            change_type="report_edit",
            changed_by=changed_by,
            old_clock_in=entry.clock_in,
            new_clock_in=entry.clock_in,
            old_clock_out=entry.clock_out,
            new_clock_out=entry.clock_out,
            old_total_hours=old_hours,
            new_total_hours=entry.total_hours,
            notes=note,
            meta={
                "source": "report_editor",
                "report_week": item.week_start.isoformat(),
                "work_date": item.work_date.isoformat(),
            },
        ))

    if entry is not None and entry_type_changed and item.entry_type in ("work", "overtime"):
        entry.is_overtime = item.entry_type == "overtime"
        if entry.is_overtime and entry.ot_status is None:
            entry.ot_status = "approved"

    item.updated_at = utcnow()
    return item
