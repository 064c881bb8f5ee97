"""CSV builders for timesheet, line-item and Xero bill exports."""
from __future__ import annotations

import csv
import io
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Iterable, List, Sequence

from fastapi.responses import StreamingResponse

from utils.money import ensure_decimal, line_total
from utils.report_lines import calculate_totals, group_items_by_worker
from utils.uk_time import fmt_uk_date, fmt_uk_time

TIMESHEET_HEADERS = [
    "Date", "Job Code", "Job Name", "Clock In Time", "Clock Out Time",
    "Total Hours", "Has Clock In Photo", "Has Clock Out Photo",
]

LINE_ITEM_HEADERS = [
    "Worker", "Date", "Job", "Type", "Description", "Quantity",
    "Unit Amount", "Line Total", "Account Code", "Tax Type",
]

XERO_HEADERS = [
    "ContactName", "EmailAddress", "InvoiceNumber", "InvoiceDate", "DueDate",
    "Description", "Quantity", "UnitAmount", "AccountCode", "TaxType",
    "TrackingName1", "TrackingOption1",
]

_FORMULA_PREFIXES = ("=", "+", "-", "@")


def safe_cell(value: Any) -> Any:
    """Prefix text that a spreadsheet would evaluate as a formula."""
    if not isinstance(value, str) or not value.startswith(_FORMULA_PREFIXES):
        return value
    try:
        Decimal(value)
        return value
    except ArithmeticError:
        return "'" + value


def _fmt_decimal(value: Any) -> str:
    return f"{ensure_decimal(value):.2f}"


def render_csv(headers: Sequence[str], rows: Iterable[Sequence[Any]]) -> str:
    output = io.StringIO()
    writer = csv.writer(output, delimiter=',', quotechar='"', quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow([safe_cell(v) for v in row])
    return output.getvalue()


def csv_response(content: str, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter([content]),
        media_type="text/csv; charset=utf-8",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Content-Type": "text/csv; charset=utf-8"
        }
    )


def timesheet_rows(entries: Iterable[Any]) -> List[list]:
    """One row per clock entry; times in UK local time."""
    rows = []
    for e in entries:
        rows.append([
            fmt_uk_date(e.clock_in),
            e.job.code if e.job else "",
            e.job.name if e.job else "",
            fmt_uk_time(e.clock_in),
            fmt_uk_time(e.clock_out) if e.clock_out else "",
            f"{e.total_hours:.2f}" if e.total_hours is not None else "",
            "Yes" if e.clock_in_photo else "No",
            "Yes" if e.clock_out_photo else "No",
        ])
    return rows


def line_item_rows(items: Sequence[Any]) -> List[list]:
    """Line rows followed by a blank row and the type/grand totals."""
    rows = []
    for i in items:
        rows.append([
            i.worker_name or "",
            fmt_uk_date(i.work_date),
            i.job_name or "",
            i.entry_type,
            i.description,
            _fmt_decimal(i.quantity),
            _fmt_decimal(i.unit_amount),
            _fmt_decimal(line_total(i.quantity, i.unit_amount)),
            i.account_code,
            i.tax_type,
        ])
    totals = calculate_totals(items)
    rows.append([])
    rows.append(["Work Total", "", "", "", "", "", "", f"{totals['work_total']:.2f}", "", ""])
    rows.append(["Overtime Total", "", "", "", "", "", "", f"{totals['overtime_total']:.2f}", "", ""])
    rows.append(["Expense Total", "", "", "", "", "", "", f"{totals['expense_total']:.2f}", "", ""])
    rows.append(["Grand Total", "", "", "", "", "", "", f"{totals['grand_total']:.2f}", "", ""])
    return rows


def xero_rows(items: Sequence[Any], week_start: date, xero: Any, worker_emails: dict[int, str]) -> List[list]:
    """
    Xero bills import: one invoice per worker (ordered by worker name).

    InvoiceDate is the Sunday ending the week; DueDate adds payment terms.
    """
    invoice_date = week_start + timedelta(days=6)
    due_date = invoice_date + timedelta(days=xero.payment_terms_days)
    ordered = sorted(items, key=lambda i: (i.worker_name or "", i.work_date, i.id))

    rows = []
    for n, (worker_id, worker_items) in enumerate(group_items_by_worker(ordered).items()):
        invoice_number = f"{xero.invoice_prefix}-{xero.starting_invoice_number + n}"
        for i in worker_items:
            rows.append([
                i.worker_name or "",
                worker_emails.get(worker_id, ""),
                invoice_number,
                fmt_uk_date(invoice_date),
                fmt_uk_date(due_date),
                i.description,
                _fmt_decimal(i.quantity),
                _fmt_decimal(i.unit_amount),
                i.account_code or xero.default_account_code,
                i.tax_type or xero.default_tax_type,
                "Job",
                i.job_name or "",
            ])
    return rows
