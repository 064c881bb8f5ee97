"""
CSV Export Tests - Timesheet, Payroll Line Items, Xero Bills

Tests:
1. Formula-injection guard on text cells
2. Timesheet CSV (worker self-service and manager by worker_id)
3. Line item CSV with the totals block
4. Xero CSV: one invoice number per worker, dates from the week
"""
import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

from utils.exports import safe_cell

WEEK = date(2025, 3, 3)


def _rows(response):
    return list(csv.reader(io.StringIO(response.text)))


def test_safe_cell():
    assert safe_cell("=SUM(A1:A2)") == "'=SUM(A1:A2)"
    assert safe_cell("@cmd") == "'@cmd"
    assert safe_cell("+44 7700") == "'+44 7700"
    assert safe_cell("-12.50") == "-12.50", "Negative numbers stay numeric"
    assert safe_cell("Bricklaying") == "Bricklaying"
    assert safe_cell(42) == 42


def test_worker_timesheet_csv(client, worker_headers, make_entry, seed):
    make_entry(datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 3, 16, 30, tzinfo=timezone.utc),
               clock_in_photo="1/clock_in_x.jpg")

    r = client.get("/api/reports/timesheet.csv", headers=worker_headers)
    assert r.status_code == 200, f"Expected 200, got {r.status_code}"
    assert r.headers["content-type"].startswith("text/csv")
    assert f'timesheet_{seed["worker_id"]}.csv' in r.headers["content-disposition"]

    rows = _rows(r)
    assert rows[0][0] == "Date"
    assert rows[1] == ["03/03/2025", "HSR-01", "High Street Refit", "08:00", "16:30", "8.50", "Yes", "No"]


def test_manager_timesheet_requires_worker_id(client, manager_headers, seed):
    r = client.get("/api/reports/timesheet.csv", headers=manager_headers)
    assert r.status_code == 400

    r = client.get(f"/api/reports/timesheet.csv?worker_id={seed['worker_id']}", headers=manager_headers)
    assert r.status_code == 200


def test_line_items_csv(client, manager_headers, make_entry):
    make_entry(datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 4, 16, 0, tzinfo=timezone.utc))

    r = client.get(f"/api/reports/line-items/export.csv?week_start={WEEK}", headers=manager_headers)
    assert r.status_code == 200, f"Expected 200, got {r.status_code}: {r.text}"
    assert "payroll_report_2025-03-03.csv" in r.headers["content-disposition"]

    rows = _rows(r)
    assert rows[0][:3] == ["Worker", "Date", "Job"]
    assert rows[1][0] == "Will Worker"
    assert rows[1][3] == "work"
    assert rows[1][7] == "160.00"
    assert rows[2] == []
    assert rows[-1][0] == "Grand Total"
    assert rows[-1][7] == "160.00"


def test_xero_csv_numbers_invoices_per_worker(client, manager_headers, make_entry, db_session, seed):
    from models import UserAccount, Worker

    account = UserAccount(email="amy@example.com", password_hash="x", role="worker", organization_id=seed["org_id"])
    db_session.add(account)
    db_session.flush()
    amy = Worker(account_id=account.id, organization_id=seed["org_id"], email="amy@example.com",
                 name="Amy Adams", hourly_rate=Decimal("25.00"))
    db_session.add(amy)
    db_session.commit()

    make_entry(datetime(2025, 3, 3, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 3, 16, 0, tzinfo=timezone.utc))
    make_entry(datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 4, 16, 0, tzinfo=timezone.utc))
    make_entry(datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 4, 12, 0, tzinfo=timezone.utc),
               worker_id=amy.id)

    settings = client.put("/api/reports/xero-settings", headers=manager_headers, json={
        "invoice_prefix": "ACME",
        "starting_invoice_number": 500,
        "payment_terms_days": 14,
    })
    assert settings.status_code == 200, f"Expected 200, got {settings.status_code}: {settings.text}"

    r = client.get(f"/api/reports/line-items/xero.csv?week_start={WEEK}", headers=manager_headers)
    assert r.status_code == 200
    assert "xero_bills_2025-03-03.csv" in r.headers["content-disposition"]

    rows = _rows(r)
    header, body = rows[0], rows[1:]
    assert header[:3] == ["ContactName", "EmailAddress", "InvoiceNumber"]

    assert [row[0] for row in body] == ["Amy Adams", "Will Worker", "Will Worker"]
    assert [row[2] for row in body] == ["ACME-500", "ACME-501", "ACME-501"]
    assert body[0][1] == "amy@example.com"
    assert body[0][3] == "09/03/2025", "InvoiceDate is the Sunday ending the week"
    assert body[0][4] == "23/03/2025"
    assert body[0][11] == "High Street Refit"


def test_xero_settings_defaults(client, manager_headers):
    r = client.get("/api/reports/xero-settings", headers=manager_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["invoice_prefix"] == "INV"
    assert data["starting_invoice_number"] == 1001
    assert data["payment_terms_days"] == 30
