"""
Expense Type & Additional Cost Tests

Tests:
1. Expense type CRUD, case-insensitive unique names, deactivation
2. Manager-entered additional costs (defaults from type and entry)
3. Worker visibility of expense types
"""
from datetime import date, datetime, timezone
from decimal import Decimal


def test_expense_type_crud(client, manager_headers, worker_headers, seed):
    r = client.post("/api/expense-types", headers=manager_headers, json={
        "name": "Parking",
        "amount": "8.50",
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    parking = r.json()
    assert parking["calculation_type"] == "flat_rate"
    assert Decimal(str(parking["amount"])) == Decimal("8.50")

    duplicate = client.post("/api/expense-types", headers=manager_headers, json={"name": "travel", "amount": "1.00"})
    assert duplicate.status_code == 409, f"Expected 409, got {duplicate.status_code}"

    rename_clash = client.put(f"/api/expense-types/{parking['id']}", headers=manager_headers, json={"name": "TRAVEL"})
    assert rename_clash.status_code == 409

    updated = client.put(f"/api/expense-types/{parking['id']}", headers=manager_headers, json={"amount": "9.00"})
    assert Decimal(str(updated.json()["amount"])) == Decimal("9.00")

    assert client.delete(f"/api/expense-types/{parking['id']}", headers=manager_headers).status_code == 200

    visible = client.get("/api/expense-types", headers=worker_headers).json()
    assert [t["name"] for t in visible] == ["Travel"]

    everything = client.get("/api/expense-types?include_inactive=true", headers=manager_headers).json()
    assert [t["name"] for t in everything] == ["Parking", "Travel"]


def test_worker_cannot_create_expense_type(client, worker_headers):
    r = client.post("/api/expense-types", headers=worker_headers, json={"name": "Tools", "amount": "5.00"})
    assert r.status_code == 403


def test_additional_cost_defaults_from_type_and_entry(client, manager_headers, make_entry, seed):
    entry = make_entry(datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc), datetime(2025, 3, 4, 16, 0, tzinfo=timezone.utc))

    r = client.post("/api/additional-costs", headers=manager_headers, json={
        "worker_id": seed["worker_id"],
        "expense_type_id": seed["expense_type_id"],
        "clock_entry_id": entry.id,
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    cost = r.json()
    assert Decimal(str(cost["amount"])) == Decimal("15.00")
    assert cost["date"] == "2025-03-04"
    assert cost["description"] == "Travel"
    assert cost["expense_type_name"] == "Travel"
    assert cost["worker_name"] == "Will Worker"


def test_additional_cost_free_form(client, manager_headers, seed):
    r = client.post("/api/additional-costs", headers=manager_headers, json={
        "worker_id": seed["worker_id"],
        "amount": "42.10",
        "description": "PPE replacement",
        "date": "2025-03-05",
    })
    assert r.status_code == 201
    assert r.json()["expense_type_id"] is None

    missing_amount = client.post("/api/additional-costs", headers=manager_headers, json={
        "worker_id": seed["worker_id"],
        "description": "No amount",
    })
    assert missing_amount.status_code == 400

    listed = client.get("/api/additional-costs?date_from=2025-03-01&date_to=2025-03-31", headers=manager_headers).json()
    assert len(listed) == 1
    assert listed[0]["date"] == str(date(2025, 3, 5))


def test_additional_cost_unknown_worker(client, manager_headers):
    r = client.post("/api/additional-costs", headers=manager_headers, json={"worker_id": 9999, "amount": "1.00"})
    assert r.status_code == 404
