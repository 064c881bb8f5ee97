"""
Time Amendment Tests - Request, Approve, Reject

Tests:
1. Worker requests a correction for own entry
2. Validation: reason, requested times, ordering, one pending per entry
3. Approval copies times to the entry, writes history and notifies the worker
4. Rejection requires manager notes
"""
from datetime import datetime, timedelta, timezone

import pytest

SHIFT_START = datetime(2025, 3, 4, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def shift(make_entry):
    return make_entry(SHIFT_START, SHIFT_START + timedelta(hours=8))


def _request(client, headers, entry_id, **overrides):
    body = {
        "clock_entry_id": entry_id,
        "requested_clock_out": (SHIFT_START + timedelta(hours=9, minutes=30)).isoformat(),
        "reason": "Forgot to clock out after the snagging walk",
    }
    body.update(overrides)
    return client.post("/api/amendments", headers=headers, json=body)


def test_worker_requests_amendment(client, worker_headers, shift):
    r = _request(client, worker_headers, shift.id)
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["status"] == "pending"
    assert data["job_name"] == "High Street Refit"
    assert data["original_clock_out"].startswith("2025-03-04T16:00:00")

    mine = client.get("/api/amendments/mine", headers=worker_headers).json()
    assert [a["id"] for a in mine] == [data["id"]]


def test_amendment_validation(client, worker_headers, shift):
    blank = _request(client, worker_headers, shift.id, reason="   ")
    assert blank.status_code == 400, f"Expected 400 for blank reason, got {blank.status_code}"

    no_times = _request(client, worker_headers, shift.id, requested_clock_out=None)
    assert no_times.status_code == 400

    inverted = _request(client, worker_headers, shift.id,
                        requested_clock_out=(SHIFT_START - timedelta(hours=1)).isoformat())
    assert inverted.status_code == 400

    missing = _request(client, worker_headers, 9999)
    assert missing.status_code == 404


def test_one_pending_amendment_per_entry(client, worker_headers, shift):
    assert _request(client, worker_headers, shift.id).status_code == 201
    r = _request(client, worker_headers, shift.id)
    assert r.status_code == 409, f"Expected 409, got {r.status_code}"


def test_approve_amendment_updates_entry(client, worker_headers, manager_headers, shift, seed, db_session):
    from models import ClockEntry, ClockEntryHistory, Notification

    amendment = _request(client, worker_headers, shift.id).json()

    r = client.post(f"/api/amendments/{amendment['id']}/approve", headers=manager_headers,
                    json={"manager_notes": "Confirmed with site log"})
    assert r.status_code == 200, f"Expected 200, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["status"] == "approved"
    assert data["approved_by"] == seed["manager_id"]

    db_session.expire_all()
    entry = db_session.get(ClockEntry, shift.id)
    assert entry.total_hours == 9.5
    assert "Updated via approved time amendment" in entry.notes

    history = db_session.query(ClockEntryHistory).filter_by(clock_entry_id=shift.id).one()
    assert history.change_type == "amendment_approval"
    assert history.amendment_id == amendment["id"]
    assert history.old_total_hours == 8.0
    assert history.new_total_hours == 9.5

    note = db_session.query(Notification).filter_by(worker_id=seed["worker_id"]).one()
    assert note.type == "amendment_approved"
    assert "Mar 04, 2025" in note.body
    assert "Confirmed with site log" in note.body

    again = client.post(f"/api/amendments/{amendment['id']}/approve", headers=manager_headers, json={})
    assert again.status_code == 409, "Decided amendments cannot be decided again"


def test_reject_amendment_requires_notes(client, worker_headers, manager_headers, shift, db_session):
    from models import ClockEntry

    amendment = _request(client, worker_headers, shift.id).json()

    r = client.post(f"/api/amendments/{amendment['id']}/reject", headers=manager_headers, json={})
    assert r.status_code == 400

    r = client.post(f"/api/amendments/{amendment['id']}/reject", headers=manager_headers,
                    json={"manager_notes": "Gate log shows 16:00"})
    assert r.status_code == 200
    assert r.json()["status"] == "rejected"

    db_session.expire_all()
    assert db_session.get(ClockEntry, shift.id).total_hours == 8.0, "Rejected amendment must not touch the entry"


def test_manager_list_pending_first(client, worker_headers, manager_headers, make_entry):
    first = make_entry(SHIFT_START, SHIFT_START + timedelta(hours=8))
    second = make_entry(SHIFT_START + timedelta(days=1), SHIFT_START + timedelta(days=1, hours=8))

    a1 = _request(client, worker_headers, first.id).json()
    client.post(f"/api/amendments/{a1['id']}/approve", headers=manager_headers, json={})
    a2 = _request(client, worker_headers, second.id,
                  requested_clock_out=(SHIFT_START + timedelta(days=1, hours=9)).isoformat()).json()

    listed = client.get("/api/amendments", headers=manager_headers).json()
    assert [a["id"] for a in listed] == [a2["id"], a1["id"]]

    pending = client.get("/api/amendments?status=pending", headers=manager_headers).json()
    assert [a["id"] for a in pending] == [a2["id"]]


def test_worker_cannot_approve(client, worker_headers, shift):
    amendment = _request(client, worker_headers, shift.id).json()
    r = client.post(f"/api/amendments/{amendment['id']}/approve", headers=worker_headers, json={})
    assert r.status_code == 403


def test_approval_rechecks_times_after_entry_edit(client, worker_headers, manager_headers, shift, db_session):
    from models import ClockEntry

    amendment = _request(
        client, worker_headers, shift.id,
        requested_clock_in=(SHIFT_START + timedelta(hours=3)).isoformat(),
        requested_clock_out=None,
    ).json()

    edit = client.put(f"/api/clock-entries/{shift.id}", headers=manager_headers, json={
        "clock_out": (SHIFT_START + timedelta(hours=2)).isoformat(),
    })
    assert edit.status_code == 200, f"Expected 200, got {edit.status_code}: {edit.text}"

    r = client.post(f"/api/amendments/{amendment['id']}/approve", headers=manager_headers, json={})
    assert r.status_code == 400, f"Expected 400, got {r.status_code}: {r.text}"

    db_session.expire_all()
    entry = db_session.get(ClockEntry, shift.id)
    assert entry.total_hours == 2.0
    pending = client.get("/api/amendments?status=pending", headers=manager_headers).json()
    assert [a["id"] for a in pending] == [amendment["id"]]
