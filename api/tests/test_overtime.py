"""
Overtime Review Tests

Tests:
1. Display hours: rounded up to 0.1, capped at 3.0
2. Manager list: lookback window, pending first
3. Decision requires a reason, notifies the worker, blocks re-requests
"""
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

from utils.clocking import overtime_display_hours


def _recent(hours_ago: float) -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=hours_ago)


def test_overtime_display_hours_rounding_and_cap():
    start = datetime(2025, 3, 4, 17, 0, tzinfo=timezone.utc)

    short = SimpleNamespace(clock_in=start, clock_out=start + timedelta(minutes=61), total_hours=1.02)
    assert overtime_display_hours(short) == 1.1

    exact = SimpleNamespace(clock_in=start, clock_out=start + timedelta(hours=2), total_hours=2.0)
    assert overtime_display_hours(exact) == 2.0

    long = SimpleNamespace(clock_in=start, clock_out=start + timedelta(hours=5), total_hours=5.0)
    assert overtime_display_hours(long) == 3.0

    open_entry = SimpleNamespace(clock_in=start, clock_out=None, total_hours=None)
    assert overtime_display_hours(open_entry) is None


def test_list_overtime_requests(client, manager_headers, make_entry):
    now = datetime.now(timezone.utc)
    decided = make_entry(_recent(30), _recent(28), is_overtime=True, ot_status="approved",
                         ot_requested_at=now - timedelta(hours=27))
    pending = make_entry(_recent(6), _recent(4.5), is_overtime=True, ot_status="pending",
                         ot_requested_at=now - timedelta(hours=4))
    make_entry(_recent(24 * 20), _recent(24 * 20 - 2), is_overtime=True, ot_status="pending",
               ot_requested_at=now - timedelta(days=20))
    make_entry(_recent(10), _recent(2))

    r = client.get("/api/overtime/requests", headers=manager_headers)
    assert r.status_code == 200, f"Expected 200, got {r.status_code}"
    rows = r.json()
    assert [row["id"] for row in rows] == [pending.id, decided.id], "Pending first; old and non-OT entries excluded"
    assert rows[0]["hours"] == 1.5
    assert rows[0]["worker_name"] == "Will Worker"


def test_decide_overtime(client, manager_headers, worker_headers, make_entry, seed, db_session):
    from models import Notification

    entry = make_entry(_recent(5), _recent(3), is_overtime=True, ot_status="pending",
                       ot_requested_at=_recent(3))

    blank = client.post(f"/api/overtime/{entry.id}/decision", headers=manager_headers,
                        json={"decision": "approved", "reason": "  "})
    assert blank.status_code == 400

    r = client.post(f"/api/overtime/{entry.id}/decision", headers=manager_headers,
                    json={"decision": "rejected", "reason": "Not authorised in advance"})
    assert r.status_code == 200, f"Expected 200, got {r.status_code}: {r.text}"
    assert r.json()["ot_status"] == "rejected"

    db_session.expire_all()
    note = db_session.query(Notification).filter_by(worker_id=seed["worker_id"]).one()
    assert note.type == "overtime_rejected"
    assert "(2.0 hrs)" in note.body
    assert "Not authorised in advance" in note.body

    again = client.post(f"/api/clock/entries/{entry.id}/overtime", headers=worker_headers, json={})
    assert again.status_code == 409, "Decided overtime cannot be re-requested"


def test_decide_requires_overtime_flag(client, manager_headers, make_entry):
    entry = make_entry(_recent(5), _recent(3))
    r = client.post(f"/api/overtime/{entry.id}/decision", headers=manager_headers,
                    json={"decision": "approved", "reason": "ok"})
    assert r.status_code == 400


def test_invalid_decision_value(client, manager_headers, make_entry):
    entry = make_entry(_recent(5), _recent(3), is_overtime=True, ot_status="pending")
    r = client.post(f"/api/overtime/{entry.id}/decision", headers=manager_headers,
                    json={"decision": "maybe", "reason": "hmm"})
    assert r.status_code == 422
