"""
Worker & Manager CRUD Tests - Create, Read, Update, Deactivate, Capacity, RBAC

Tests:
1. Create worker returns a one-time temporary password
2. Input validation (name, postcode, duplicate email)
3. Capacity limit blocks creation and re-activation
4. Soft delete deactivates the login too
5. Pagination and search
6. Workers cannot reach manager endpoints
"""
from decimal import Decimal


def _new_worker(**overrides):
    data = {
        "name": "Bob Builder",
        "email": "bob@example.com",
        "phone": "07700 900123",
        "postcode": "sw1a1aa",
        "hourly_rate": "18.50",
    }
    data.update(overrides)
    return data


def test_create_worker(client, manager_headers, db_session):
    from models import UserAccount

    response = client.post("/api/workers", headers=manager_headers, json=_new_worker())
    assert response.status_code == 201, f"Expected 201, got {response.status_code}: {response.text}"
    data = response.json()

    assert data["name"] == "Bob Builder"
    assert data["email"] == "bob@example.com"
    assert data["postcode"] == "SW1A 1AA", f"Postcode not formatted: {data['postcode']}"
    assert Decimal(str(data["hourly_rate"])) == Decimal("18.50")
    assert data["temporary_password"], "Missing temporary_password"

    db_session.expire_all()
    account = db_session.query(UserAccount).filter_by(email="bob@example.com").one()
    assert account.role == "worker"
    assert account.must_change_password is True

    login = client.post("/api/auth/login", json={"email": "bob@example.com", "password": data["temporary_password"]})
    assert login.status_code == 200, "Temporary password should log in"
    assert login.json()["must_change_password"] is True


def test_create_worker_rejects_bad_input(client, manager_headers):
    bad_name = client.post("/api/workers", headers=manager_headers, json=_new_worker(name="B0b <script>"))
    assert bad_name.status_code == 400, f"Expected 400, got {bad_name.status_code}"

    bad_postcode = client.post("/api/workers", headers=manager_headers, json=_new_worker(postcode="NOTAPOSTCODE"))
    assert bad_postcode.status_code == 400

    negative_rate = client.post("/api/workers", headers=manager_headers, json=_new_worker(hourly_rate="-1"))
    assert negative_rate.status_code == 422


def test_create_worker_duplicate_email(client, manager_headers):
    r = client.post("/api/workers", headers=manager_headers, json=_new_worker(email="worker@example.com"))
    assert r.status_code == 409, f"Expected 409, got {r.status_code}"


def test_create_worker_capacity_limit(client, manager_headers, db_session, seed):
    from models import Organization

    org = db_session.get(Organization, seed["org_id"])
    org.max_workers = 1
    db_session.commit()

    r = client.post("/api/workers", headers=manager_headers, json=_new_worker())
    assert r.status_code == 403, f"Expected 403, got {r.status_code}"
    assert r.json()["detail"] == "Capacity limit reached"


def test_deactivate_worker(client, manager_headers, seed, db_session):
    from models import UserAccount, Worker

    r = client.delete(f"/api/workers/{seed['worker_id']}", headers=manager_headers)
    assert r.status_code == 200, f"Expected 200, got {r.status_code}"
    assert r.json()["is_active"] is False

    db_session.expire_all()
    assert db_session.get(Worker, seed["worker_id"]).is_active is False
    assert db_session.get(UserAccount, seed["worker_account_id"]).is_active is False

    # Deactivated worker no longer counts against the seat limit
    capacity = client.get("/api/organization/capacity?resource=workers", headers=manager_headers).json()
    assert capacity["current"] == 0


def test_reactivate_worker_needs_capacity(client, manager_headers, seed, db_session):
    from models import Organization

    client.delete(f"/api/workers/{seed['worker_id']}", headers=manager_headers)
    created = client.post("/api/workers", headers=manager_headers, json=_new_worker())
    assert created.status_code == 201

    org = db_session.get(Organization, seed["org_id"])
    org.max_workers = 1
    db_session.commit()

    r = client.put(f"/api/workers/{seed['worker_id']}", headers=manager_headers, json={"is_active": True})
    assert r.status_code == 403, f"Expected 403, got {r.status_code}"


def test_update_worker(client, manager_headers, seed):
    r = client.put(f"/api/workers/{seed['worker_id']}", headers=manager_headers, json={
        "hourly_rate": "22.75",
        "emergency_contact": "Jo Worker",
    })
    assert r.status_code == 200, f"Expected 200, got {r.status_code}: {r.text}"
    data = r.json()
    assert Decimal(str(data["hourly_rate"])) == Decimal("22.75")
    assert data["emergency_contact"] == "Jo Worker"


def test_update_worker_ignores_null_required_fields(client, manager_headers, seed):
    r = client.put(f"/api/workers/{seed['worker_id']}", headers=manager_headers, json={
        "name": None,
        "is_active": None,
        "phone": "07700 900123",
    })
    assert r.status_code == 200, f"Expected 200, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["name"] == "Will Worker"
    assert data["is_active"] is True
    assert data["phone"] == "07700 900123"


def test_list_workers_pagination_and_search(client, manager_headers):
    for i, name in enumerate(["Alice Able", "Carl Cable", "Dina Dable"]):
        r = client.post("/api/workers", headers=manager_headers,
                        json=_new_worker(name=name, email=f"w{i}@example.com", postcode=None))
        assert r.status_code == 201

    page = client.get("/api/workers?page=1&limit=2", headers=manager_headers).json()
    assert page["total"] == 4
    assert page["pages"] == 2
    assert len(page["items"]) == 2
    assert page["items"][0]["name"] == "Alice Able", "Workers should be ordered by name"

    found = client.get("/api/workers?search=cable", headers=manager_headers).json()
    assert [w["name"] for w in found["items"]] == ["Carl Cable"]


def test_get_worker_from_other_org_is_404(client, manager_headers, db_session):
    from models import Organization, UserAccount, Worker

    other = Organization(name="Other Org")
    db_session.add(other)
    db_session.flush()
    account = UserAccount(email="x@other.example", password_hash="x", role="worker", organization_id=other.id)
    db_session.add(account)
    db_session.flush()
    stranger = Worker(account_id=account.id, organization_id=other.id, email="x@other.example", name="Xavier Other")
    db_session.add(stranger)
    db_session.commit()

    r = client.get(f"/api/workers/{stranger.id}", headers=manager_headers)
    assert r.status_code == 404, f"Expected 404, got {r.status_code}"


def test_worker_profile_me(client, worker_headers, seed):
    r = client.get("/api/workers/me", headers=worker_headers)
    assert r.status_code == 200
    assert r.json()["id"] == seed["worker_id"]


def test_worker_cannot_manage_workers(client, worker_headers):
    r = client.get("/api/workers", headers=worker_headers)
    assert r.status_code == 403, f"Expected 403, got {r.status_code}"

    r = client.post("/api/workers", headers=worker_headers, json=_new_worker())
    assert r.status_code == 403


def test_create_manager_and_capacity(client, manager_headers, db_session, seed):
    from models import Organization

    r = client.post("/api/managers", headers=manager_headers, json={
        "name": "Nina Second",
        "email": "nina@example.com",
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    assert r.json()["temporary_password"]

    org = db_session.get(Organization, seed["org_id"])
    org.max_managers = 2
    db_session.commit()

    r = client.post("/api/managers", headers=manager_headers, json={
        "name": "Olly Third",
        "email": "olly@example.com",
    })
    assert r.status_code == 403, f"Expected 403, got {r.status_code}"

    managers = client.get("/api/managers", headers=manager_headers).json()
    assert len(managers) == 2
