"""
Authentication Tests - JWT, Password Login, Lockout, Token Refresh, Signup

Tests:
1. Password login with valid/invalid credentials
2. Lockout after 5 failed attempts
3. Token refresh rotation and logout
4. JWT claims
5. Change password policy
6. Organization signup
"""
from datetime import datetime, timedelta, timezone

import jwt

from seed_data import MANAGER_EMAIL, MANAGER_PASSWORD, WORKER_EMAIL, WORKER_PASSWORD


def test_password_login_success(client, seed):
    """Manager logs in with email/password."""
    response = client.post("/api/auth/login", json={
        "email": MANAGER_EMAIL,
        "password": MANAGER_PASSWORD
    })

    assert response.status_code == 200, f"Expected 200, got {response.status_code}"
    data = response.json()

    assert "access_token" in data, "Missing access_token"
    assert "refresh_token" in data, "Missing refresh_token"
    assert data["token_type"] == "bearer"
    assert data["role"] == "manager"
    assert data["organization_id"] == seed["org_id"]
    assert data["name"] == "Mary Manager"

    # Verify JWT structure (3 parts: header.payload.signature)
    assert len(data["access_token"].split(".")) == 3, "Invalid JWT format (should have 3 parts)"


def test_login_email_is_case_insensitive(client, seed):
    response = client.post("/api/auth/login", json={
        "email": "  Manager@Example.COM ",
        "password": MANAGER_PASSWORD
    })
    assert response.status_code == 200, f"Expected 200, got {response.status_code}"


def test_password_login_failure_wrong_password(client, seed):
    response = client.post("/api/auth/login", json={
        "email": WORKER_EMAIL,
        "password": "wrongpassword"
    })

    assert response.status_code == 401, f"Expected 401, got {response.status_code}"
    assert "4 attempts remaining" in response.json()["detail"]


def test_password_login_failure_unknown_email(client, seed):
    response = client.post("/api/auth/login", json={
        "email": "nobody@example.com",
        "password": "anypassword"
    })

    assert response.status_code == 401, f"Expected 401, got {response.status_code}"


def test_lockout_after_five_failures(client, seed, db_session):
    """Fifth wrong password locks the account; the right one is refused while locked."""
    from models import UserAccount

    for attempt in range(1, 5):
        r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "nope"})
        assert r.status_code == 401, f"Attempt {attempt}: expected 401, got {r.status_code}"

    r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "nope"})
    assert r.status_code == 403, f"Expected 403 on 5th failure, got {r.status_code}"

    r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": WORKER_PASSWORD})
    assert r.status_code == 403, f"Expected 403 while locked, got {r.status_code}"
    assert "locked" in r.json()["detail"].lower()

    db_session.expire_all()
    account = db_session.get(UserAccount, seed["worker_account_id"])
    assert account.failed_attempts == 5
    assert account.locked_until is not None


def test_expired_lock_starts_a_fresh_window(client, seed, db_session):
    """Once the lock has lapsed, one wrong password counts as the first failure again."""
    from models import UserAccount

    for _ in range(5):
        client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "nope"})

    account = db_session.get(UserAccount, seed["worker_account_id"])
    db_session.refresh(account)
    account.locked_until = datetime.now(timezone.utc) - timedelta(minutes=1)
    db_session.commit()

    r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "nope"})
    assert r.status_code == 401, f"Expected 401, got {r.status_code}: {r.text}"
    assert "4 attempts remaining" in r.json()["detail"]

    db_session.expire_all()
    account = db_session.get(UserAccount, seed["worker_account_id"])
    assert account.failed_attempts == 1
    assert account.locked_until is None


def test_successful_login_resets_failed_attempts(client, seed, db_session):
    from models import UserAccount

    client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "nope"})
    r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": WORKER_PASSWORD})
    assert r.status_code == 200

    db_session.expire_all()
    assert db_session.get(UserAccount, seed["worker_account_id"]).failed_attempts == 0


def test_disabled_account_cannot_login(client, seed, db_session):
    from models import UserAccount

    account = db_session.get(UserAccount, seed["worker_account_id"])
    account.is_active = False
    db_session.commit()

    r = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": WORKER_PASSWORD})
    assert r.status_code == 403, f"Expected 403, got {r.status_code}"


def test_token_refresh_rotates(client, seed):
    """Refresh returns a new pair and revokes the old refresh token."""
    login = client.post("/api/auth/login", json={"email": MANAGER_EMAIL, "password": MANAGER_PASSWORD})
    refresh_token = login.json()["refresh_token"]

    r = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert r.status_code == 200, f"Refresh failed: {r.status_code}"
    assert r.json()["refresh_token"] != refresh_token

    replay = client.post("/api/auth/refresh", json={"refresh_token": refresh_token})
    assert replay.status_code == 401, f"Expected 401 on replay, got {replay.status_code}"


def test_refresh_rejects_access_token(client, seed):
    login = client.post("/api/auth/login", json={"email": MANAGER_EMAIL, "password": MANAGER_PASSWORD})
    r = client.post("/api/auth/refresh", json={"refresh_token": login.json()["access_token"]})
    assert r.status_code == 401


def test_logout_revokes_refresh_tokens(client, seed):
    login = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": WORKER_PASSWORD}).json()
    headers = {"Authorization": f"Bearer {login['access_token']}"}

    assert client.post("/api/auth/logout", headers=headers).status_code == 200
    r = client.post("/api/auth/refresh", json={"refresh_token": login["refresh_token"]})
    assert r.status_code == 401


def test_jwt_token_claims(client, seed):
    login = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": WORKER_PASSWORD})
    payload = jwt.decode(login.json()["access_token"], options={"verify_signature": False})

    assert payload["sub"] == WORKER_EMAIL
    assert payload["user_id"] == seed["worker_account_id"]
    assert payload["role"] == "worker"
    assert payload["org_id"] == seed["org_id"]
    assert payload["type"] == "access"
    assert "exp" in payload, "Missing 'exp' claim (expiration)"


def test_me_returns_profile(client, worker_headers, seed):
    r = client.get("/api/auth/me", headers=worker_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["account"]["email"] == WORKER_EMAIL
    assert data["profile_id"] == seed["worker_id"]
    assert data["name"] == "Will Worker"


def test_requests_without_token_are_rejected(client, seed):
    r = client.get("/api/auth/me")
    assert r.status_code in (401, 403), f"Expected 401/403, got {r.status_code}"


def test_change_password_policy(client, worker_headers):
    wrong = client.post("/api/auth/change-password", headers=worker_headers, json={
        "current_password": "bad", "new_password": "NewPass123!"
    })
    assert wrong.status_code == 400

    weak = client.post("/api/auth/change-password", headers=worker_headers, json={
        "current_password": WORKER_PASSWORD, "new_password": "short"
    })
    assert weak.status_code == 400
    assert "at least 8 characters" in weak.json()["detail"]

    ok = client.post("/api/auth/change-password", headers=worker_headers, json={
        "current_password": WORKER_PASSWORD, "new_password": "NewPass123!"
    })
    assert ok.status_code == 200, f"Expected 200, got {ok.status_code}: {ok.text}"
    assert ok.json()["strength"] == "strong"

    relogin = client.post("/api/auth/login", json={"email": WORKER_EMAIL, "password": "NewPass123!"})
    assert relogin.status_code == 200


def test_register_organization(client, db_session):
    from models import Manager, Organization, SubscriptionUsage

    r = client.post("/api/auth/register", json={
        "organization_name": "Brick & Co",
        "manager_name": "Sam Owner",
        "email": "owner@brick.example",
        "password": "Owner123!",
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["role"] == "manager"

    db_session.expire_all()
    org = db_session.get(Organization, data["organization_id"])
    assert org.subscription_status == "trial"
    assert org.max_workers == 10
    assert org.trial_ends_at is not None
    assert db_session.query(Manager).filter_by(organization_id=org.id).count() == 1
    usage = db_session.query(SubscriptionUsage).filter_by(organization_id=org.id, is_active=True).one()
    assert usage.plan_type == "trial"


def test_register_duplicate_email(client, seed):
    r = client.post("/api/auth/register", json={
        "organization_name": "Another Org",
        "manager_name": "Someone Else",
        "email": MANAGER_EMAIL,
        "password": "Owner123!",
    })
    assert r.status_code == 409, f"Expected 409, got {r.status_code}"


def test_password_hashing():
    from auth import hash_password, verify_password

    hashed = hash_password("Secret123!")
    assert hashed.startswith("$2"), f"Not bcrypt hash: {hashed[:10]}"
    assert verify_password("Secret123!", hashed)
    assert not verify_password("Secret124!", hashed)
