"""
Pytest Configuration and Shared Fixtures for API Tests

This conftest.py provides:
- app: FastAPI app instance (test DB path comes from the root conftest)
- db_session: Database session on a freshly created schema
- seed: one organization with a manager, a worker, a geofenced job and an expense type
- client: FastAPI TestClient for HTTP requests
- manager_headers / worker_headers: Bearer headers obtained through /api/auth/login
"""
from decimal import Decimal

import bcrypt
import pytest

from seed_data import JOB_LAT, JOB_LNG, MANAGER_EMAIL, MANAGER_PASSWORD, WORKER_EMAIL, WORKER_PASSWORD


def _hash(password: str) -> str:
    # Low cost keeps the suite fast; verify_password accepts any cost
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=4)).decode("utf-8")


@pytest.fixture(scope="session")
def app():
    """FastAPI app instance (settings were fixed by the root conftest)."""
    from main import app
    return app


@pytest.fixture(scope="session")
def db_engine_and_session(app):
    """
    Database engine and SessionLocal from db module.

    Returns tuple: (engine, SessionLocal, Base)
    """
    from db import engine, SessionLocal
    from models import Base

    return engine, SessionLocal, Base


@pytest.fixture
def db_session(db_engine_and_session):
    """
    Database session for each test.

    Every test starts from an empty schema so seeds never collide.
    """
    engine, SessionLocal, Base = db_engine_and_session
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    session = SessionLocal()
    yield session

    session.rollback()
    session.close()


@pytest.fixture
def client(app, db_session):
    """FastAPI TestClient bound to the per-test schema."""
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def seed(db_session):
    """
    Seed one organization.

    Creates:
    - Organization "Acme Builders" on the trial plan (3 managers / 10 workers)
    - Manager account + profile (manager@example.com)
    - Worker account + profile (worker@example.com, £20.00/h)
    - Job "High Street Refit" geofenced 100m around Trafalgar Square
    - Expense type "Travel" (£15.00 flat)

    Returns dict of ids.
    """
    from models import ExpenseType, Job, Manager, Organization, UserAccount, Worker
    from utils.capacity import start_trial

    org = Organization(name="Acme Builders", email="office@acme.example")
    db_session.add(org)
    db_session.flush()
    start_trial(db_session, org)

    manager_account = UserAccount(
        email=MANAGER_EMAIL,
        password_hash=_hash(MANAGER_PASSWORD),
        role="manager",
        organization_id=org.id,
        is_active=True,
        must_change_password=False,
        failed_attempts=0,
    )
    db_session.add(manager_account)
    db_session.flush()
    manager = Manager(account_id=manager_account.id, organization_id=org.id, email=MANAGER_EMAIL, name="Mary Manager")
    db_session.add(manager)
    db_session.flush()

    worker_account = UserAccount(
        email=WORKER_EMAIL,
        password_hash=_hash(WORKER_PASSWORD),
        role="worker",
        organization_id=org.id,
        is_active=True,
        must_change_password=False,
        failed_attempts=0,
    )
    db_session.add(worker_account)
    db_session.flush()
    worker = Worker(
        account_id=worker_account.id,
        organization_id=org.id,
        manager_id=manager.id,
        email=WORKER_EMAIL,
        name="Will Worker",
        hourly_rate=Decimal("20.00"),
        is_active=True,
    )
    job = Job(
        organization_id=org.id,
        name="High Street Refit",
        code="HSR-01",
        postcode="WC2N 5DN",
        latitude=JOB_LAT,
        longitude=JOB_LNG,
        geofence_radius=100,
        geofence_enabled=True,
        is_active=True,
    )
    travel = ExpenseType(organization_id=org.id, name="Travel", amount=Decimal("15.00"), calculation_type="flat_rate")
    db_session.add_all([worker, job, travel])
    db_session.commit()

    return {
        "org_id": org.id,
        "manager_account_id": manager_account.id,
        "manager_id": manager.id,
        "worker_account_id": worker_account.id,
        "worker_id": worker.id,
        "job_id": job.id,
        "expense_type_id": travel.id,
    }


def _login(client, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, f"Login failed for {email}: {response.text}"
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def manager_headers(client, seed):
    return _login(client, MANAGER_EMAIL, MANAGER_PASSWORD)


@pytest.fixture
def worker_headers(client, seed):
    return _login(client, WORKER_EMAIL, WORKER_PASSWORD)


@pytest.fixture
def make_entry(db_session, seed):
    """Factory: insert a clock entry for the seeded worker directly."""
    from models import ClockEntry
    from utils.clocking import compute_total_hours

    def _make(clock_in, clock_out=None, **kwargs):
        entry = ClockEntry(
            worker_id=kwargs.pop("worker_id", seed["worker_id"]),
            job_id=kwargs.pop("job_id", seed["job_id"]),
            clock_in=clock_in,
            clock_out=clock_out,
            total_hours=compute_total_hours(clock_in, clock_out),
            **kwargs,
        )
        db_session.add(entry)
        db_session.commit()
        db_session.refresh(entry)
        return entry

    return _make
