"""
Job Site & Geofence Tests

Tests:
1. Haversine distance and geofence checks (pure)
2. Job CRUD with coordinates or a cached postcode
3. Geofence radius bounds
4. Workers only see active jobs
"""
import pytest

from seed_data import JOB_LAT, JOB_LNG
from utils.geo import GeofenceError, check_geofence, haversine_m


class _Job:
    def __init__(self, lat=JOB_LAT, lng=JOB_LNG, radius=100, enabled=True):
        self.latitude = lat
        self.longitude = lng
        self.geofence_radius = radius
        self.geofence_enabled = enabled


def test_haversine_known_distance():
    # London -> Paris is roughly 344 km
    d = haversine_m(51.5074, -0.1278, 48.8566, 2.3522)
    assert 340_000 < d < 348_000, f"Unexpected distance {d}"
    assert haversine_m(JOB_LAT, JOB_LNG, JOB_LAT, JOB_LNG) == 0


def test_geofence_inside_and_outside():
    job = _Job(radius=100)
    # ~55m north
    assert check_geofence(job, JOB_LAT + 0.0005, JOB_LNG) < 100

    with pytest.raises(GeofenceError) as exc:
        check_geofence(job, JOB_LAT + 0.01, JOB_LNG)  # ~1.1 km
    assert exc.value.radius_m == 100
    assert exc.value.distance_m > 1000


def test_geofence_requires_location():
    with pytest.raises(GeofenceError):
        check_geofence(_Job(), None, None)


def test_geofence_skipped_when_disabled_or_unlocated():
    assert check_geofence(_Job(enabled=False), None, None) is None
    assert check_geofence(_Job(lat=None, lng=None), 10.0, 10.0) is None


def test_create_job_with_coordinates(client, manager_headers):
    r = client.post("/api/jobs", headers=manager_headers, json={
        "name": "Canal Bridge",
        "code": "CB-7",
        "latitude": 51.53,
        "longitude": -0.12,
        "geofence_radius": 250,
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["geofence_radius"] == 250
    assert data["is_active"] is True


def test_create_job_geocodes_from_cached_postcode(client, manager_headers, db_session):
    from models import UKPostcode

    db_session.add(UKPostcode(postcode="M1 1AE", latitude=53.4808, longitude=-2.2426))
    db_session.commit()

    r = client.post("/api/jobs", headers=manager_headers, json={
        "name": "Piccadilly Fitout",
        "code": "PF-1",
        "postcode": "m11ae",
    })
    assert r.status_code == 201, f"Expected 201, got {r.status_code}: {r.text}"
    data = r.json()
    assert data["postcode"] == "M1 1AE"
    assert data["latitude"] == pytest.approx(53.4808)
    assert data["longitude"] == pytest.approx(-2.2426)


def test_create_job_rejects_invalid_postcode(client, manager_headers):
    r = client.post("/api/jobs", headers=manager_headers, json={
        "name": "Nowhere",
        "code": "NW-0",
        "postcode": "12345",
    })
    assert r.status_code == 400, f"Expected 400, got {r.status_code}"


@pytest.mark.parametrize("radius", [49, 501])
def test_geofence_radius_bounds(client, manager_headers, radius):
    r = client.post("/api/jobs", headers=manager_headers, json={
        "name": "Edge Case",
        "code": "EC-1",
        "latitude": 51.5,
        "longitude": -0.1,
        "geofence_radius": radius,
    })
    assert r.status_code == 422, f"Expected 422 for radius {radius}, got {r.status_code}"


def test_update_job(client, manager_headers, seed):
    r = client.put(f"/api/jobs/{seed['job_id']}", headers=manager_headers, json={
        "name": "High Street Refit Phase 2",
        "geofence_radius": 300,
    })
    assert r.status_code == 200, f"Expected 200, got {r.status_code}"
    data = r.json()
    assert data["name"] == "High Street Refit Phase 2"
    assert data["geofence_radius"] == 300
    assert data["latitude"] == pytest.approx(JOB_LAT), "Coordinates should be untouched"


def test_deactivated_job_hidden_from_workers(client, manager_headers, worker_headers, seed):
    r = client.delete(f"/api/jobs/{seed['job_id']}", headers=manager_headers)
    assert r.status_code == 200

    worker_view = client.get("/api/jobs", headers=worker_headers).json()
    assert worker_view == []

    manager_view = client.get("/api/jobs?include_inactive=true", headers=manager_headers).json()
    assert [j["id"] for j in manager_view] == [seed["job_id"]]


def test_worker_cannot_create_job(client, worker_headers):
    r = client.post("/api/jobs", headers=worker_headers, json={"name": "X", "code": "X"})
    assert r.status_code == 403
