"""Geofence checks for clock-in."""
from __future__ import annotations

import math

EARTH_RADIUS_M = 6371000.0
MIN_GEOFENCE_RADIUS_M = 50
MAX_GEOFENCE_RADIUS_M = 500


class GeofenceError(Exception):
    """Clock-in position is missing or outside the job's radius."""

    def __init__(self, message: str, distance_m: float | None = None, radius_m: int | None = None):
        super().__init__(message)
        self.distance_m = distance_m
        self.radius_m = radius_m


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def check_geofence(job, lat: float | None, lng: float | None) -> float | None:
    """
    Validate a clock-in position against the job's geofence.

    Returns the distance in meters (None when not measured).

    Raises:
        GeofenceError: position missing, or farther than job.geofence_radius
    """
    if not job.geofence_enabled or job.latitude is None or job.longitude is None:
        return None
    if lat is None or lng is None:
        raise GeofenceError("Location is required to clock in at this job")

    distance = haversine_m(job.latitude, job.longitude, lat, lng)
    if distance > job.geofence_radius:
        raise GeofenceError(
            f"You are {round(distance)}m from the job site (allowed radius {job.geofence_radius}m)",
            distance_m=distance,
            radius_m=job.geofence_radius,
        )
    return distance
