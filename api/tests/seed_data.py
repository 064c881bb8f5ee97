"""Credentials and coordinates shared by the seed fixture and tests."""

MANAGER_EMAIL = "manager@example.com"
MANAGER_PASSWORD = "Manager123!"
WORKER_EMAIL = "worker@example.com"
WORKER_PASSWORD = "Worker123!"

# Trafalgar Square
JOB_LAT = 51.5074
JOB_LNG = -0.1278
