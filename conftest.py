"""Pytest bootstrap: api/ on sys.path and an isolated environment for the app."""
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parent
API_DIR = ROOT_DIR / "api"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

# Settings are read on first import of config; set everything before collection
_TMP_DIR = Path(tempfile.mkdtemp(prefix="autotime_tests_"))

os.environ.setdefault("DB_PATH", str(_TMP_DIR / "autotime_test.db"))
os.environ.setdefault("LOGS_DIR", str(_TMP_DIR / "logs"))
os.environ.setdefault("PHOTO_DIR", str(_TMP_DIR / "photos"))
os.environ.setdefault("INTERNAL_ADMIN_SECRET", "test-internal-secret")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-0123456789abcdef")
os.environ.setdefault("RATE_LIMIT_RPS", "10000")
os.environ.setdefault("IS_TEST_MODE", "true")
