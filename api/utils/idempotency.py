"""Idempotency utilities for AutoTime API (Idempotency-Key header)."""
import hashlib
from sqlalchemy import text


def remember(key: str, session_factory, scope: str = "") -> bool:
    """
    Check and record idempotency key.

    The key is hashed together with ``scope`` (e.g. "clock.in:42") so two
    workers reusing the same client-generated key never collide.

    Returns:
        True if key is new (inserted successfully)
        False if key already exists (duplicate request)
    """
    h = hashlib.sha256(f"{scope}|{key}".encode("utf-8")).hexdigest()

    with session_factory() as s:
        s.execute(text("INSERT OR IGNORE INTO idempotency_keys(key, created_at) VALUES (:k, CURRENT_TIMESTAMP)"), {"k": h})

        # changes() is per-connection: read it before commit releases the connection
        r = s.execute(text("SELECT changes()")).scalar()
        s.commit()
        return bool(r)
