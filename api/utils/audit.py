"""Lightweight metrics/audit helpers for API endpoints.

This module complements the clock_entry_history table by writing compact
metrics events to a JSONL file for quick local inspection.
"""
from __future__ import annotations

import os
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict


def _logs_dir() -> Path:
    """
    Get logs directory with date-based rotation.

    Returns:
        Path to logs/metrics/YYYY-MM-DD/
    """
    base = os.getenv("LOGS_DIR", "logs")
    today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
    p = Path(base) / "metrics" / today
    p.mkdir(parents=True, exist_ok=True)
    return p


def record_metric(
    kind: str,
    fields: Dict[str, Any] | None = None,
    outcome: str | None = None,
    latency_ms: float | None = None,
) -> None:
    """Append a single metric event to logs/metrics/YYYY-MM-DD/api.jsonl.

    Args:
        kind: Short event kind, e.g. "clock.in", "amendment.decide", "report.export".
        fields: Arbitrary dict with event fields (ids, counts, sizes, etc.).
        outcome: Optional outcome: accepted|rejected|denied.
        latency_ms: Request latency in milliseconds.
    """
    entry = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "kind": kind,
        "fields": fields or {},
    }
    if outcome:
        entry["outcome"] = outcome
    if latency_ms is not None:
        entry["latency_ms"] = latency_ms
    out = _logs_dir() / "api.jsonl"
    with out.open("a", encoding="utf-8") as f:
        f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")


def log_action(actor: int | str, action: str, payload: Dict[str, Any] | None = None, outcome: str | None = None) -> None:
    """Record who did what: proxies to record_metric with an ``action:`` kind."""
    record_metric(f"action:{action}", {"actor": actor, **(payload or {})}, outcome=outcome)
