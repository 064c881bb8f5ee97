#!/usr/bin/env python3
"""
Run the AutoTime scheduled jobs once (for cron).

    */15 * * * *  python scripts/run_scheduled_jobs.py auto-clock-out
    0 * * * 1-5   python scripts/run_scheduled_jobs.py reminders

Prints a JSON summary per job.
"""
import argparse
import json
import logging
import sys
from pathlib import Path

API_DIR = Path(__file__).resolve().parents[1] / "api"
if str(API_DIR) not in sys.path:
    sys.path.insert(0, str(API_DIR))

from db import SessionLocal  # noqa: E402
from utils.clocking import auto_clock_out, send_reminders  # noqa: E402

JOBS = ("auto-clock-out", "reminders", "all")


def run(job: str) -> dict:
    results = {}
    with SessionLocal() as db:
        if job in ("auto-clock-out", "all"):
            results["auto_clock_out"] = {"closed": auto_clock_out(db)}
        if job in ("reminders", "all"):
            results["reminders"] = send_reminders(db)
    return results


def main():
    ap = argparse.ArgumentParser(description="AutoTime scheduled jobs")
    ap.add_argument("job", choices=JOBS, help="Job to run")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level")
    a = ap.parse_args()

    logging.basicConfig(
        level=logging.INFO if a.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    print(json.dumps({"ok": True, **run(a.job)}))


if __name__ == "__main__":
    main()
