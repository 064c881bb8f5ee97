"""Europe/London time helpers.

Timestamps are stored in UTC; anything shown to people (CSV exports,
notification bodies, "today" for reminders and dashboards) uses UK wall
clock time so BST/GMT switches land on the right calendar day.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from config import settings

UK_TZ = ZoneInfo(settings.UK_TIMEZONE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(dt: datetime | None) -> datetime | None:
    """Normalize to aware UTC (SQLite hands back naive datetimes)."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_uk(dt: datetime) -> datetime:
    return as_utc(dt).astimezone(UK_TZ)


def uk_now() -> datetime:
    return utcnow().astimezone(UK_TZ)


def uk_today() -> date:
    return uk_now().date()


def uk_date(dt: datetime) -> date:
    """Calendar day of a UTC timestamp as seen in the UK."""
    return to_uk(dt).date()


def uk_day_bounds_utc(d: date) -> tuple[datetime, datetime]:
    """[start, end) of a London calendar day, expressed in UTC."""
    start = datetime.combine(d, time.min, tzinfo=UK_TZ)
    end = datetime.combine(d + timedelta(days=1), time.min, tzinfo=UK_TZ)
    return start.astimezone(timezone.utc), end.astimezone(timezone.utc)


def week_start_for(d: date) -> date:
    """Monday on or before d."""
    return d - timedelta(days=d.weekday())


def fmt_uk_date(value: date | datetime) -> str:
    """dd/MM/yyyy"""
    if isinstance(value, datetime):
        value = to_uk(value)
    return value.strftime("%d/%m/%Y")


def fmt_uk_time(dt: datetime) -> str:
    """HH:mm"""
    return to_uk(dt).strftime("%H:%M")


def fmt_long_date(value: date | datetime) -> str:
    """MMM dd, yyyy (e.g. 'Mar 04, 2025')"""
    if isinstance(value, datetime):
        value = to_uk(value)
    return value.strftime("%b %d, %Y")
