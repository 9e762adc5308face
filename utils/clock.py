# utils/clock.py
from __future__ import annotations

from datetime import datetime, time, timedelta, timezone

from dateutil import parser as dtparse

__all__ = ["utcnow", "to_naive_utc", "iso_z", "parse_day", "day_bounds"]


def utcnow() -> datetime:
    """Naive UTC 'now'; every DateTime column stores naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def iso_z(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return to_naive_utc(dt).isoformat(timespec="seconds") + "Z"


def parse_day(value: str | None):
    """``YYYY-MM-DD`` (or any date dateutil understands) to a ``date``; None if blank/invalid."""
    if not value:
        return None
    try:
        return dtparse.parse(str(value)).date()
    except (ValueError, OverflowError):
        return None


def day_bounds(day) -> tuple[datetime, datetime]:
    """[start, end) of a UTC calendar day as naive datetimes."""
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)
