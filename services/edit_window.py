# services/edit_window.py
"""
Edit window for customer orders.

An order carries ``edit_deadline`` (creation or last customer edit + N hours).
The owner may change it only while the deadline is in the future; a missing
deadline means the order is locked.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

__all__ = ["compute_deadline", "can_edit", "now_utc"]

DEFAULT_EDIT_HOURS = 2


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _aware(ts: datetime) -> datetime:
    # naive values come back from SQLite; they are stored as UTC
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def compute_deadline(start: datetime | None = None, hours: float = DEFAULT_EDIT_HOURS) -> datetime:
    """``start`` (default: now) plus ``hours``. Zero or negative hours are allowed."""
    base = _aware(start) if start is not None else now_utc()
    return base + timedelta(hours=hours)


def can_edit(deadline: datetime | None, now: datetime | None = None) -> bool:
    if deadline is None:
        return False
    current = _aware(now) if now is not None else now_utc()
    return _aware(deadline) > current
