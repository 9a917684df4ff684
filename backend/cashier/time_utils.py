from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a plain YYYY-MM-DD string. Raises ValueError on bad input."""
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    return datetime.strptime(s, "%Y-%m-%d").date()


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Inclusive [00:00:00, 23:59:59.999999] bounds of a calendar day."""
    start = datetime.combine(day, time.min)
    end = start + timedelta(days=1) - timedelta(microseconds=1)
    return start, end


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")
