from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


# Accepted calendar date layouts for expiry dates
DATE_FORMATS = ("%Y-%m-%d", "%Y/%m/%d")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utctoday() -> date:
    """Server-side calendar day in UTC, used for expiry comparisons."""
    return utcnow().date()


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """
    Parse a calendar date string.

    - None / "" -> None
    - "YYYY-MM-DD" or "YYYY/MM/DD" -> date
    - anything else (including impossible days like 2024-02-30) -> ValueError
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"invalid date: {value!r}")


def to_iso_date(d: Optional[date]) -> Optional[str]:
    if d is None:
        return None
    return d.isoformat()


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
