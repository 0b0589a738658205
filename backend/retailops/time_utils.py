from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def today_ymd(now: Optional[datetime] = None) -> str:
    """Calendar date of `now` as YYYY-MM-DD (attendance and ledger day key)."""
    return (now or utcnow()).date().isoformat()


def clock_hhmm(now: Optional[datetime] = None) -> str:
    """Wall-clock time as HH:MM, the format stored for check-in/check-out."""
    return (now or utcnow()).strftime("%H:%M")


def parse_ymd(value: Optional[str]) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD string.

    - None / "" -> None
    - anything else that is not an ISO calendar date raises ValueError
    """
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    return date.fromisoformat(s)


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
