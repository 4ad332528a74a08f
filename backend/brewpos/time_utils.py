from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional


DATE_RANGES = ("today", "week", "month")


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 datetime string and normalize to UTC-naive datetime.

    - None / "" -> None
    - "YYYY-MM-DDTHH:MM" (naive) is interpreted as UTC
    - "...Z" or "...+/-HH:MM" is converted to UTC and tzinfo is stripped
    """
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None

    # Accept trailing Z
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)

    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


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


def start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def _one_month_back(dt: datetime) -> datetime:
    year, month = (dt.year, dt.month - 1) if dt.month > 1 else (dt.year - 1, 12)
    # Clamp the day for short months (e.g. Mar 31 -> Feb 28)
    for day in (dt.day, 30, 29, 28):
        try:
            return dt.replace(year=year, month=month, day=day)
        except ValueError:
            continue
    raise ValueError("cannot compute month offset")


def range_start(date_range: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Start of a named reporting window, inclusive.

    - "today" -> midnight today
    - "week"  -> midnight seven days ago
    - "month" -> midnight on the same day last month
    - anything else -> None (no lower bound)
    """
    now = now or utcnow()
    today = start_of_day(now)
    if date_range == "today":
        return today
    if date_range == "week":
        return today - timedelta(days=7)
    if date_range == "month":
        return _one_month_back(today)
    return None
