from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.utcnow()


def _zone(tz_name: str):
    if not tz_name or tz_name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(tz_name)


def business_today(tz_name: str = "UTC") -> date:
    """Calendar date of 'now' in the business timezone."""
    return datetime.now(_zone(tz_name)).date()


def day_bounds_utc(day: date, tz_name: str = "UTC") -> tuple[datetime, datetime]:
    """
    UTC-naive [start, end) bounds of a business calendar day.

    Stored timestamps are UTC-naive, so a local day has to be converted
    before it can be used in a created_at range filter.
    """
    tz = _zone(tz_name)
    start_local = datetime.combine(day, time.min, tzinfo=tz)
    end_local = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return (
        start_local.astimezone(timezone.utc).replace(tzinfo=None),
        end_local.astimezone(timezone.utc).replace(tzinfo=None),
    )


def month_bounds(year_month: str) -> tuple[date, date]:
    """
    First day of the month and first day of the following month.

    Raises ValueError unless year_month is "YYYY-MM".
    """
    parts = year_month.split("-")
    if len(parts) != 2 or len(parts[0]) != 4 or len(parts[1]) != 2:
        raise ValueError("month must be in format YYYY-MM")
    first = date(int(parts[0]), int(parts[1]), 1)
    if first.month == 12:
        following = date(first.year + 1, 1, 1)
    else:
        following = date(first.year, first.month + 1, 1)
    return first, following


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
