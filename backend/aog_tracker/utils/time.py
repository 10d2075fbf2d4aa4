"""Time Utilities - UTC timestamps, storage conversion and month keys"""
from datetime import datetime, timezone, timedelta
from typing import List, Optional
from dateutil import parser as date_parser


def utc_now() -> datetime:
    """Get current UTC datetime"""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a datetime to timezone-aware UTC

    MongoDB hands datetimes back naive (implicitly UTC), request payloads
    may carry any offset.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Convert a datetime to naive UTC, the form BSON stores and compares"""
    if dt is None:
        return None
    return ensure_utc(dt).replace(tzinfo=None)


def format_iso(dt: datetime) -> str:
    """
    Format datetime to ISO 8601 string

    Args:
        dt: Datetime object

    Returns:
        ISO formatted string with Z suffix for UTC
    """
    return ensure_utc(dt).isoformat().replace("+00:00", "Z")


def parse_iso(iso_string: str) -> datetime:
    """
    Parse ISO 8601 string to datetime

    Args:
        iso_string: ISO formatted datetime string

    Returns:
        Datetime object in UTC
    """
    return ensure_utc(date_parser.isoparse(iso_string))


def end_of_day(dt: datetime) -> datetime:
    """Last representable instant of the UTC day containing dt"""
    dt = ensure_utc(dt)
    return dt.replace(hour=23, minute=59, second=59, microsecond=999000)


def month_key(dt: datetime) -> str:
    """Calendar month bucket key, e.g. 2024-01"""
    return ensure_utc(dt).strftime("%Y-%m")


def shift_month(key: str, months: int) -> str:
    """Move a YYYY-MM key forward (or backward) by whole months"""
    year, month = (int(part) for part in key.split("-"))
    index = year * 12 + (month - 1) + months
    return f"{index // 12:04d}-{index % 12 + 1:02d}"


def month_start(key: str) -> datetime:
    """First instant (UTC) of a YYYY-MM month"""
    year, month = (int(part) for part in key.split("-"))
    return datetime(year, month, 1, tzinfo=timezone.utc)


def month_span(first: str, last: str) -> List[str]:
    """All YYYY-MM keys from first to last inclusive"""
    keys = []
    current = first
    while current <= last:
        keys.append(current)
        current = shift_month(current, 1)
    return keys


def days_ago(days: int, reference: Optional[datetime] = None) -> datetime:
    """Datetime a number of days before the reference (default now)"""
    return (reference or utc_now()) - timedelta(days=days)
