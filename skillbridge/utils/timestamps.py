"""Timestamp utilities for UTC handling, date math and parsing.

All timestamps stored or compared by the service are timezone-aware UTC.
Daily submission counters are keyed by the UTC calendar date.
"""

import calendar
from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """Current calendar date in UTC."""
    return utc_now().date()


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC (SQLite drops tzinfo on read);
    aware datetimes are converted.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length.

    Example:
        >>> add_months(datetime(2026, 1, 31, tzinfo=timezone.utc), 1).day
        28
    """
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def parse_iso_datetime(iso_string: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Accepts a trailing 'Z', explicit offsets, naive timestamps and bare
    dates (``2026-10-18``, midnight UTC).

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    try:
        return ensure_utc(datetime.strptime(cleaned, "%Y-%m-%d"))
    except ValueError:
        return None


def format_timestamp(dt: Optional[datetime], include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 string in UTC with 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc))
        '2026-10-18T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def format_date_for_display(dt: Optional[datetime]) -> str:
    """Human-friendly date used in emails, e.g. ``Oct 18, 2026``."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""
    return f"{dt_utc.strftime('%b')} {dt_utc.day}, {dt_utc.year}"


def timestamp_to_millis(dt: datetime) -> int:
    """Milliseconds since the epoch, used in payment reference ids."""
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return 0
    return int(dt_utc.timestamp() * 1000)
