"""
UTC datetime utilities for consistent timezone handling.

All datetime values in the system should be timezone-aware UTC.
Use these helpers instead of datetime.now() or datetime.utcnow().
"""

from datetime import UTC, date, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Use this instead of:
        - datetime.now() - naive, uses local timezone
        - datetime.utcnow() - naive, deprecated in Python 3.12
        - datetime.now(UTC) - correct but verbose

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure a datetime is UTC-aware.

    - If None, returns None
    - If naive, assumes UTC and attaches timezone
    - If aware, converts to UTC

    Use at repository/persistence boundaries to normalize datetimes.

    Args:
        dt: A datetime that may be naive or aware

    Returns:
        UTC-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        # Naive datetime - assume it's UTC and attach timezone
        return dt.replace(tzinfo=UTC)

    # Aware datetime - convert to UTC
    return dt.astimezone(UTC)


def parse_datetime(value: str | date | datetime | None) -> datetime | None:
    """
    Parse an ISO-8601 value into a UTC-aware datetime.

    Accepts a trailing "Z". A bare date (YYYY-MM-DD) becomes midnight UTC.

    Args:
        value: ISO string, date, datetime, or None

    Returns:
        UTC-aware datetime or None

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=UTC)
    return ensure_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))


def parse_date(value: str | date | datetime | None) -> date | None:
    """
    Parse an ISO-8601 value into a calendar date.

    Datetimes keep their own calendar day (no timezone conversion).

    Args:
        value: ISO string, date, datetime, or None

    Returns:
        date or None

    Raises:
        ValueError: If the string is not ISO-8601
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
