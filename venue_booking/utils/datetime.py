"""UTC datetime and calendar-day utilities."""

from datetime import date, datetime, timedelta, timezone
from typing import Iterator


def utc_now() -> datetime:
    """
    Return current UTC time as timezone-aware datetime.

    This function should be used instead of datetime.now() or datetime.utcnow()
    to ensure all timestamps are timezone-aware and stored in UTC.

    Returns:
        Timezone-aware datetime in UTC

    Example:
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def as_date(value: date | datetime) -> date:
    """Calendar day of a date or datetime (datetimes are truncated, not converted)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def iter_days(start: date, end: date) -> Iterator[date]:
    """
    Yield every calendar day from start to end, both inclusive.

    A range whose end precedes its start yields only the start day.

    Example:
        >>> [d.day for d in iter_days(date(2025, 7, 1), date(2025, 7, 3))]
        [1, 2, 3]
    """
    yield start
    current = start + timedelta(days=1)
    while current <= end:
        yield current
        current += timedelta(days=1)
