"""
Centralized datetime utilities.

All timestamps are stored as naive UTC so PostgreSQL (TIMESTAMP WITHOUT
TIME ZONE) and SQLite compare them the same way. Every datetime coming in
from a request goes through to_naive_utc() before reaching a query.
"""

from datetime import datetime, timedelta
from typing import Optional

import pytz


def utc_now() -> datetime:
    """Current time as naive UTC."""
    return datetime.now(pytz.utc).replace(tzinfo=None)


def to_naive_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """
    Convert any datetime to naive UTC for database storage and filtering.

    Aware datetimes are converted to UTC first; naive datetimes are
    assumed to already be UTC.
    """
    if dt is None:
        return None

    if dt.tzinfo is not None:
        return dt.astimezone(pytz.utc).replace(tzinfo=None)

    return dt


def to_aware_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach the UTC zone to a naive UTC datetime (for API responses)."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        return pytz.utc.localize(dt)

    return dt.astimezone(pytz.utc)


def start_of_day(dt: datetime) -> datetime:
    """Midnight of the given (naive UTC) day."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_week(dt: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing dt."""
    return start_of_day(dt) - timedelta(days=dt.weekday())


def truncate_date(dt: datetime, granularity: str = "day") -> str:
    """
    Bucket key (YYYY-MM-DD) for a timestamp.

    Args:
        dt: Naive UTC timestamp
        granularity: "day" or "week" (weeks are keyed by their Monday)
    """
    if granularity == "week":
        return start_of_week(dt).date().isoformat()
    return dt.date().isoformat()
