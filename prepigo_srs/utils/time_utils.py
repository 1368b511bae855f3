"""
Centralized Utilities for Time Handling in Prepigo.
Goal: every datetime inside the engine is timezone-aware UTC.
"""
from datetime import datetime, timezone, date
from typing import Optional, Union

import pytz

from prepigo_srs.core.config import Config


def utcnow() -> datetime:
    """
    Get the current timezone-aware UTC datetime.
    Always use this instead of datetime.utcnow() or datetime.now().
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO-8601 string (a trailing 'Z' is accepted) into an aware UTC datetime."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(str(value).replace('Z', '+00:00')))


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    if dt is None:
        return None
    return ensure_utc(dt).isoformat()


def local_day(dt: datetime, tz_name: Optional[str] = None) -> date:
    """
    Calendar day of a datetime in the configured study timezone.

    Args:
        dt: The datetime (naive values are treated as UTC).
        tz_name: Olson timezone name. Defaults to Config.TIMEZONE.
    """
    tz_name = tz_name or Config.TIMEZONE
    try:
        tz = pytz.timezone(tz_name)
    except pytz.UnknownTimeZoneError:
        tz = pytz.UTC
    return ensure_utc(dt).astimezone(tz).date()
