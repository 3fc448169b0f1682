"""
Time utilities for polyarb.

All internal timestamps use UTC, converted for display.
"""

from datetime import datetime, timezone
from typing import Optional

import pytz

from polyarb.core.config import get_settings

SECONDS_PER_DAY = 86400


def get_timezone() -> pytz.BaseTzInfo:
    """Get configured display timezone."""
    settings = get_settings()
    return pytz.timezone(settings.timezone)


def now_utc() -> datetime:
    """Get current UTC time."""
    return datetime.now(timezone.utc)


def to_local(dt: datetime, tz: Optional[pytz.BaseTzInfo] = None) -> datetime:
    """Convert datetime to the configured timezone."""
    tz = tz or get_timezone()
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(tz)


def format_timestamp(dt: Optional[datetime] = None, fmt: str = "iso") -> str:
    """
    Format datetime to string.

    Args:
        dt: Datetime to format. Uses current UTC time if not provided.
        fmt: Format type - 'iso', 'display', 'date', 'time'

    Returns:
        Formatted string
    """
    if dt is None:
        dt = now_utc()

    formats = {
        "iso": "%Y-%m-%dT%H:%M:%SZ",
        "display": "%Y-%m-%d %H:%M:%S",
        "date": "%Y-%m-%d",
        "time": "%H:%M:%S",
    }

    return dt.strftime(formats.get(fmt, fmt))


def parse_iso(s: Optional[str]) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp as sent by the CLOB API.

    Accepts a trailing 'Z' and date-only strings. Naive values are treated
    as UTC. Returns None for empty or malformed input.
    """
    if not s:
        return None
    try:
        dt = datetime.fromisoformat(str(s).strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def days_until(end: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """
    Fractional days from now until an ISO end timestamp.

    Negative once the end has passed, None when the end is unknown.
    """
    end_dt = parse_iso(end)
    if end_dt is None:
        return None
    now = now or now_utc()
    return (end_dt - now).total_seconds() / SECONDS_PER_DAY
