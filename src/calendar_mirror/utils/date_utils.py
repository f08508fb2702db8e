"""Date and time utilities for Calendar Mirror."""

import re
from datetime import datetime, timedelta
from typing import Optional

import pytz

_GRAPH_FRACTION = re.compile(r"\.(\d{6})\d+")


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure datetime is in UTC.

    Naive datetimes are assumed to already be UTC.

    Args:
        dt: Datetime to convert

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        return pytz.utc.localize(dt)
    return dt.astimezone(pytz.utc)


def get_sync_window(
    days_past: int = 7,
    days_future: int = 60,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime]:
    """
    Get the sync window ``[now - days_past, now + days_future]`` in UTC.

    Args:
        days_past: Days to look back from now
        days_future: Days to look ahead from now
        now: Reference instant (defaults to the current wall-clock time)

    Returns:
        Tuple of (start, end) in UTC
    """
    now = ensure_utc(now) if now else datetime.now(pytz.utc)
    return now - timedelta(days=days_past), now + timedelta(days=days_future)


def parse_graph_datetime(value: str) -> datetime:
    """
    Parse a Graph API dateTime string as a UTC datetime.

    Graph returns seven fractional digits (``2024-01-01T09:00:00.0000000``),
    trimmed here to microseconds before parsing.
    """
    value = _GRAPH_FRACTION.sub(r".\1", value.replace("Z", "+00:00"))
    return ensure_utc(datetime.fromisoformat(value))


def to_graph_datetime(dt: datetime) -> str:
    """Format a datetime for a Graph API dateTimeTimeZone body (UTC)."""
    return ensure_utc(dt).strftime("%Y-%m-%dT%H:%M:%S")
