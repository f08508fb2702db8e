"""Per-occurrence identity for (possibly recurring) source events."""

from datetime import datetime

from ..models.event import CalendarEvent
from ..utils.date_utils import ensure_utc

INSTANCE_SEPARATOR = "_"


def format_instant(dt: datetime) -> str:
    """Render ``dt`` as ISO-8601 UTC with millisecond precision, e.g. ``2024-01-01T09:00:00.000Z``."""
    dt = ensure_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def derive_instance_id(event: CalendarEvent) -> str:
    """
    Derive the instance id ``{series id}_{start}`` for a source event.

    Occurrences of one series share a series id, so the start time keeps them
    apart while staying stable across runs until the occurrence is moved.
    """
    return f"{event.series_id}{INSTANCE_SEPARATOR}{format_instant(event.start)}"
