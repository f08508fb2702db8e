"""
Shared pytest fixtures and event helpers.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from calendar_mirror.config import SyncSettings
from calendar_mirror.models.event import CalendarEvent

SOURCE_CAL_ID = "source-calendar-test"
DEST_CAL_ID = "primary"

# Reference "now" for window computation; test events sit just after it
NOW = datetime(2024, 1, 1, 8, 0, tzinfo=pytz.utc)


def utc(year, month, day, hour=0, minute=0, second=0, microsecond=0) -> datetime:
    return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=pytz.utc)


def make_event(
    event_id: str,
    title: str = "Test Event",
    start: datetime | None = None,
    duration: timedelta = timedelta(minutes=30),
    **fields,
) -> CalendarEvent:
    """Return a source-style CalendarEvent starting at ``start`` (default 2024-01-01 09:00Z)."""
    start = start or utc(2024, 1, 1, 9)
    return CalendarEvent(id=event_id, title=title, start=start, end=start + duration, **fields)


def make_settings(**overrides) -> SyncSettings:
    """SyncSettings built without reading the environment or a .env file."""
    values = {"source_calendar_id": SOURCE_CAL_ID, "destination_calendar_id": DEST_CAL_ID}
    values.update(overrides)
    return SyncSettings(_env_file=None, **values)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in (
        "SOURCE_CALENDAR_ID",
        "DESTINATION_CALENDAR_ID",
        "SYNC_DAYS_PAST",
        "SYNC_DAYS_FUTURE",
        "SYNC_DETAILS",
        "COPY_ATTENDEES",
        "DELETE_REMOVED_EVENTS",
        "SYNC_INTERVAL_MINUTES",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def settings() -> SyncSettings:
    return make_settings()
