"""
In-memory fake calendar store for testing.

Implements both CalendarReader and CalendarWriter over plain dicts, so the
engine runs end-to-end without Graph or network access. Calendars are keyed
by id; events keep insertion order, like a store's natural listing order.
"""

import itertools
from datetime import datetime
from typing import Optional

from calendar_mirror.config import PRIMARY_CALENDAR
from calendar_mirror.models.calendar import Calendar
from calendar_mirror.models.event import Attendee, CalendarEvent, Projection
from calendar_mirror.readers.base import CalendarReader
from calendar_mirror.utils.exceptions import CalendarAccessError, CalendarWriteError
from calendar_mirror.writers.base import CalendarWriter


class FakeCalendarStore(CalendarReader, CalendarWriter):
    """In-memory stand-in for a Graph-backed calendar store."""

    def __init__(self, calendars: dict[str, list[CalendarEvent]] | None = None):
        self._calendars: dict[str, dict[str, CalendarEvent]] = {}
        for calendar_id, events in (calendars or {}).items():
            self._calendars[calendar_id] = {e.id: e for e in events}
        self._ids = itertools.count(1)
        self.creates: list[Projection] = []
        self.updates: list[tuple[str, Projection]] = []
        self.deletes: list[str] = []
        self.attendees_written: list[Optional[list[Attendee]]] = []
        # Titles (create/update) and event ids (delete) whose writes fail
        self.fail_titles: set[str] = set()
        self.fail_deletes: set[str] = set()

    # ------------------------------------------------------------------ #
    # Helpers                                                              #
    # ------------------------------------------------------------------ #

    def _key(self, calendar_id: Optional[str]) -> str:
        return calendar_id or PRIMARY_CALENDAR

    def events(self, calendar_id: Optional[str] = None) -> list[CalendarEvent]:
        return list(self._calendars.get(self._key(calendar_id), {}).values())

    def add_event(self, calendar_id: str, event: CalendarEvent) -> None:
        self._calendars.setdefault(calendar_id, {})[event.id] = event

    # ------------------------------------------------------------------ #
    # CalendarReader                                                       #
    # ------------------------------------------------------------------ #

    def list_calendars(self) -> list[Calendar]:
        return [Calendar(id=cid, name=cid) for cid in self._calendars]

    def get_calendar(self, calendar_id: Optional[str] = None) -> Calendar:
        key = self._key(calendar_id)
        if key not in self._calendars:
            raise CalendarAccessError(key, "not found")
        return Calendar(id=key, name=key, can_edit=True)

    def read_events(
        self,
        calendar_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        return [
            e
            for e in self.events(calendar_id)
            if (end_date is None or e.start < end_date)
            and (start_date is None or e.end > start_date)
        ]

    # ------------------------------------------------------------------ #
    # CalendarWriter                                                       #
    # ------------------------------------------------------------------ #

    def create_event(
        self,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> CalendarEvent:
        if projection.title in self.fail_titles:
            raise CalendarWriteError(f"rate limited creating {projection.title}")
        event = CalendarEvent(
            id=f"dest-{next(self._ids)}",
            attendees=list(attendees or []),
            **projection.model_dump(),
        )
        self.add_event(self._key(calendar_id), event)
        self.creates.append(projection)
        self.attendees_written.append(attendees)
        return event

    def update_event(
        self,
        event: CalendarEvent,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> None:
        if projection.title in self.fail_titles:
            raise CalendarWriteError(f"rate limited updating {projection.title}")
        updated = CalendarEvent(
            id=event.id,
            attendees=list(attendees or event.attendees),
            **projection.model_dump(),
        )
        self.add_event(self._key(calendar_id), updated)
        self.updates.append((event.id, projection))
        self.attendees_written.append(attendees)

    def delete_event(self, event: CalendarEvent, calendar_id: Optional[str] = None) -> None:
        if event.id in self.fail_deletes:
            raise CalendarWriteError(f"rate limited deleting {event.id}")
        self._calendars.get(self._key(calendar_id), {}).pop(event.id, None)
        self.deletes.append(event.id)
