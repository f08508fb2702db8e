"""Normalized calendar event data model."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class Attendee(BaseModel):
    """Event attendee."""

    email: str
    name: Optional[str] = None
    response_status: Optional[str] = None  # accepted, declined, tentative, none
    is_organizer: bool = False


class EventContent(BaseModel):
    """Observable fields shared by stored events and projections."""

    title: str
    start: datetime
    end: datetime
    description: str = ""
    location: Optional[str] = None
    is_all_day: bool = False


class Projection(EventContent):
    """Shape written to the destination calendar for one source instance."""

    model_config = {"frozen": True}


class CalendarEvent(EventContent):
    """
    Normalized calendar event.

    Used for both source events (read-only) and destination events. For an
    occurrence of a recurring series ``id`` is the store's own id for the
    occurrence and ``recurrence_master_id`` the id shared by the whole series.
    """

    id: str
    attendees: list[Attendee] = Field(default_factory=list)
    recurrence_master_id: Optional[str] = None
    last_modified: Optional[datetime] = None

    @property
    def series_id(self) -> str:
        """Identifier shared by every occurrence of this event's series."""
        return self.recurrence_master_id or self.id
