"""Abstract base class for calendar writers."""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.event import Attendee, CalendarEvent, Projection


class CalendarWriter(ABC):
    """Abstract base class for calendar writers."""

    @abstractmethod
    def create_event(
        self,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> CalendarEvent:
        """
        Create a new event.

        Args:
            projection: Content of the event to create
            calendar_id: Calendar ID (None or "primary" for default calendar)
            attendees: Attendees to invite, if attendee copying is enabled

        Returns:
            The created event

        Raises:
            CalendarWriteError: If event creation fails
        """

    @abstractmethod
    def update_event(
        self,
        event: CalendarEvent,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> None:
        """
        Overwrite an existing event with a projection.

        Args:
            event: Event to update
            projection: New content
            calendar_id: Calendar ID (None or "primary" for default calendar)
            attendees: Attendees to set, if attendee copying is enabled

        Raises:
            CalendarWriteError: If event update fails
        """

    @abstractmethod
    def delete_event(
        self,
        event: CalendarEvent,
        calendar_id: Optional[str] = None,
    ) -> None:
        """
        Delete an event.

        Args:
            event: Event to delete
            calendar_id: Calendar ID (None or "primary" for default calendar)

        Raises:
            CalendarWriteError: If event deletion fails
        """
