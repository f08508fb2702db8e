"""Abstract base class for calendar readers."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from ..models.calendar import Calendar
from ..models.event import CalendarEvent


class CalendarReader(ABC):
    """Abstract base class for calendar readers."""

    @abstractmethod
    def list_calendars(self) -> list[Calendar]:
        """
        List all available calendars.

        Returns:
            List of Calendar objects

        Raises:
            CalendarReadError: If listing calendars fails
        """

    @abstractmethod
    def get_calendar(self, calendar_id: Optional[str] = None) -> Calendar:
        """
        Resolve a calendar by ID.

        Args:
            calendar_id: Calendar ID (None or "primary" for default calendar)

        Returns:
            Calendar metadata

        Raises:
            CalendarAccessError: If the calendar does not exist or is not permitted
            CalendarReadError: If the lookup fails for another reason
        """

    @abstractmethod
    def read_events(
        self,
        calendar_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """
        Read events overlapping a window, with recurring series expanded.

        Args:
            calendar_id: Calendar ID (None or "primary" for default calendar)
            start_date: Start of the window
            end_date: End of the window

        Returns:
            List of normalized CalendarEvent objects, in store order

        Raises:
            CalendarReadError: If reading events fails
        """
