"""Microsoft 365 calendar reader using Graph API directly."""

import logging
from datetime import datetime
from typing import Any, Optional

import requests

from ..graph import GRAPH_BASE, REQUEST_TIMEOUT, GraphClient
from ..models.calendar import Calendar
from ..models.event import Attendee, CalendarEvent
from ..utils.date_utils import parse_graph_datetime, to_graph_datetime
from ..utils.exceptions import CalendarAccessError, CalendarReadError
from .base import CalendarReader

logger = logging.getLogger(__name__)

EVENT_FIELDS = (
    "id,subject,body,start,end,isAllDay,location,attendees,organizer,"
    "seriesMasterId,lastModifiedDateTime"
)
PAGE_SIZE = 250


class M365CalendarReader(GraphClient, CalendarReader):
    """Read calendars from Microsoft 365 using Graph API."""

    def list_calendars(self) -> list[Calendar]:
        """List all calendars for the authenticated user."""
        url = f"{GRAPH_BASE}/{self._user_path}/calendars"
        try:
            result = [self._to_calendar(item) for item in self._get_paged(url, None)]
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to list M365 calendars: {e}") from e

        logger.info(f"Found {len(result)} M365 calendars")
        return result

    def get_calendar(self, calendar_id: Optional[str] = None) -> Calendar:
        """Resolve a calendar, mapping 403/404 to an access error."""
        try:
            resp = requests.get(
                self._calendar_url(calendar_id),
                headers=self._headers(),
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise CalendarReadError(f"Failed to resolve calendar {calendar_id}: {e}") from e

        if resp.status_code in (401, 403, 404):
            raise CalendarAccessError(
                calendar_id or "primary", f"HTTP {resp.status_code} {resp.reason}"
            )
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            raise CalendarReadError(f"Failed to resolve calendar {calendar_id}: {e}") from e
        return self._to_calendar(resp.json())

    def read_events(
        self,
        calendar_id: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> list[CalendarEvent]:
        """Read events from M365 calendarView, which expands recurring series."""
        if not start_date or not end_date:
            raise CalendarReadError("calendarView requires both start_date and end_date")

        url = f"{self._calendar_url(calendar_id)}/calendarView"
        params = {
            "startDateTime": to_graph_datetime(start_date) + "Z",
            "endDateTime": to_graph_datetime(end_date) + "Z",
            "$select": EVENT_FIELDS,
            "$top": PAGE_SIZE,
        }
        try:
            result = [self._transform_event(item) for item in self._get_paged(url, params)]
        except requests.RequestException as e:
            raise CalendarReadError(
                f"Failed to read M365 events from {calendar_id or 'primary'}: {e}"
            ) from e

        logger.info(f"Read {len(result)} events from {calendar_id or 'primary'}")
        return result

    def _get_paged(self, url: str, params: Optional[dict[str, Any]]) -> list[dict]:
        items = []
        while url:
            resp = requests.get(
                url, headers=self._headers(), params=params, timeout=REQUEST_TIMEOUT
            )
            resp.raise_for_status()
            data = resp.json()
            items.extend(data.get("value", []))
            url = data.get("@odata.nextLink")
            params = None  # nextLink includes params
        return items

    @staticmethod
    def _to_calendar(data: dict[str, Any]) -> Calendar:
        owner = data.get("owner") or {}
        return Calendar(
            id=data["id"],
            name=data.get("name", ""),
            owner_email=owner.get("address"),
            is_default=data.get("isDefaultCalendar", False),
            can_edit=data.get("canEdit", False),
            color=data.get("color"),
        )

    @staticmethod
    def _transform_event(data: dict[str, Any]) -> CalendarEvent:
        """Transform a Graph API event to the normalized model."""
        attendees = []
        for attendee in data.get("attendees") or []:
            address = attendee.get("emailAddress") or {}
            if not address.get("address"):
                continue
            attendees.append(
                Attendee(
                    email=address["address"],
                    name=address.get("name"),
                    response_status=(attendee.get("status") or {}).get("response"),
                )
            )

        last_modified = data.get("lastModifiedDateTime")
        return CalendarEvent(
            id=data["id"],
            title=data.get("subject") or "",
            start=parse_graph_datetime(data["start"]["dateTime"]),
            end=parse_graph_datetime(data["end"]["dateTime"]),
            description=(data.get("body") or {}).get("content") or "",
            location=(data.get("location") or {}).get("displayName") or None,
            is_all_day=data.get("isAllDay", False),
            attendees=attendees,
            recurrence_master_id=data.get("seriesMasterId"),
            last_modified=parse_graph_datetime(last_modified) if last_modified else None,
        )
