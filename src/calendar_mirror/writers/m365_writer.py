"""Microsoft 365 calendar writer using Graph API directly."""

import logging
from typing import Any, Optional

import requests

from ..graph import REQUEST_TIMEOUT, GraphClient
from ..models.event import Attendee, CalendarEvent, Projection
from ..readers.m365_reader import M365CalendarReader
from ..utils.date_utils import to_graph_datetime
from ..utils.exceptions import CalendarWriteError
from .base import CalendarWriter

logger = logging.getLogger(__name__)


class M365CalendarWriter(GraphClient, CalendarWriter):
    """Write events to Microsoft 365 using Graph API."""

    def __init__(self, auth_provider, primary_email: Optional[str] = None):
        super().__init__(auth_provider, primary_email)

        if self.use_client_credentials and not primary_email:
            raise CalendarWriteError(
                "primary_email is required when using client credentials flow (client_secret configured)"
            )

    def _to_graph_format(
        self, projection: Projection, attendees: Optional[list[Attendee]] = None
    ) -> dict[str, Any]:
        data: dict[str, Any] = {
            "subject": projection.title,
            "start": {
                "dateTime": to_graph_datetime(projection.start),
                "timeZone": "UTC",
            },
            "end": {
                "dateTime": to_graph_datetime(projection.end),
                "timeZone": "UTC",
            },
            "isAllDay": projection.is_all_day,
            "body": {"contentType": "text", "content": projection.description},
            "location": {"displayName": projection.location or ""},
        }

        # Graph sends invitations for every attendee, so only set them when asked
        if attendees is not None:
            data["attendees"] = [
                {
                    "emailAddress": {"address": a.email, "name": a.name or a.email},
                    "type": "required",
                }
                for a in attendees
                if not a.is_organizer
            ]

        return data

    def create_event(
        self,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> CalendarEvent:
        try:
            url = f"{self._calendar_url(calendar_id)}/events"
            resp = requests.post(
                url,
                headers=self._headers(),
                json=self._to_graph_format(projection, attendees),
                timeout=REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            created = M365CalendarReader._transform_event(resp.json())
            logger.info(f"Created event: {projection.title} ({created.id})")
            return created

        except (requests.RequestException, KeyError, ValueError) as e:
            raise CalendarWriteError(
                f"Failed to create M365 event '{projection.title}': {e}"
            ) from e

    def update_event(
        self,
        event: CalendarEvent,
        projection: Projection,
        calendar_id: Optional[str] = None,
        attendees: Optional[list[Attendee]] = None,
    ) -> None:
        try:
            url = f"{self._calendar_url(calendar_id)}/events/{event.id}"
            resp = requests.patch(
                url,
                headers=self._headers(),
                json=self._to_graph_format(projection, attendees),
                timeout=REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            logger.info(f"Updated event: {projection.title} ({event.id})")

        except requests.RequestException as e:
            raise CalendarWriteError(f"Failed to update M365 event {event.id}: {e}") from e

    def delete_event(
        self,
        event: CalendarEvent,
        calendar_id: Optional[str] = None,
    ) -> None:
        try:
            url = f"{self._calendar_url(calendar_id)}/events/{event.id}"
            resp = requests.delete(url, headers=self._headers(), timeout=REQUEST_TIMEOUT)
            resp.raise_for_status()
            logger.info(f"Deleted event: {event.title} ({event.id})")

        except requests.RequestException as e:
            raise CalendarWriteError(f"Failed to delete M365 event {event.id}: {e}") from e
