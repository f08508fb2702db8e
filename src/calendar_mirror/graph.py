"""Shared Microsoft Graph request plumbing for the M365 reader and writer."""

from typing import Optional

from .auth.msal_auth import M365AuthProvider
from .config import PRIMARY_CALENDAR

GRAPH_BASE = "https://graph.microsoft.com/v1.0"

# Return times in UTC and bodies as plain text so correlation tags survive verbatim
PREFER_HEADER = 'outlook.timezone="UTC", outlook.body-content-type="text"'

REQUEST_TIMEOUT = 30


class GraphClient:
    """Base for Graph-backed calendar stores."""

    def __init__(self, auth_provider: M365AuthProvider, primary_email: Optional[str] = None):
        self.auth_provider = auth_provider
        self.primary_email = primary_email
        self.use_client_credentials = auth_provider.use_client_credentials

    @property
    def _user_path(self) -> str:
        """Get the correct user path based on auth type."""
        if self.use_client_credentials:
            # App-only auth: use /users/{email}
            return f"users/{self.primary_email}"
        # Delegated auth: use /me
        return "me"

    def _headers(self) -> dict[str, str]:
        token = self.auth_provider.get_access_token()
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Prefer": PREFER_HEADER,
        }

    def _calendar_url(self, calendar_id: Optional[str]) -> str:
        """URL of a calendar; ``primary`` or None addresses the default calendar."""
        if not calendar_id or calendar_id == PRIMARY_CALENDAR:
            return f"{GRAPH_BASE}/{self._user_path}/calendar"
        return f"{GRAPH_BASE}/{self._user_path}/calendars/{calendar_id}"
