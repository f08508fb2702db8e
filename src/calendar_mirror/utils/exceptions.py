"""Custom exceptions for Calendar Mirror."""


class CalendarSyncError(Exception):
    """Base exception for calendar mirror errors."""


class AuthenticationError(CalendarSyncError):
    """Raised when authentication fails."""


class TokenCacheError(CalendarSyncError):
    """Raised when token cache operations fail."""


class ConfigurationError(CalendarSyncError):
    """Raised when required configuration is missing or invalid."""


class CalendarAccessError(CalendarSyncError):
    """Raised when a configured calendar cannot be resolved or is not permitted."""

    def __init__(self, calendar_id: str, reason: str):
        super().__init__(f"Cannot access calendar '{calendar_id}': {reason}")
        self.calendar_id = calendar_id
        self.reason = reason


class CalendarReadError(CalendarSyncError):
    """Raised when reading calendar fails."""


class CalendarWriteError(CalendarSyncError):
    """Raised when a single create/update/delete against a calendar fails."""


class LeaseHeldError(CalendarSyncError):
    """Raised when another run currently holds the run lease."""
