"""Configuration management for Calendar Mirror."""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .utils.exceptions import ConfigurationError

load_dotenv()

# Marker label embedded in every correlation tag written to the destination
SYNC_MARKER = "[SYNCED_FROM_SOURCE]"

PRIMARY_CALENDAR = "primary"
ALLOWED_INTERVALS = (15, 60)


class M365Config(BaseSettings):
    """Microsoft 365 configuration."""

    tenant_id: Optional[str] = Field(None, validation_alias="M365_TENANT_ID")
    client_id: Optional[str] = Field(None, validation_alias="M365_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="M365_CLIENT_SECRET")
    authority: Optional[str] = Field(None, validation_alias="M365_AUTHORITY")
    # Required for app-only (client credentials) auth
    primary_email: Optional[str] = Field(None, validation_alias="M365_PRIMARY_EMAIL")
    # Scopes are hardcoded - no need to configure
    scopes: list[str] = Field(default=["Calendars.ReadWrite"])

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",  # Treat empty string as None
    )


class SyncSettings(BaseSettings):
    """Reconciliation settings read from the flat key-value configuration."""

    source_calendar_id: Optional[str] = Field(
        None, validation_alias="SOURCE_CALENDAR_ID"
    )
    destination_calendar_id: str = Field(
        default=PRIMARY_CALENDAR, validation_alias="DESTINATION_CALENDAR_ID"
    )
    days_past: int = Field(default=7, ge=0, validation_alias="SYNC_DAYS_PAST")
    days_future: int = Field(default=60, ge=0, validation_alias="SYNC_DAYS_FUTURE")
    sync_details: bool = Field(default=True, validation_alias="SYNC_DETAILS")
    copy_attendees: bool = Field(default=False, validation_alias="COPY_ATTENDEES")
    delete_removed_events: bool = Field(
        default=True, validation_alias="DELETE_REMOVED_EVENTS"
    )
    interval_minutes: int = Field(default=15, validation_alias="SYNC_INTERVAL_MINUTES")

    # Run lease
    lease_path: Path = Field(
        default=Path(".calendar_mirror.lease"), validation_alias="SYNC_LEASE_PATH"
    )
    lease_ttl_minutes: int = Field(
        default=30, gt=0, validation_alias="SYNC_LEASE_TTL_MINUTES"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        env_parse_none_str="",
        populate_by_name=True,
    )

    @field_validator("source_calendar_id")
    @classmethod
    def _blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value

    @field_validator("destination_calendar_id", mode="before")
    @classmethod
    def _blank_to_primary(cls, value: Optional[str]) -> str:
        return (value or "").strip() or PRIMARY_CALENDAR

    @field_validator("interval_minutes")
    @classmethod
    def _check_interval(cls, value: int) -> int:
        if value not in ALLOWED_INTERVALS:
            raise ValueError(f"interval must be one of {ALLOWED_INTERVALS}, got {value}")
        return value

    def require_source(self) -> str:
        """
        Return the configured source calendar id.

        Raises:
            ConfigurationError: If SOURCE_CALENDAR_ID is not set
        """
        if not self.source_calendar_id:
            raise ConfigurationError("SOURCE_CALENDAR_ID is required but not set")
        return self.source_calendar_id


class AppConfig(BaseSettings):
    """Application configuration."""

    m365: M365Config = Field(default_factory=M365Config)

    # Token cache
    token_cache_path: Path = Field(
        default=Path(".token_cache"), validation_alias="TOKEN_CACHE_PATH"
    )
    token_cache_encrypted: bool = Field(
        default=True, validation_alias="TOKEN_CACHE_ENCRYPTED"
    )

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[Path] = Field(default=None, validation_alias="LOG_FILE")

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def load_sync_settings(**overrides) -> SyncSettings:
    """
    Load and validate sync settings.

    Args:
        **overrides: Field values that take precedence over the environment

    Raises:
        ConfigurationError: If any value fails validation
    """
    try:
        return SyncSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid sync configuration: {e}") from e


# Global config instance
config = AppConfig()
