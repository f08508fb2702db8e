"""Main calendar reconciliation engine."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config import SyncSettings
from ..models.calendar import Calendar
from ..models.event import Attendee, CalendarEvent
from ..readers.base import CalendarReader
from ..utils.date_utils import get_sync_window
from ..utils.exceptions import CalendarSyncError, CalendarWriteError
from ..writers.base import CalendarWriter
from .codec import has_tag
from .identity import format_instant
from .reconcile import ActionSet, reconcile

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of a sync operation."""

    window_start: Optional[datetime] = None
    window_end: Optional[datetime] = None
    events_read: int = 0
    events_created: int = 0
    events_updated: int = 0
    events_unchanged: int = 0
    events_deleted: int = 0
    errors: list[str] = field(default_factory=list)
    actions: Optional[ActionSet] = None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class ConnectivityReport:
    """Outcome of the configuration self-test."""

    source: Optional[Calendar] = None
    destination: Optional[Calendar] = None
    sample_event_count: Optional[int] = None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class SyncEngine:
    """
    Mirror a time window of the source calendar into the destination calendar.

    The engine resolves both calendars, reads the window from each, hands the
    two event lists to ``reconcile`` and applies the resulting actions. Access
    and read failures propagate and abort the run before anything is written;
    a failed individual write is logged and the batch continues.
    """

    def __init__(
        self,
        source_reader: CalendarReader,
        target_reader: CalendarReader,
        target_writer: CalendarWriter,
        settings: SyncSettings,
    ):
        """
        Initialize sync engine.

        Args:
            source_reader: Calendar reader for the source calendar
            target_reader: Calendar reader for the destination calendar
            target_writer: Calendar writer for the destination calendar
            settings: Validated sync settings
        """
        self.source_reader = source_reader
        self.target_reader = target_reader
        self.target_writer = target_writer
        self.settings = settings

    @property
    def source_calendar_id(self) -> str:
        return self.settings.require_source()

    @property
    def target_calendar_id(self) -> str:
        return self.settings.destination_calendar_id

    def window(self, now: Optional[datetime] = None) -> tuple[datetime, datetime]:
        return get_sync_window(self.settings.days_past, self.settings.days_future, now)

    def _resolve_calendars(self) -> tuple[Calendar, Calendar]:
        source = self.source_reader.get_calendar(self.source_calendar_id)
        target = self.target_reader.get_calendar(self.target_calendar_id)
        return source, target

    def sync(self, dry_run: bool = False, now: Optional[datetime] = None) -> SyncResult:
        """
        Run one full reconcile-and-apply cycle.

        Args:
            dry_run: If True, compute the actions but do not write them
            now: Reference time for the window (defaults to wall-clock now)

        Returns:
            SyncResult with counts and per-item errors

        Raises:
            ConfigurationError: If SOURCE_CALENDAR_ID is missing
            CalendarAccessError: If either calendar cannot be resolved
            CalendarReadError: If either calendar cannot be listed
        """
        source_cal, target_cal = self._resolve_calendars()
        start, end = self.window(now)
        result = SyncResult(window_start=start, window_end=end)
        logger.info(
            f"Syncing '{source_cal.name}' -> '{target_cal.name}' "
            f"from {start.date()} to {end.date()}"
        )

        source_events = self.source_reader.read_events(
            calendar_id=self.source_calendar_id, start_date=start, end_date=end
        )
        target_events = self.target_reader.read_events(
            calendar_id=self.target_calendar_id, start_date=start, end_date=end
        )
        result.events_read = len(source_events)
        logger.info(
            f"Read {len(source_events)} source events, "
            f"{len(target_events)} destination events"
        )

        actions = reconcile(source_events, target_events, self.settings)
        result.actions = actions
        result.events_unchanged = actions.unchanged

        if dry_run:
            result.events_created = len(actions.to_create)
            result.events_updated = len(actions.to_update)
            result.events_deleted = len(actions.to_delete)
            logger.info(f"Dry run - no changes made: {actions.counts}")
            return result

        self._apply(actions, result)

        logger.info(
            f"Sync complete: {result.events_created} created, "
            f"{result.events_updated} updated, "
            f"{result.events_unchanged} unchanged, "
            f"{result.events_deleted} deleted, "
            f"{len(result.errors)} errors"
        )
        return result

    def _attendees(self, event: CalendarEvent) -> Optional[list[Attendee]]:
        return event.attendees if self.settings.copy_attendees else None

    def _record_failure(
        self, result: SyncResult, action: str, title: str, start: datetime, e: Exception
    ) -> None:
        error_msg = f"Failed to {action} '{title}' at {format_instant(start)}: {e}"
        logger.error(error_msg)
        result.errors.append(error_msg)

    def _apply(self, actions: ActionSet, result: SyncResult) -> None:
        for create in actions.to_create:
            try:
                self.target_writer.create_event(
                    create.projection,
                    calendar_id=self.target_calendar_id,
                    attendees=self._attendees(create.source_event),
                )
                result.events_created += 1
            except CalendarWriteError as e:
                self._record_failure(
                    result, "create", create.projection.title, create.projection.start, e
                )

        for update in actions.to_update:
            try:
                self.target_writer.update_event(
                    update.destination_event,
                    update.projection,
                    calendar_id=self.target_calendar_id,
                    attendees=self._attendees(update.source_event),
                )
                result.events_updated += 1
            except CalendarWriteError as e:
                self._record_failure(
                    result, "update", update.projection.title, update.projection.start, e
                )

        for delete in actions.to_delete:
            event = delete.destination_event
            try:
                self.target_writer.delete_event(event, calendar_id=self.target_calendar_id)
                result.events_deleted += 1
            except CalendarWriteError as e:
                self._record_failure(result, "delete", event.title, event.start, e)

    def clear_synced_events(
        self, dry_run: bool = False, now: Optional[datetime] = None
    ) -> SyncResult:
        """
        Delete every tagged destination event in the window.

        Untagged events are never touched.
        """
        target_cal = self.target_reader.get_calendar(self.target_calendar_id)
        start, end = self.window(now)
        result = SyncResult(window_start=start, window_end=end)

        events = self.target_reader.read_events(
            calendar_id=self.target_calendar_id, start_date=start, end_date=end
        )
        tagged = [event for event in events if has_tag(event.description)]
        result.events_read = len(events)
        logger.info(
            f"Found {len(tagged)} synced events of {len(events)} in '{target_cal.name}'"
        )

        if dry_run:
            result.events_deleted = len(tagged)
            return result

        for event in tagged:
            try:
                self.target_writer.delete_event(event, calendar_id=self.target_calendar_id)
                result.events_deleted += 1
            except CalendarWriteError as e:
                self._record_failure(result, "delete", event.title, event.start, e)

        logger.info(f"Cleared {result.events_deleted} synced events")
        return result

    def test_configuration(self, now: Optional[datetime] = None) -> ConnectivityReport:
        """
        Check configuration and reachability of both calendars.

        Never raises for calendar-level problems; they are collected in the report.
        """
        report = ConnectivityReport()

        try:
            source_id = self.source_calendar_id
        except CalendarSyncError as e:
            report.errors.append(str(e))
            source_id = None

        if source_id:
            try:
                report.source = self.source_reader.get_calendar(source_id)
                start, end = self.window(now)
                sample = self.source_reader.read_events(
                    calendar_id=source_id, start_date=start, end_date=end
                )
                report.sample_event_count = len(sample)
            except CalendarSyncError as e:
                report.errors.append(f"Source: {e}")

        try:
            report.destination = self.target_reader.get_calendar(self.target_calendar_id)
        except CalendarSyncError as e:
            report.errors.append(f"Destination: {e}")

        return report
