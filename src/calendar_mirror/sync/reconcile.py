"""Compute the create/update/delete actions that mirror a source window."""

import logging
from dataclasses import dataclass, field

from ..config import SyncSettings
from ..models.event import CalendarEvent, Projection
from .codec import extract_instance_id
from .diff import needs_update
from .identity import derive_instance_id
from .projection import project

logger = logging.getLogger(__name__)


@dataclass
class CreateAction:
    """A source instance with no destination counterpart yet."""

    instance_id: str
    source_event: CalendarEvent
    projection: Projection


@dataclass
class UpdateAction:
    """A destination event whose content drifted from its source instance."""

    instance_id: str
    destination_event: CalendarEvent
    source_event: CalendarEvent
    projection: Projection


@dataclass
class DeleteAction:
    """A tagged destination event with no matching source instance."""

    instance_id: str
    destination_event: CalendarEvent


@dataclass
class ActionSet:
    """Result of reconciling one window."""

    to_create: list[CreateAction] = field(default_factory=list)
    to_update: list[UpdateAction] = field(default_factory=list)
    to_delete: list[DeleteAction] = field(default_factory=list)
    unchanged: int = 0

    @property
    def is_empty(self) -> bool:
        return not (self.to_create or self.to_update or self.to_delete)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "created": len(self.to_create),
            "updated": len(self.to_update),
            "unchanged": self.unchanged,
            "deleted": len(self.to_delete),
        }


@dataclass
class SyncedEventIndex:
    """Tagged destination events keyed by instance id, rebuilt every run."""

    events: dict[str, CalendarEvent] = field(default_factory=dict)
    duplicates: list[tuple[str, CalendarEvent]] = field(default_factory=list)


def build_index(destination_events: list[CalendarEvent]) -> SyncedEventIndex:
    """
    Index destination events by the instance id in their correlation tag.

    Events without a well-formed tag are skipped entirely. When several events
    carry the same instance id the first one listed is kept and the rest are
    reported as duplicates.
    """
    index = SyncedEventIndex()
    for event in destination_events:
        instance_id = extract_instance_id(event.description)
        if instance_id is None:
            continue
        if instance_id in index.events:
            logger.warning(
                f"Duplicate synced event for {instance_id}: '{event.title}' ({event.id})"
            )
            index.duplicates.append((instance_id, event))
            continue
        index.events[instance_id] = event
    return index


def reconcile(
    source_events: list[CalendarEvent],
    destination_events: list[CalendarEvent],
    settings: SyncSettings,
) -> ActionSet:
    """
    Reconcile the source window against previously synced destination events.

    Args:
        source_events: Source occurrences in the window, in store order
        destination_events: All destination events in the same window
        settings: Sync settings (detail copying, deletion)

    Returns:
        ActionSet that the caller must apply to the destination store
    """
    index = build_index(destination_events)
    actions = ActionSet()
    seen: set[str] = set()

    for source_event in source_events:
        instance_id = derive_instance_id(source_event)
        seen.add(instance_id)
        candidate = project(source_event, instance_id, settings)

        existing = index.events.get(instance_id)
        if existing is None:
            actions.to_create.append(CreateAction(instance_id, source_event, candidate))
        elif needs_update(existing, candidate):
            actions.to_update.append(
                UpdateAction(instance_id, existing, source_event, candidate)
            )
        else:
            actions.unchanged += 1

    if settings.delete_removed_events:
        for instance_id, event in index.events.items():
            if instance_id not in seen:
                actions.to_delete.append(DeleteAction(instance_id, event))
        for instance_id, event in index.duplicates:
            actions.to_delete.append(DeleteAction(instance_id, event))

    logger.debug(f"Reconciled {len(source_events)} source events: {actions.counts}")
    return actions
