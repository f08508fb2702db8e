"""Map a source event to the shape written to the destination calendar."""

from ..config import SyncSettings
from ..models.event import CalendarEvent, Projection
from .codec import encode, remove_tags


def project(
    source_event: CalendarEvent, instance_id: str, settings: SyncSettings
) -> Projection:
    """
    Build the destination projection for one source instance.

    Description and location are copied only when ``sync_details`` is on. The
    correlation tag is appended to the description either way, since it is
    how later runs recognise the event. A tag already present in the source
    description is dropped first. Attendees are not part of the
    projection; the caller adds them on write when ``copy_attendees`` is on.
    """
    details = settings.sync_details
    description = remove_tags(source_event.description) if details else ""
    return Projection(
        title=source_event.title,
        start=source_event.start,
        end=source_event.end,
        description=description + encode(instance_id),
        location=(source_event.location or "") if details else "",
        is_all_day=source_event.is_all_day,
    )
