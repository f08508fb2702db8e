"""
Unit tests for project().
"""

from datetime import timedelta

from calendar_mirror.models.event import Attendee
from calendar_mirror.sync.codec import extract_instance_id
from calendar_mirror.sync.projection import project
from tests.conftest import make_event, make_settings, utc

INSTANCE = "abc_2024-01-01T09:00:00.000Z"


def _source(**fields):
    return make_event(
        "abc",
        title="Standup",
        start=utc(2024, 1, 1, 9),
        duration=timedelta(minutes=15),
        **fields,
    )


def test_end_to_end_projection_with_defaults(settings):
    projection = project(_source(), INSTANCE, settings)

    assert projection.title == "Standup"
    assert projection.start == utc(2024, 1, 1, 9)
    assert projection.end == utc(2024, 1, 1, 9, 15)
    assert projection.description == (
        "\n\n<!-- [SYNCED_FROM_SOURCE] SOURCE_ID:abc_2024-01-01T09:00:00.000Z -->"
    )
    assert projection.location == ""
    assert projection.is_all_day is False


def test_details_are_copied_when_enabled(settings):
    source = _source(description="Daily sync", location="Room 1")
    projection = project(source, INSTANCE, settings)

    assert projection.description.startswith("Daily sync\n\n<!-- ")
    assert projection.location == "Room 1"


def test_detail_suppression_keeps_only_the_tag():
    settings = make_settings(sync_details=False)
    source = _source(description="Secret agenda", location="Board room")
    projection = project(source, INSTANCE, settings)

    assert "Secret agenda" not in projection.description
    assert projection.description.strip().startswith("<!-- [SYNCED_FROM_SOURCE]")
    assert projection.location == ""
    assert extract_instance_id(projection.description) == INSTANCE


def test_all_day_flag_is_copied(settings):
    source = make_event("h", title="Holiday", start=utc(2024, 1, 1), duration=timedelta(days=1), is_all_day=True)
    assert project(source, "h_x", settings).is_all_day is True


def test_attendees_are_not_part_of_the_projection():
    settings = make_settings(copy_attendees=True)
    source = _source(attendees=[Attendee(email="a@example.com")])
    assert "attendees" not in project(source, INSTANCE, settings).model_dump()
