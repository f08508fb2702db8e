"""
Property tests for reconcile(): create-on-absence, update-on-drift, delete-on-
removal, idempotence, recurring disambiguation and invisibility of untagged
destination events.
"""

from datetime import timedelta

from calendar_mirror.models.event import CalendarEvent
from calendar_mirror.sync.codec import encode
from calendar_mirror.sync.identity import derive_instance_id
from calendar_mirror.sync.projection import project
from calendar_mirror.sync.reconcile import build_index, reconcile
from tests.conftest import make_event, make_settings, utc

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _mirror(source: CalendarEvent, settings, dest_id: str | None = None) -> CalendarEvent:
    """Destination event exactly as a previous successful run would have left it."""
    projection = project(source, derive_instance_id(source), settings)
    return CalendarEvent(id=dest_id or f"dest-{source.id}-{source.start:%d}", **projection.model_dump())


def _tagged(instance_id: str, title: str = "Old", start=None) -> CalendarEvent:
    return make_event(f"dest-{instance_id}", title=title, start=start, description=encode(instance_id))


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_create_on_absence(settings):
    source = make_event("abc", title="Standup", start=utc(2024, 1, 1, 9), duration=timedelta(minutes=15))

    actions = reconcile([source], [], settings)

    assert len(actions.to_create) == 1
    create = actions.to_create[0]
    assert create.instance_id == "abc_2024-01-01T09:00:00.000Z"
    assert create.projection.description == (
        "\n\n<!-- [SYNCED_FROM_SOURCE] SOURCE_ID:abc_2024-01-01T09:00:00.000Z -->"
    )
    assert actions.to_update == [] and actions.to_delete == []


def test_idempotent_second_run(settings):
    sources = [
        make_event("a", title="A", start=utc(2024, 1, 1, 9), description="x", location="L"),
        make_event("b", title="B", start=utc(2024, 1, 2, 9)),
    ]
    destination = [_mirror(s, settings) for s in sources]

    actions = reconcile(sources, destination, settings)

    assert actions.is_empty
    assert actions.counts == {"created": 0, "updated": 0, "unchanged": 2, "deleted": 0}


def test_update_on_title_drift(settings):
    source = make_event("abc", title="Standup v2")
    stale = _mirror(make_event("abc", title="Standup"), settings)

    actions = reconcile([source], [stale], settings)

    assert len(actions.to_update) == 1
    update = actions.to_update[0]
    assert update.destination_event.id == stale.id
    assert update.projection.title == "Standup v2"
    assert actions.to_create == [] and actions.to_delete == []


def test_tag_only_difference_is_unchanged(settings):
    source = make_event("abc", description="Notes")
    mirrored = _mirror(source, settings)
    instance_id = derive_instance_id(source)
    reformatted = mirrored.model_copy(
        update={"description": f"Notes\n<!--[SYNCED_FROM_SOURCE]   SOURCE_ID:{instance_id}-->"}
    )

    actions = reconcile([source], [reformatted], settings)

    assert actions.is_empty
    assert actions.unchanged == 1


def test_delete_on_removal(settings):
    orphan = _tagged("gone_2024-01-01T09:00:00.000Z")

    actions = reconcile([], [orphan], settings)

    assert [d.destination_event.id for d in actions.to_delete] == [orphan.id]


def test_no_delete_when_deletion_disabled():
    settings = make_settings(delete_removed_events=False)
    orphan = _tagged("gone_2024-01-01T09:00:00.000Z")

    actions = reconcile([], [orphan], settings)

    assert actions.to_delete == []
    assert actions.is_empty


def test_recurring_instances_reconcile_independently(settings):
    first = make_event("E", title="Weekly", start=utc(2024, 1, 1, 9))
    second = make_event("E", title="Weekly", start=utc(2024, 1, 8, 9))
    third = make_event("E", title="Weekly (edited)", start=utc(2024, 1, 15, 9))
    destination = [
        _mirror(first, settings),
        _mirror(make_event("E", title="Weekly", start=utc(2024, 1, 15, 9)), settings),
    ]

    actions = reconcile([first, second, third], destination, settings)

    assert [c.instance_id for c in actions.to_create] == ["E_2024-01-08T09:00:00.000Z"]
    assert [u.instance_id for u in actions.to_update] == ["E_2024-01-15T09:00:00.000Z"]
    assert actions.unchanged == 1
    assert actions.to_delete == []


def test_moved_occurrence_is_created_and_old_copy_deleted(settings):
    old = make_event("E", title="Review", start=utc(2024, 1, 3, 14))
    moved = make_event("E", title="Review", start=utc(2024, 1, 3, 16))
    destination = [_mirror(old, settings)]

    actions = reconcile([moved], destination, settings)

    assert [c.instance_id for c in actions.to_create] == ["E_2024-01-03T16:00:00.000Z"]
    assert [d.instance_id for d in actions.to_delete] == ["E_2024-01-03T14:00:00.000Z"]


def test_untagged_destination_events_are_invisible(settings):
    source = make_event("abc", title="Standup")
    lookalike = make_event("manual-1", title="Standup", description="added by hand")

    actions = reconcile([source], [lookalike], settings)

    assert len(actions.to_create) == 1
    assert actions.to_update == []
    assert actions.to_delete == []
    assert build_index([lookalike]).events == {}


def test_malformed_tag_is_invisible_too(settings):
    broken = make_event("dest-x", description="<!-- [SYNCED_FROM_SOURCE] SOURCE_ID: -->")
    actions = reconcile([], [broken], settings)
    assert actions.is_empty


def test_source_order_is_preserved(settings):
    sources = [
        make_event("z", start=utc(2024, 1, 3, 9)),
        make_event("a", start=utc(2024, 1, 1, 9)),
        make_event("m", start=utc(2024, 1, 2, 9)),
    ]
    actions = reconcile(sources, [], settings)
    assert [c.source_event.id for c in actions.to_create] == ["z", "a", "m"]


def test_duplicate_tagged_copies_are_deleted(settings):
    source = make_event("abc")
    first = _mirror(source, settings, dest_id="dest-1")
    second = _mirror(source, settings, dest_id="dest-2")

    actions = reconcile([source], [first, second], settings)

    assert actions.unchanged == 1
    assert [d.destination_event.id for d in actions.to_delete] == ["dest-2"]


def test_duplicate_tagged_copies_are_kept_when_deletion_disabled():
    settings = make_settings(delete_removed_events=False)
    source = make_event("abc")
    copies = [_mirror(source, settings, dest_id=f"dest-{i}") for i in (1, 2)]

    actions = reconcile([source], copies, settings)

    assert actions.to_delete == []


def test_reconcile_is_deterministic(settings):
    sources = [make_event("a"), make_event("b", title="B", start=utc(2024, 1, 2, 9))]
    destination = [_tagged("c_2024-01-05T09:00:00.000Z")]

    first = reconcile(sources, destination, settings)
    second = reconcile(sources, destination, settings)

    assert first == second


def test_source_description_carrying_a_tag_is_mirrored_with_one_tag(settings):
    source = make_event("abc", description="Notes" + encode("upstream_2023-12-01T09:00:00.000Z"))

    (create,) = reconcile([source], [], settings).to_create
    mirrored = CalendarEvent(id="dest-1", **create.projection.model_dump())

    assert create.projection.description.count("SOURCE_ID:") == 1
    assert build_index([mirrored]).events.keys() == {create.instance_id}
    assert reconcile([source], [mirrored], settings).is_empty
