from smartqueue import crud
from smartqueue.models.queue_entry import QueueEntry
from tests.utils.event import create_event_with_slot


def _add_entry(db, event, slot, user_id, number, status="waiting", queue_number=None):
    entry = QueueEntry(
        event_id=event.id,
        time_slot_id=slot.id,
        user_id=user_id,
        queue_number=queue_number or number,
        original_queue_number=number,
        status=status,
    )
    db.add(entry)
    db.commit()
    return entry


def test_next_queue_number_starts_at_one(db_session):
    _, slot = create_event_with_slot(db_session)
    assert crud.queue_entry.next_queue_number(db_session, time_slot_id=slot.id) == 1


def test_next_queue_number_counts_cancelled_entries(db_session):
    event, slot = create_event_with_slot(db_session)
    _add_entry(db_session, event, slot, "user_a", 1)
    _add_entry(db_session, event, slot, "user_b", 2, status="cancelled")

    assert crud.queue_entry.next_queue_number(db_session, time_slot_id=slot.id) == 3


def test_get_active_for_user_ignores_cancelled(db_session):
    event, slot = create_event_with_slot(db_session)
    _add_entry(db_session, event, slot, "user_a", 1, status="cancelled")

    assert (
        crud.queue_entry.get_active_for_user(
            db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_a"
        )
        is None
    )

    live = _add_entry(db_session, event, slot, "user_a", 2)
    found = crud.queue_entry.get_active_for_user(
        db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_a"
    )
    assert found.id == live.id


def test_first_waiting_breaks_linked_ties_by_original_number(db_session):
    event, slot = create_event_with_slot(db_session)
    _add_entry(db_session, event, slot, "user_a", 1, status="called")
    # Linked pair sharing number 5; the requester joined as 2.
    _add_entry(db_session, event, slot, "user_b", 5)
    _add_entry(db_session, event, slot, "user_c", 2, queue_number=5)
    _add_entry(db_session, event, slot, "user_d", 7)

    first = crud.queue_entry.get_first_waiting(db_session, time_slot_id=slot.id)

    assert first.user_id == "user_c"


def test_count_by_status_includes_zero_buckets(db_session):
    event, slot = create_event_with_slot(db_session)
    _add_entry(db_session, event, slot, "user_a", 1)
    _add_entry(db_session, event, slot, "user_b", 2, status="cancelled")

    counts = crud.queue_entry.count_by_status(db_session, time_slot_id=slot.id)

    assert counts == {"waiting": 1, "called": 0, "entered": 0, "cancelled": 1}


def test_unlink_restores_original_number(db_session):
    event, slot = create_event_with_slot(db_session)
    entry = _add_entry(db_session, event, slot, "user_a", 3)
    crud.queue_entry.link(
        db_session, entry=entry, linked_number=9, companion_type="requester", display_label=None
    )
    assert entry.queue_number == 9

    crud.queue_entry.unlink(db_session, entry=entry, restore_number=True)

    assert entry.queue_number == 3
    assert entry.original_queue_number == 3
    assert entry.is_companion_service is False
    assert entry.companion_type is None
    assert entry.linked_queue_number is None
