import pytest

from smartqueue import crud
from smartqueue.core.exceptions import SlotNotFoundError, ValidationError
from smartqueue.models.queue_entry import QueueEntry
from tests.utils.event import create_event_with_slot


def test_try_reserve_flips_to_full_at_capacity(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=2)

    assert crud.time_slot_ledger.try_reserve(db_session, slot.id) is True
    assert slot.current_count == 1
    assert slot.status == "available"

    assert crud.time_slot_ledger.try_reserve(db_session, slot.id) is True
    assert slot.current_count == 2
    assert slot.status == "full"

    assert crud.time_slot_ledger.try_reserve(db_session, slot.id) is False
    assert slot.current_count == 2


def test_try_reserve_rejects_closed_slot(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=5)
    slot.status = "closed"
    db_session.commit()

    assert crud.time_slot_ledger.try_reserve(db_session, slot.id) is False
    assert slot.current_count == 0


def test_try_reserve_unknown_slot(db_session):
    with pytest.raises(SlotNotFoundError):
        crud.time_slot_ledger.try_reserve(db_session, "slot_missing")


def test_release_reopens_full_slot_and_floors_at_zero(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=1)
    crud.time_slot_ledger.try_reserve(db_session, slot.id)
    assert slot.status == "full"

    assert crud.time_slot_ledger.release(db_session, slot.id) is True
    assert slot.current_count == 0
    assert slot.status == "available"

    crud.time_slot_ledger.release(db_session, slot.id)
    assert slot.current_count == 0


def test_release_missing_slot_returns_false(db_session):
    assert crud.time_slot_ledger.release(db_session, "slot_missing") is False


def test_reconcile_corrects_drift_from_waiting_entries(db_session, caplog):
    event, slot = create_event_with_slot(db_session, max_capacity=3)
    db_session.add_all(
        [
            QueueEntry(
                event_id=event.id,
                time_slot_id=slot.id,
                user_id=f"user_{n}",
                queue_number=n,
                original_queue_number=n,
                status=status,
            )
            for n, status in [(1, "waiting"), (2, "cancelled"), (3, "called")]
        ]
    )
    # A lost release left the counter at capacity.
    slot.current_count = 3
    slot.status = "full"
    db_session.commit()

    crud.time_slot_ledger.reconcile(db_session, slot)

    assert slot.current_count == 1
    assert slot.status == "available"
    assert "Capacity drift" in caplog.text


def test_reconcile_leaves_closed_slot_closed(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=3)
    slot.status = "closed"
    db_session.commit()

    crud.time_slot_ledger.reconcile(db_session, slot)

    assert slot.status == "closed"
    assert slot.current_count == 0


def test_update_slot_rejects_capacity_below_count(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=3)
    crud.time_slot_ledger.try_reserve(db_session, slot.id)
    crud.time_slot_ledger.try_reserve(db_session, slot.id)

    with pytest.raises(ValidationError):
        crud.time_slot_ledger.update_slot(db_session, slot=slot, max_capacity=1)


def test_update_slot_reopen_derives_full(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=2)
    crud.time_slot_ledger.try_reserve(db_session, slot.id)
    crud.time_slot_ledger.update_slot(db_session, slot=slot, status="closed")
    assert slot.status == "closed"

    crud.time_slot_ledger.update_slot(db_session, slot=slot, max_capacity=1, status="available")

    assert slot.max_capacity == 1
    assert slot.status == "full"


def test_summarize(db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=4)
    crud.time_slot_ledger.try_reserve(db_session, slot.id)

    summary = crud.time_slot_ledger.summarize(slot)

    assert summary.current_count == 1
    assert summary.available_count == 3
    assert summary.is_full is False
    assert summary.is_closed is False
