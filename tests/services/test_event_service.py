from datetime import datetime, timezone

import pytest

from smartqueue.core.exceptions import ConflictError, EventNotFoundError, SlotNotFoundError, ValidationError
from smartqueue.schemas.event import EventCreate, EventUpdate, TimeSlotCreate, TimeSlotUpdate
from smartqueue.services.admission_service import QueueAdmissionService
from smartqueue.services.event_service import EventService
from tests.utils.event import create_event_with_slot


@pytest.fixture
def service():
    return EventService()


@pytest.fixture
def admission(notifier):
    return QueueAdmissionService(notifier=notifier, require_verified_ticket=False)


def test_create_event_with_time_slots(service, db_session):
    event_in = EventCreate(
        name="Fan Meeting",
        date=datetime(2026, 12, 24, 18, 0, tzinfo=timezone.utc),
        location="Olympic Hall",
        capacity=100,
        time_slots=[
            TimeSlotCreate(start_time="18:00", end_time="18:30", max_capacity=50),
            TimeSlotCreate(start_time="9:30", end_time="10:00", max_capacity=50),
        ],
    )

    event = service.create_event(db_session, event_in=event_in, created_by="admin_1")

    assert event.id.startswith("evt_")
    assert event.status == "upcoming"
    slots = service.list_time_slots(db_session, event_id=event.id)
    assert [s.start_time for s in slots] == ["09:30", "18:00"]
    assert all(s.current_count == 0 and s.status == "available" for s in slots)


def test_time_slot_rejects_bad_time_format():
    with pytest.raises(ValueError):
        TimeSlotCreate(start_time="25:00", end_time="26:00", max_capacity=5)


def test_get_missing_event(service, db_session):
    with pytest.raises(EventNotFoundError):
        service.get_event(db_session, event_id="evt_missing")


def test_update_event_before_anyone_queued(service, db_session):
    event, _ = create_event_with_slot(db_session)

    updated = service.update_event(
        db_session, event_id=event.id, event_in=EventUpdate(name="Renamed", status="active")
    )

    assert updated.name == "Renamed"
    assert updated.status == "active"


def test_update_event_with_entries_only_allows_status_and_capacity(service, admission, db_session):
    event, slot = create_event_with_slot(db_session)
    admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_a")

    with pytest.raises(ConflictError):
        service.update_event(db_session, event_id=event.id, event_in=EventUpdate(location="Elsewhere"))

    updated = service.update_event(
        db_session, event_id=event.id, event_in=EventUpdate(status="cancelled", capacity=5)
    )
    assert updated.status == "cancelled"
    assert updated.capacity == 5


def test_update_time_slot(service, db_session):
    _, slot = create_event_with_slot(db_session, max_capacity=3)

    closed = service.update_time_slot(db_session, time_slot_id=slot.id, slot_in=TimeSlotUpdate(status="closed"))
    assert closed.status == "closed"

    reopened = service.update_time_slot(
        db_session, time_slot_id=slot.id, slot_in=TimeSlotUpdate(status="available", max_capacity=8)
    )
    assert reopened.status == "available"
    assert reopened.max_capacity == 8


def test_update_time_slot_capacity_below_count(service, admission, db_session):
    event, slot = create_event_with_slot(db_session, max_capacity=3)
    admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_a")
    admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_b")

    with pytest.raises(ValidationError):
        service.update_time_slot(db_session, time_slot_id=slot.id, slot_in=TimeSlotUpdate(max_capacity=1))


def test_update_missing_time_slot(service, db_session):
    with pytest.raises(SlotNotFoundError):
        service.update_time_slot(db_session, time_slot_id="slot_missing", slot_in=TimeSlotUpdate(status="closed"))


def test_summaries(service, admission, db_session):
    event, slot = create_event_with_slot(db_session, max_capacity=4)
    a = admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_a")
    admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_b")
    admission.join_queue(db_session, event_id=event.id, time_slot_id=slot.id, user_id="user_c")
    admission.cancel_queue(db_session, queue_id=a.id, user_id="user_a")

    slot_summary = service.slot_summary(db_session, time_slot_id=slot.id)
    assert slot_summary.current_count == 2
    assert slot_summary.available_count == 2
    assert slot_summary.is_full is False

    queue_summary = service.queue_summary(db_session, time_slot_id=slot.id)
    assert queue_summary.total_count == 3
    assert queue_summary.waiting_count == 2
    assert queue_summary.cancelled_count == 1
    assert queue_summary.estimated_wait_time == 10

    entries = service.list_slot_queue(db_session, time_slot_id=slot.id)
    assert [e.queue_number for e in entries] == [1, 2, 3]
    waiting = service.list_slot_queue(db_session, time_slot_id=slot.id, status="waiting")
    assert [e.user_id for e in waiting] == ["user_b", "user_c"]


def test_list_events_filters_by_status(service, db_session):
    create_event_with_slot(db_session, status="upcoming")
    create_event_with_slot(db_session, status="completed")

    assert len(service.list_events(db_session)) == 2
    assert len(service.list_events(db_session, status="completed")) == 1
