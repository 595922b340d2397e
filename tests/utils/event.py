from datetime import datetime, timedelta, timezone
from typing import Tuple

from sqlalchemy.orm import Session

from smartqueue import crud
from smartqueue.models.event import Event
from smartqueue.models.time_slot import TimeSlot
from smartqueue.schemas.event import EventCreate, TimeSlotCreate


def create_event_with_slots(
    db: Session,
    *,
    max_capacity: int = 10,
    slot_count: int = 1,
    status: str = "upcoming",
) -> Event:
    """
    Creates and commits a dummy event with `slot_count` half-hour slots.
    """
    slots = [
        TimeSlotCreate(
            start_time=f"{10 + i:02d}:00",
            end_time=f"{10 + i:02d}:30",
            max_capacity=max_capacity,
        )
        for i in range(slot_count)
    ]
    event_in = EventCreate(
        name="Test Event",
        date=datetime.now(timezone.utc) + timedelta(days=7),
        location="Olympic Hall",
        capacity=max_capacity * slot_count,
        time_slots=slots,
    )
    event = crud.event.create_with_time_slots(db, obj_in=event_in, created_by="admin_1")
    event.status = status
    db.commit()
    return event


def create_event_with_slot(db: Session, *, max_capacity: int = 10, status: str = "upcoming") -> Tuple[Event, TimeSlot]:
    event = create_event_with_slots(db, max_capacity=max_capacity, status=status)
    return event, event.time_slots[0]
