# smartqueue/crud/crud_event.py
from typing import List

from sqlalchemy.orm import Session

from smartqueue.crud.base import CRUDBase
from smartqueue.models.event import Event
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.models.time_slot import TimeSlot
from smartqueue.schemas.event import EventCreate, EventUpdate


class CRUDEvent(CRUDBase[Event, EventCreate, EventUpdate]):

    def create_with_time_slots(
        self, db: Session, *, obj_in: EventCreate, created_by: str | None = None
    ) -> Event:
        """
        Creates an event together with its time slots. Every slot starts
        empty and available.
        """
        db_obj = Event(
            name=obj_in.name,
            description=obj_in.description,
            date=obj_in.date,
            location=obj_in.location,
            capacity=obj_in.capacity,
            status="upcoming",
            created_by=created_by,
        )
        for slot_in in obj_in.time_slots:
            db_obj.time_slots.append(
                TimeSlot(
                    start_time=slot_in.start_time,
                    end_time=slot_in.end_time,
                    max_capacity=slot_in.max_capacity,
                    current_count=0,
                    status="available",
                )
            )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_multi_ordered(
        self, db: Session, *, status: str | None = None, skip: int = 0, limit: int = 100
    ) -> List[Event]:
        query = db.query(self.model)
        if status:
            query = query.filter(self.model.status == status)
        return query.order_by(self.model.date.asc()).offset(skip).limit(limit).all()

    def has_queue_entries(self, db: Session, *, event_id: str) -> bool:
        return (
            db.query(QueueEntry.id).filter(QueueEntry.event_id == event_id).first()
            is not None
        )


event = CRUDEvent(Event)
