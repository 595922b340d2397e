# smartqueue/services/event_service.py
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from smartqueue import crud
from smartqueue.constants.queue import QueueStatus
from smartqueue.core.config import settings
from smartqueue.core.exceptions import ConflictError, EventNotFoundError, SlotNotFoundError
from smartqueue.db.transaction import transactional
from smartqueue.models.event import Event
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.models.time_slot import TimeSlot
from smartqueue.schemas.event import EventCreate, EventUpdate, TimeSlotSummary, TimeSlotUpdate
from smartqueue.schemas.queue import QueueSummary

logger = logging.getLogger(__name__)

# Fields that stay editable after people have queued for the event.
_EDITABLE_WITH_ENTRIES = {"status", "capacity"}


class EventService:
    """Admin management of events and their time slots, plus read models."""

    @transactional
    def create_event(self, db: Session, *, event_in: EventCreate, created_by: str | None = None) -> Event:
        event = crud.event.create_with_time_slots(db, obj_in=event_in, created_by=created_by)
        logger.info(f"Event {event.id} created with {len(event.time_slots)} time slot(s)")
        return event

    def get_event(self, db: Session, *, event_id: str) -> Event:
        event = crud.event.get(db, event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event

    def list_events(
        self, db: Session, *, status: Optional[str] = None, skip: int = 0, limit: int = 100
    ) -> List[Event]:
        return crud.event.get_multi_ordered(db, status=status, skip=skip, limit=limit)

    @transactional
    def update_event(self, db: Session, *, event_id: str, event_in: EventUpdate) -> Event:
        event = crud.event.get_for_update(db, event_id)
        if not event:
            raise EventNotFoundError(event_id)

        update_data = {
            field: value
            for field, value in event_in.model_dump(exclude_unset=True, mode="json").items()
            if value is not None
        }

        locked_fields = set(update_data) - _EDITABLE_WITH_ENTRIES
        if locked_fields and crud.event.has_queue_entries(db, event_id=event_id):
            raise ConflictError(
                "Only status and capacity can change once people have queued for the event",
                error_code="EVENT_LOCKED",
                details={"event_id": event_id, "fields": sorted(locked_fields)},
            )

        event = crud.event.update(db, db_obj=event, obj_in=update_data)
        logger.info(f"Event {event_id} updated: {sorted(update_data)}")
        return event

    def list_time_slots(self, db: Session, *, event_id: str) -> List[TimeSlot]:
        self.get_event(db, event_id=event_id)
        return crud.time_slot_ledger.get_by_event(db, event_id=event_id)

    def get_time_slot(self, db: Session, *, time_slot_id: str) -> TimeSlot:
        slot = crud.time_slot_ledger.get(db, time_slot_id)
        if not slot:
            raise SlotNotFoundError(time_slot_id)
        return slot

    @transactional
    def update_time_slot(self, db: Session, *, time_slot_id: str, slot_in: TimeSlotUpdate) -> TimeSlot:
        slot = crud.time_slot_ledger.get_for_update(db, time_slot_id)
        if not slot:
            raise SlotNotFoundError(time_slot_id)

        status = slot_in.status.value if slot_in.status is not None else None
        slot = crud.time_slot_ledger.update_slot(
            db, slot=slot, max_capacity=slot_in.max_capacity, status=status
        )
        logger.info(
            f"Time slot {time_slot_id} updated: capacity={slot.max_capacity}, status={slot.status}"
        )
        return slot

    def slot_summary(self, db: Session, *, time_slot_id: str) -> TimeSlotSummary:
        return crud.time_slot_ledger.summarize(self.get_time_slot(db, time_slot_id=time_slot_id))

    def queue_summary(self, db: Session, *, time_slot_id: str) -> QueueSummary:
        slot = self.get_time_slot(db, time_slot_id=time_slot_id)
        counts = crud.queue_entry.count_by_status(db, time_slot_id=time_slot_id)
        waiting = counts[QueueStatus.WAITING]
        return QueueSummary(
            event_id=slot.event_id,
            time_slot_id=slot.id,
            total_count=sum(counts.values()),
            waiting_count=waiting,
            called_count=counts[QueueStatus.CALLED],
            entered_count=counts[QueueStatus.ENTERED],
            cancelled_count=counts[QueueStatus.CANCELLED],
            estimated_wait_time=waiting * settings.AVERAGE_SERVICE_MINUTES,
        )

    def list_slot_queue(
        self, db: Session, *, time_slot_id: str, status: Optional[str] = None
    ) -> List[QueueEntry]:
        self.get_time_slot(db, time_slot_id=time_slot_id)
        return crud.queue_entry.get_multi_by_slot(db, time_slot_id=time_slot_id, status=status)
