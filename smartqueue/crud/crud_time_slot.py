# smartqueue/crud/crud_time_slot.py
"""
Capacity ledger for time slots.

`try_reserve` and `release` never commit. They are meant to run inside the
same transaction that creates, cancels or calls a queue entry so the counter
cannot drift through lost updates.
"""

import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartqueue.constants.queue import QueueStatus, TimeSlotStatus
from smartqueue.core.exceptions import SlotNotFoundError, ValidationError
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.models.time_slot import TimeSlot
from smartqueue.schemas.event import TimeSlotSummary

logger = logging.getLogger(__name__)


def derive_status(slot: TimeSlot) -> str:
    """Closed stays closed; otherwise full exactly when the counter reached the cap."""
    if slot.status == TimeSlotStatus.CLOSED:
        return TimeSlotStatus.CLOSED
    if slot.current_count >= slot.max_capacity:
        return TimeSlotStatus.FULL
    return TimeSlotStatus.AVAILABLE


class CRUDTimeSlot:
    """Ledger operations for TimeSlot capacity."""

    def get(self, db: Session, time_slot_id: str) -> Optional[TimeSlot]:
        return db.query(TimeSlot).filter(TimeSlot.id == time_slot_id).first()

    def get_for_update(self, db: Session, time_slot_id: str) -> Optional[TimeSlot]:
        """Lock the slot row; all counter writes for a slot serialise on this lock."""
        return (
            db.query(TimeSlot)
            .filter(TimeSlot.id == time_slot_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_by_event(self, db: Session, *, event_id: str) -> List[TimeSlot]:
        return (
            db.query(TimeSlot)
            .filter(TimeSlot.event_id == event_id)
            .order_by(TimeSlot.start_time.asc())
            .all()
        )

    def try_reserve(self, db: Session, time_slot_id: str) -> bool:
        """
        Take one unit of capacity.

        Returns False when the slot is not available or already at capacity.
        On success the counter grows by one and the slot flips to full when
        it reaches max_capacity.
        """
        slot = self.get_for_update(db, time_slot_id)
        if not slot:
            raise SlotNotFoundError(time_slot_id)

        if slot.status != TimeSlotStatus.AVAILABLE or slot.current_count >= slot.max_capacity:
            return False

        slot.current_count += 1
        slot.status = derive_status(slot)
        db.flush()
        return True

    def release(self, db: Session, time_slot_id: str) -> bool:
        """
        Give one unit of capacity back. The counter never goes below zero and
        a full slot becomes available again.

        Returns False when the slot no longer exists.
        """
        slot = self.get_for_update(db, time_slot_id)
        if not slot:
            logger.warning(f"Cannot release capacity: time slot {time_slot_id} not found")
            return False

        if slot.current_count > 0:
            slot.current_count -= 1
        if slot.status == TimeSlotStatus.FULL:
            slot.status = derive_status(slot)
        db.flush()
        return True

    def count_waiting(self, db: Session, time_slot_id: str) -> int:
        return db.query(func.count(QueueEntry.id)).filter(
            QueueEntry.time_slot_id == time_slot_id,
            QueueEntry.status == QueueStatus.WAITING,
        ).scalar() or 0

    def reconcile(self, db: Session, slot: TimeSlot) -> TimeSlot:
        """
        Re-derive the counter from the waiting entries of the slot.

        Cancellation releases capacity outside its own transaction, so a failed
        release leaves the counter too high until the next join or dispatch
        passes through here.
        """
        waiting = self.count_waiting(db, slot.id)
        expected = min(waiting, slot.max_capacity)
        if slot.current_count != expected:
            logger.warning(
                f"Capacity drift on time slot {slot.id}: counter={slot.current_count}, "
                f"waiting entries={waiting}; correcting"
            )
            slot.current_count = expected
        slot.status = derive_status(slot)
        db.flush()
        return slot

    def update_slot(
        self,
        db: Session,
        *,
        slot: TimeSlot,
        max_capacity: Optional[int] = None,
        status: Optional[str] = None,
    ) -> TimeSlot:
        """Change capacity and/or open-closed state of a slot."""
        if max_capacity is not None:
            if max_capacity < slot.current_count:
                raise ValidationError(
                    f"Capacity {max_capacity} is below the current count {slot.current_count}",
                    field="max_capacity",
                )
            slot.max_capacity = max_capacity

        if status == TimeSlotStatus.CLOSED:
            slot.status = TimeSlotStatus.CLOSED
        elif status is not None:
            # Reopening: available or full is decided by the counter, not the caller.
            slot.status = TimeSlotStatus.AVAILABLE
            slot.status = derive_status(slot)
        else:
            slot.status = derive_status(slot)

        db.flush()
        return slot

    def summarize(self, slot: TimeSlot) -> TimeSlotSummary:
        return TimeSlotSummary(
            time_slot_id=slot.id,
            current_count=slot.current_count,
            available_count=max(0, slot.max_capacity - slot.current_count),
            is_full=slot.current_count >= slot.max_capacity,
            is_closed=slot.status == TimeSlotStatus.CLOSED,
        )


# Singleton instance
time_slot_ledger = CRUDTimeSlot()
