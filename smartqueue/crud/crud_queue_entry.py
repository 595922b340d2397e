# smartqueue/crud/crud_queue_entry.py
from typing import Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartqueue.constants.queue import QueueStatus
from smartqueue.crud.base import CRUDBase
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.schemas.queue import QueueJoinRequest


class CRUDQueueEntry(CRUDBase[QueueEntry, QueueJoinRequest, dict]):

    def get_active_for_user(
        self, db: Session, *, event_id: str, time_slot_id: str, user_id: str
    ) -> Optional[QueueEntry]:
        """The user's non-cancelled entry for a slot, if any."""
        return (
            db.query(self.model)
            .filter(
                self.model.event_id == event_id,
                self.model.time_slot_id == time_slot_id,
                self.model.user_id == user_id,
                self.model.status != QueueStatus.CANCELLED,
            )
            .first()
        )

    def next_queue_number(self, db: Session, *, time_slot_id: str) -> int:
        """
        1 + the highest number ever handed out in the slot, cancelled entries
        included, so numbers are never reused.
        """
        highest = (
            db.query(func.max(self.model.original_queue_number))
            .filter(self.model.time_slot_id == time_slot_id)
            .scalar()
        )
        return (highest or 0) + 1

    def create(
        self,
        db: Session,
        *,
        event_id: str,
        time_slot_id: str,
        user_id: str,
        queue_number: int,
        estimated_wait_time: int,
    ) -> QueueEntry:
        db_obj = self.model(
            event_id=event_id,
            time_slot_id=time_slot_id,
            user_id=user_id,
            queue_number=queue_number,
            original_queue_number=queue_number,
            status=QueueStatus.WAITING,
            estimated_wait_time=estimated_wait_time,
            is_companion_service=False,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_first_waiting(self, db: Session, *, time_slot_id: str) -> Optional[QueueEntry]:
        # Linked pairs share a queue number; the original number breaks the tie.
        return (
            db.query(self.model)
            .filter(
                self.model.time_slot_id == time_slot_id,
                self.model.status == QueueStatus.WAITING,
            )
            .order_by(self.model.queue_number.asc(), self.model.original_queue_number.asc())
            .first()
        )

    def get_multi_by_slot(
        self, db: Session, *, time_slot_id: str, status: str | None = None
    ) -> List[QueueEntry]:
        query = db.query(self.model).filter(self.model.time_slot_id == time_slot_id)
        if status:
            query = query.filter(self.model.status == status)
        return query.order_by(
            self.model.queue_number.asc(), self.model.original_queue_number.asc()
        ).all()

    def get_active_by_user(self, db: Session, *, user_id: str) -> List[QueueEntry]:
        return (
            db.query(self.model)
            .filter(
                self.model.user_id == user_id,
                self.model.status.in_(QueueStatus.ACTIVE),
            )
            .order_by(self.model.created_at.desc())
            .all()
        )

    def count_by_status(self, db: Session, *, time_slot_id: str) -> Dict[str, int]:
        rows = (
            db.query(self.model.status, func.count(self.model.id))
            .filter(self.model.time_slot_id == time_slot_id)
            .group_by(self.model.status)
            .all()
        )
        counts = {status: 0 for status in QueueStatus.all_values()}
        counts.update({status: count for status, count in rows})
        return counts

    def get_unpaired_waiting_in_range(
        self,
        db: Session,
        *,
        time_slot_id: str,
        low: int,
        high: int,
        exclude_user_id: str,
    ) -> List[QueueEntry]:
        return (
            db.query(self.model)
            .filter(
                self.model.time_slot_id == time_slot_id,
                self.model.status == QueueStatus.WAITING,
                self.model.is_companion_service.is_(False),
                self.model.user_id != exclude_user_id,
                self.model.queue_number >= low,
                self.model.queue_number <= high,
            )
            .order_by(self.model.queue_number.asc())
            .all()
        )

    def link(
        self,
        db: Session,
        *,
        entry: QueueEntry,
        linked_number: int,
        companion_type: str,
        display_label: str | None,
    ) -> QueueEntry:
        entry.queue_number = linked_number
        entry.linked_queue_number = linked_number
        entry.is_companion_service = True
        entry.companion_type = companion_type
        entry.display_label = display_label
        db.flush()
        return entry

    def unlink(self, db: Session, *, entry: QueueEntry, restore_number: bool) -> QueueEntry:
        """Clear companion linkage; original_queue_number is never touched."""
        entry.is_companion_service = False
        entry.companion_type = None
        entry.display_label = None
        entry.linked_queue_number = None
        if restore_number:
            entry.queue_number = entry.original_queue_number
        db.flush()
        return entry


queue_entry = CRUDQueueEntry(QueueEntry)
