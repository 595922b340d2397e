# smartqueue/services/dispatch_service.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from smartqueue import crud
from smartqueue.constants.queue import (
    CompanionStatus,
    CompanionType,
    NotificationKind,
    QueueStatus,
)
from smartqueue.core.exceptions import (
    InvalidStatusTransitionError,
    QueueEntryNotFoundError,
    SlotNotFoundError,
)
from smartqueue.db.transaction import run_in_transaction, transactional
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.services.notification_service import (
    NotificationDispatcher,
    NullNotificationDispatcher,
)
from smartqueue.utils.timezone import utcnow

logger = logging.getLogger(__name__)


class CallDispatcher:
    """Admin-driven call-next and entry confirmation for a time slot."""

    def __init__(self, notifier: Optional[NotificationDispatcher] = None):
        self.notifier = notifier or NullNotificationDispatcher()

    def call_next(self, db: Session, *, time_slot_id: str) -> Optional[QueueEntry]:
        """
        Call the lowest-numbered waiting entry of the slot.

        Returns None and changes nothing when nobody is waiting. A called
        entry leaves the waiting area, so its unit of capacity is released.
        """
        entry = run_in_transaction(db, self._call_next, time_slot_id)
        if entry is None:
            logger.info(f"Call next on slot {time_slot_id}: nobody waiting")
            return None

        logger.info(f"Called queue number {entry.queue_number} (entry {entry.id}) on slot {time_slot_id}")
        self.notifier.notify(
            entry.user_id,
            NotificationKind.QUEUE_CALL,
            {
                "queue_id": entry.id,
                "time_slot_id": time_slot_id,
                "queue_number": entry.queue_number,
            },
        )
        return entry

    def _call_next(self, db: Session, time_slot_id: str) -> Optional[QueueEntry]:
        slot = crud.time_slot_ledger.get_for_update(db, time_slot_id)
        if not slot:
            raise SlotNotFoundError(time_slot_id)

        entry = crud.queue_entry.get_first_waiting(db, time_slot_id=time_slot_id)
        if entry is None:
            return None

        # Heal drift left by a failed release while the waiting set is still intact.
        crud.time_slot_ledger.reconcile(db, slot)

        entry.status = QueueStatus.CALLED
        entry.called_at = utcnow()
        if entry.is_companion_service:
            self._activate_companion(db, entry)

        crud.time_slot_ledger.release(db, time_slot_id)
        db.flush()
        return entry

    def _activate_companion(self, db: Session, entry: QueueEntry) -> None:
        """The pairing is being served once either side is called."""
        if entry.companion_type == CompanionType.COMPANION:
            records = crud.companion.get_multi_by_queue(db, queue_id=entry.id)
        else:
            request = crud.companion_request.get_matched_for_queue(db, queue_id=entry.id)
            record = crud.companion.get_by_request(db, request_id=request.id) if request else None
            records = [record] if record else []
        for record in records:
            record.status = CompanionStatus.ACTIVE

    @transactional
    def mark_entered(self, db: Session, *, queue_id: str) -> QueueEntry:
        entry = crud.queue_entry.get_for_update(db, queue_id)
        if not entry:
            raise QueueEntryNotFoundError(queue_id)
        if entry.status != QueueStatus.CALLED:
            raise InvalidStatusTransitionError(
                "queue entry", queue_id, entry.status, QueueStatus.ENTERED
            )

        entry.status = QueueStatus.ENTERED
        entry.entered_at = utcnow()
        db.flush()
        logger.info(f"Queue entry {queue_id} marked as entered")
        return entry
