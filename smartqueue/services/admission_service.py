# smartqueue/services/admission_service.py
"""
Queue admission: joining and leaving a time slot's line.

Queue-number assignment and capacity reservation happen in one transaction
that starts by locking the time slot row, so two joiners of the same slot
are serialised while different slots proceed independently.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from smartqueue import crud
from smartqueue.constants.queue import (
    CompanionRequestStatus,
    EventStatus,
    NotificationKind,
    QueueStatus,
    TimeSlotStatus,
)
from smartqueue.core.config import settings
from smartqueue.core.exceptions import (
    AlreadyCancelledError,
    DuplicateEntryError,
    EventNotFoundError,
    EventNotOpenError,
    InvalidStatusTransitionError,
    PermissionDeniedError,
    QueueEntryNotFoundError,
    SlotFullError,
    SlotNotFoundError,
    TicketNotVerifiedError,
)
from smartqueue.db.transaction import run_in_transaction, transactional
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.services.companion_service import dissolve_pairing, find_pairing
from smartqueue.services.notification_service import (
    NotificationDispatcher,
    NullNotificationDispatcher,
)
from smartqueue.services.ticket_verification import TicketVerifier

logger = logging.getLogger(__name__)


class QueueAdmissionService:
    def __init__(
        self,
        notifier: Optional[NotificationDispatcher] = None,
        ticket_verifier: Optional[TicketVerifier] = None,
        require_verified_ticket: Optional[bool] = None,
    ):
        self.notifier = notifier or NullNotificationDispatcher()
        self.ticket_verifier = ticket_verifier or TicketVerifier()
        if require_verified_ticket is None:
            require_verified_ticket = settings.REQUIRE_VERIFIED_TICKET
        self.require_verified_ticket = require_verified_ticket

    def join_queue(self, db: Session, *, event_id: str, time_slot_id: str, user_id: str) -> QueueEntry:
        """
        Register a user in a time slot's line.

        Raises:
            DuplicateEntryError: the user already holds a live entry for the slot
            SlotFullError: the slot is at capacity or closed
            SlotNotFoundError / EventNotFoundError: unknown slot or event
            EventNotOpenError: the event is completed or cancelled
            TicketNotVerifiedError: ticket verification is required and missing
        """
        # Cheap rejection before taking the slot lock; repeated inside the transaction.
        if crud.queue_entry.get_active_for_user(
            db, event_id=event_id, time_slot_id=time_slot_id, user_id=user_id
        ):
            raise DuplicateEntryError(user_id, time_slot_id)

        entry = run_in_transaction(db, self._admit, event_id, time_slot_id, user_id)
        logger.info(
            f"User {user_id} joined slot {time_slot_id} with queue number {entry.queue_number}"
        )

        self.notifier.notify(
            user_id,
            NotificationKind.QUEUE_JOINED,
            {
                "queue_id": entry.id,
                "event_id": event_id,
                "time_slot_id": time_slot_id,
                "queue_number": entry.queue_number,
                "estimated_wait_time": entry.estimated_wait_time,
            },
        )
        return entry

    def _admit(self, db: Session, event_id: str, time_slot_id: str, user_id: str) -> QueueEntry:
        slot = crud.time_slot_ledger.get_for_update(db, time_slot_id)
        if not slot or slot.event_id != event_id:
            raise SlotNotFoundError(time_slot_id)

        event = crud.event.get(db, event_id)
        if not event:
            raise EventNotFoundError(event_id)
        if event.status not in EventStatus.OPEN:
            raise EventNotOpenError(event_id, event.status)

        if self.require_verified_ticket and not self.ticket_verifier.is_ticket_valid(
            db, user_id, event_id
        ):
            raise TicketNotVerifiedError(user_id, event_id)

        if crud.queue_entry.get_active_for_user(
            db, event_id=event_id, time_slot_id=time_slot_id, user_id=user_id
        ):
            raise DuplicateEntryError(user_id, time_slot_id)

        crud.time_slot_ledger.reconcile(db, slot)
        if not crud.time_slot_ledger.try_reserve(db, time_slot_id):
            reason = "closed" if slot.status == TimeSlotStatus.CLOSED else "full"
            logger.warning(
                f"Join rejected for user {user_id}: slot {time_slot_id} is {reason} "
                f"({slot.current_count}/{slot.max_capacity})"
            )
            raise SlotFullError(time_slot_id, reason=reason)

        queue_number = crud.queue_entry.next_queue_number(db, time_slot_id=time_slot_id)
        return crud.queue_entry.create(
            db,
            event_id=event_id,
            time_slot_id=time_slot_id,
            user_id=user_id,
            queue_number=queue_number,
            estimated_wait_time=queue_number * settings.AVERAGE_SERVICE_MINUTES,
        )

    def cancel_queue(
        self, db: Session, *, queue_id: str, user_id: str, is_admin: bool = False
    ) -> QueueEntry:
        """
        Cancel an entry. The status change is committed first; giving the
        capacity back to the slot is best effort and only logged on failure.
        A matched pairing the entry belongs to ends with it, without a fee.
        """
        entry, was_waiting, left_pairing = self._cancel_entry(db, queue_id, user_id, is_admin)
        logger.info(f"Queue entry {queue_id} cancelled by user {user_id}")

        if left_pairing and left_pairing["partner_user_id"]:
            self.notifier.notify(
                left_pairing["partner_user_id"],
                NotificationKind.COMPANION_WITHDRAWN,
                {
                    "request_id": left_pairing["request_id"],
                    "withdrawn_by": left_pairing["role"],
                },
            )

        if was_waiting:
            try:
                run_in_transaction(db, crud.time_slot_ledger.release, entry.time_slot_id)
            except Exception as e:
                logger.error(
                    f"Capacity release failed for slot {entry.time_slot_id} after cancelling "
                    f"{queue_id}; the next join or dispatch will reconcile it: {e}",
                    exc_info=True,
                )
        return entry

    @transactional
    def _cancel_entry(
        self, db: Session, queue_id: str, user_id: str, is_admin: bool
    ) -> tuple[QueueEntry, bool, Optional[dict]]:
        entry = crud.queue_entry.get_for_update(db, queue_id)
        if not entry:
            raise QueueEntryNotFoundError(queue_id)
        if entry.user_id != user_id and not is_admin:
            raise PermissionDeniedError(
                "You can only cancel your own queue entry",
                details={"queue_id": queue_id},
            )
        if entry.status == QueueStatus.CANCELLED:
            raise AlreadyCancelledError(queue_id)
        if entry.status == QueueStatus.ENTERED:
            raise InvalidStatusTransitionError(
                "queue entry", queue_id, entry.status, QueueStatus.CANCELLED
            )

        # Runs before the status change: the pairing teardown re-reads both entries.
        left_pairing = None
        if entry.is_companion_service:
            left_pairing = self._leave_pairing(db, entry)

        # Called entries already gave their capacity back at dispatch.
        was_waiting = entry.status == QueueStatus.WAITING
        entry.status = QueueStatus.CANCELLED

        for request in crud.companion_request.get_pending_by_queue(db, queue_id=queue_id):
            request.status = CompanionRequestStatus.CANCELLED
            logger.info(f"Companion request {request.id} cancelled with its queue entry")

        db.flush()
        return entry, was_waiting, left_pairing

    def _leave_pairing(self, db: Session, entry: QueueEntry) -> Optional[dict]:
        request, companion_record, role = find_pairing(db, user_id=entry.user_id, queue_id=entry.id)
        if not request:
            logger.warning(f"Queue entry {entry.id} is linked but has no matched pairing; unlinking")
            crud.queue_entry.unlink(
                db, entry=entry, restore_number=settings.RESTORE_QUEUE_NUMBER_ON_WITHDRAWAL
            )
            return None

        partner_user_id = dissolve_pairing(
            db, request=request, companion_record=companion_record, leaving_role=role
        )
        logger.info(
            f"Companion request {request.id} ended because the {role}'s queue entry "
            f"{entry.id} was cancelled"
        )
        return {"request_id": request.id, "role": role, "partner_user_id": partner_user_id}

    def get_entry(
        self, db: Session, *, queue_id: str, user_id: str, is_admin: bool = False
    ) -> QueueEntry:
        entry = crud.queue_entry.get(db, queue_id)
        if not entry:
            raise QueueEntryNotFoundError(queue_id)
        if entry.user_id != user_id and not is_admin:
            raise PermissionDeniedError(details={"queue_id": queue_id})
        return entry

    def list_active_entries(self, db: Session, *, user_id: str) -> List[QueueEntry]:
        return crud.queue_entry.get_active_by_user(db, user_id=user_id)
