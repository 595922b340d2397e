# smartqueue/services/companion_service.py
"""
Companion matching: a queued user pays another queued user of the same time
slot to go in together.

On a match both entries take the larger of the two original numbers, so the
requester moves back or stays put and the companion never loses their place.
Acceptance runs as one transaction: the companion record, the matched request
and both re-numbered entries commit together or not at all.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from smartqueue import crud
from smartqueue.constants.queue import (
    CompanionRequestStatus,
    CompanionType,
    NotificationKind,
    QueueStatus,
)
from smartqueue.core.config import settings
from smartqueue.core.exceptions import (
    AlreadyLinkedError,
    AlreadyProcessedError,
    CompanionRequestNotFoundError,
    ConflictError,
    CrossSlotMatchError,
    DuplicateCompanionRequestError,
    InvalidPriceError,
    NothingToWithdrawError,
    PermissionDeniedError,
    QueueEntryNotFoundError,
    SelfMatchError,
)
from smartqueue.db.transaction import run_in_transaction, transactional
from smartqueue.models.companion import Companion, CompanionRequest
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.services.notification_service import (
    NotificationDispatcher,
    NullNotificationDispatcher,
)
from smartqueue.utils.timezone import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def compute_search_range(created_at: datetime, now: datetime) -> int:
    """Window after `now - created_at`: grows one step per whole minute, capped."""
    elapsed_minutes = max(0, int((ensure_utc(now) - ensure_utc(created_at)).total_seconds() // 60))
    return min(
        settings.INITIAL_SEARCH_RANGE + elapsed_minutes * settings.SEARCH_RANGE_STEP,
        settings.MAX_SEARCH_RANGE,
    )


def withdrawal_fee(offered_price: int) -> int:
    return offered_price * settings.WITHDRAWAL_FEE_PERCENT // 100


def _validate_price(offered_price: int) -> None:
    if offered_price < settings.MIN_OFFERED_PRICE:
        raise InvalidPriceError(offered_price, settings.MIN_OFFERED_PRICE)


def _ensure_waiting(entry: QueueEntry) -> None:
    if entry.status != QueueStatus.WAITING:
        raise ConflictError(
            f"Queue entry {entry.id} is {entry.status}; only waiting entries can be paired",
            error_code="QUEUE_ENTRY_NOT_WAITING",
            details={"queue_id": entry.id, "status": entry.status},
        )


def find_pairing(
    db: Session, *, user_id: str, queue_id: str
) -> tuple[Optional[CompanionRequest], Optional[Companion], str]:
    """
    Locate the matched pairing `user_id` takes part in through `queue_id`.

    Returns (request, companion record, role of the user). The request is
    None when the entry is not part of a matched pairing.
    """
    companion_record = crud.companion.get_by_user_and_queue(db, user_id=user_id, queue_id=queue_id)
    if companion_record:
        role = CompanionType.COMPANION
        request = crud.companion_request.get_for_update(db, companion_record.request_id)
    else:
        role = CompanionType.REQUESTER
        request = crud.companion_request.get_matched_for_queue(db, queue_id=queue_id)
        if request and request.user_id != user_id:
            request = None
        if request:
            companion_record = crud.companion.get_by_request(db, request_id=request.id)

    if not request or request.status != CompanionRequestStatus.MATCHED:
        return None, None, role
    return request, companion_record, role


def dissolve_pairing(
    db: Session,
    *,
    request: CompanionRequest,
    companion_record: Optional[Companion],
    leaving_role: str,
) -> Optional[str]:
    """
    Undo a match inside the caller's transaction.

    Both entries lose their linkage, the request becomes withdrawn_by_companion
    when the companion leaves and cancelled when the requester leaves, and the
    companion record is deleted. Returns the user id of the party left behind.
    """
    requester_entry = crud.queue_entry.get_for_update(db, request.queue_id)
    companion_entry = (
        crud.queue_entry.get_for_update(db, companion_record.queue_id)
        if companion_record
        else None
    )
    for entry in (requester_entry, companion_entry):
        if entry is not None:
            crud.queue_entry.unlink(
                db, entry=entry, restore_number=settings.RESTORE_QUEUE_NUMBER_ON_WITHDRAWAL
            )

    if leaving_role == CompanionType.COMPANION:
        request.status = CompanionRequestStatus.WITHDRAWN_BY_COMPANION
        other_user_id = request.user_id
    else:
        request.status = CompanionRequestStatus.CANCELLED
        other_user_id = companion_record.user_id if companion_record else None

    request.companion_id = None
    if companion_record:
        crud.companion.remove(db, db_obj=companion_record)
    db.flush()
    return other_user_id


class CompanionMatchingService:
    def __init__(self, notifier: Optional[NotificationDispatcher] = None):
        self.notifier = notifier or NullNotificationDispatcher()

    # ------------------------------------------------------------------
    # Request lifecycle
    # ------------------------------------------------------------------

    def create_request(
        self, db: Session, *, user_id: str, queue_id: str, offered_price: int
    ) -> CompanionRequest:
        _validate_price(offered_price)
        request = self._create_request(db, user_id, queue_id, offered_price)
        logger.info(
            f"Companion request {request.id} created by user {user_id} for queue entry "
            f"{queue_id} at {offered_price}"
        )
        return request

    @transactional
    def _create_request(
        self, db: Session, user_id: str, queue_id: str, offered_price: int
    ) -> CompanionRequest:
        entry = crud.queue_entry.get_for_update(db, queue_id)
        if not entry or entry.status == QueueStatus.CANCELLED:
            raise QueueEntryNotFoundError(queue_id)
        if entry.user_id != user_id:
            raise PermissionDeniedError(
                "You can only request a companion for your own queue entry",
                details={"queue_id": queue_id},
            )
        _ensure_waiting(entry)
        if entry.is_companion_service:
            raise AlreadyLinkedError(queue_id)

        removed = crud.companion_request.delete_withdrawn(db, user_id=user_id, queue_id=queue_id)
        if removed:
            logger.info(f"Removed {removed} withdrawn request(s) for queue entry {queue_id}")

        existing = crud.companion_request.get_open_for_queue(db, user_id=user_id, queue_id=queue_id)
        if existing:
            raise DuplicateCompanionRequestError(queue_id, existing.id)

        return crud.companion_request.create(
            db,
            user_id=user_id,
            entry=entry,
            offered_price=offered_price,
            search_range=settings.INITIAL_SEARCH_RANGE,
        )

    @transactional
    def cancel_request(self, db: Session, *, request_id: str, user_id: str) -> CompanionRequest:
        request = self._get_own_pending_request(db, request_id, user_id)
        request.status = CompanionRequestStatus.CANCELLED
        db.flush()
        logger.info(f"Companion request {request_id} cancelled by requester {user_id}")
        return request

    def update_price(
        self, db: Session, *, request_id: str, user_id: str, offered_price: int
    ) -> CompanionRequest:
        _validate_price(offered_price)
        return run_in_transaction(db, self._update_price, request_id, user_id, offered_price)

    def _update_price(
        self, db: Session, request_id: str, user_id: str, offered_price: int
    ) -> CompanionRequest:
        request = self._get_own_pending_request(db, request_id, user_id)
        previous = request.offered_price
        request.offered_price = offered_price
        db.flush()
        logger.info(f"Companion request {request_id} price changed {previous} -> {offered_price}")
        return request

    def _get_own_pending_request(self, db: Session, request_id: str, user_id: str) -> CompanionRequest:
        request = crud.companion_request.get_for_update(db, request_id)
        if not request:
            raise CompanionRequestNotFoundError(request_id)
        if request.user_id != user_id:
            raise PermissionDeniedError(
                "Only the requester can change a companion request",
                details={"request_id": request_id},
            )
        if request.status != CompanionRequestStatus.PENDING:
            raise AlreadyProcessedError(request_id, request.status)
        return request

    # ------------------------------------------------------------------
    # Search window
    # ------------------------------------------------------------------

    @transactional
    def expand_search_range(
        self, db: Session, request_id: str, now: Optional[datetime] = None
    ) -> CompanionRequest:
        """
        Widen a pending request's window based on its age. The window never
        shrinks, and requests that are no longer pending are left alone.
        """
        request = crud.companion_request.get_for_update(db, request_id)
        if not request:
            raise CompanionRequestNotFoundError(request_id)
        if request.status != CompanionRequestStatus.PENDING:
            return request

        new_range = compute_search_range(request.created_at, now or utcnow())
        if new_range > request.search_range:
            logger.info(
                f"Search range of request {request_id} expanded "
                f"{request.search_range} -> {new_range}"
            )
            request.search_range = new_range
            db.flush()
        return request

    def expand_pending_ranges(self, db: Session, now: Optional[datetime] = None) -> int:
        """Expand every pending request, one short transaction each. Returns how many grew."""
        now = now or utcnow()
        pending = [
            (r.id, r.search_range)
            for r in crud.companion_request.get_multi_pending(
                db, below_range=settings.MAX_SEARCH_RANGE
            )
        ]
        db.commit()

        expanded = 0
        for request_id, previous_range in pending:
            try:
                request = self.expand_search_range(db, request_id, now=now)
            except Exception as e:
                logger.error(f"Search range expansion failed for request {request_id}: {e}", exc_info=True)
                continue
            if request.search_range > previous_range:
                expanded += 1
        return expanded

    def find_candidates(
        self, db: Session, *, request_id: str, user_id: str, is_admin: bool = False
    ) -> List[QueueEntry]:
        """Waiting, unpaired entries of other users inside the request's window."""
        request = crud.companion_request.get(db, request_id)
        if not request:
            raise CompanionRequestNotFoundError(request_id)
        if request.user_id != user_id and not is_admin:
            raise PermissionDeniedError(details={"request_id": request_id})

        number = request.original_queue_number
        return crud.queue_entry.get_unpaired_waiting_in_range(
            db,
            time_slot_id=request.time_slot_id,
            low=max(1, number - request.search_range),
            high=number + request.search_range,
            exclude_user_id=request.user_id,
        )

    def list_matchable_requests(
        self, db: Session, *, queue_id: str, user_id: str
    ) -> List[CompanionRequest]:
        """Pending requests of the same slot whose window reaches the caller's number."""
        entry = crud.queue_entry.get(db, queue_id)
        if not entry or entry.status == QueueStatus.CANCELLED:
            raise QueueEntryNotFoundError(queue_id)
        if entry.user_id != user_id:
            raise PermissionDeniedError(details={"queue_id": queue_id})
        if entry.status != QueueStatus.WAITING or entry.is_companion_service:
            return []

        return [
            request
            for request in crud.companion_request.get_pending_in_slot(
                db, time_slot_id=entry.time_slot_id, exclude_user_id=user_id
            )
            if abs(request.original_queue_number - entry.original_queue_number) <= request.search_range
        ]

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def accept_request(
        self, db: Session, *, request_id: str, companion_user_id: str, companion_queue_id: str
    ) -> CompanionRequest:
        request = run_in_transaction(
            db, self._accept, request_id, companion_user_id, companion_queue_id
        )
        payload = {
            "request_id": request.id,
            "linked_queue_number": request.linked_queue_number,
            "time_slot_id": request.time_slot_id,
        }
        logger.info(
            f"Companion request {request.id} matched with user {companion_user_id}; "
            f"linked queue number {request.linked_queue_number}"
        )
        self.notifier.notify(request.user_id, NotificationKind.COMPANION_MATCHED, payload)
        self.notifier.notify(companion_user_id, NotificationKind.COMPANION_MATCHED, payload)
        return request

    def _accept(
        self, db: Session, request_id: str, companion_user_id: str, companion_queue_id: str
    ) -> CompanionRequest:
        request = crud.companion_request.get_for_update(db, request_id)
        if not request:
            raise CompanionRequestNotFoundError(request_id)
        if request.status != CompanionRequestStatus.PENDING:
            logger.warning(
                f"Accept of companion request {request_id} rejected: already {request.status}"
            )
            raise AlreadyProcessedError(request_id, request.status)
        if request.user_id == companion_user_id:
            raise SelfMatchError(request_id)

        companion_entry = crud.queue_entry.get_for_update(db, companion_queue_id)
        if not companion_entry or companion_entry.status == QueueStatus.CANCELLED:
            raise QueueEntryNotFoundError(companion_queue_id)
        if companion_entry.user_id != companion_user_id:
            raise PermissionDeniedError(
                "You can only accept with your own queue entry",
                details={"queue_id": companion_queue_id},
            )
        if (companion_entry.event_id, companion_entry.time_slot_id) != (
            request.event_id,
            request.time_slot_id,
        ):
            raise CrossSlotMatchError(request_id, companion_queue_id)

        requester_entry = crud.queue_entry.get_for_update(db, request.queue_id)
        if not requester_entry or requester_entry.status == QueueStatus.CANCELLED:
            raise QueueEntryNotFoundError(request.queue_id)

        for entry in (requester_entry, companion_entry):
            _ensure_waiting(entry)
            if entry.is_companion_service:
                raise AlreadyLinkedError(entry.id)

        linked_number = max(request.original_queue_number, companion_entry.original_queue_number)

        companion_record = crud.companion.create(
            db, user_id=companion_user_id, request=request, entry=companion_entry
        )

        request.status = CompanionRequestStatus.MATCHED
        request.companion_id = companion_record.id
        request.linked_queue_number = linked_number
        request.matched_at = utcnow()

        crud.queue_entry.link(
            db,
            entry=requester_entry,
            linked_number=linked_number,
            companion_type=CompanionType.REQUESTER,
            display_label=None,
        )
        crud.queue_entry.link(
            db,
            entry=companion_entry,
            linked_number=linked_number,
            companion_type=CompanionType.COMPANION,
            display_label=settings.COMPANION_DISPLAY_LABEL,
        )
        db.flush()
        return request

    def withdraw(self, db: Session, *, user_id: str, queue_id: str) -> dict:
        """
        End a matched pairing from either side.

        A companion withdrawal leaves the request as withdrawn_by_companion so
        the requester can ask again; a requester withdrawal cancels it. Both
        sides pay the same fee and both entries lose their linkage.
        """
        result, other_user_id = run_in_transaction(db, self._withdraw, user_id, queue_id)
        logger.info(
            f"User {user_id} withdrew as {result['role']} from companion request "
            f"{result['request_id']} (fee {result['fee']})"
        )
        if other_user_id:
            self.notifier.notify(
                other_user_id,
                NotificationKind.COMPANION_WITHDRAWN,
                {"request_id": result["request_id"], "withdrawn_by": result["role"]},
            )
        return result

    def withdraw_from_request(self, db: Session, *, request_id: str, user_id: str) -> dict:
        """Withdraw by request id, resolving which queue entry the caller holds in the pairing."""
        request = self.get_request(db, request_id=request_id)
        if request.user_id == user_id:
            queue_id = request.queue_id
        else:
            record = crud.companion.get_by_request(db, request_id=request_id)
            if not record or record.user_id != user_id:
                raise NothingToWithdrawError(user_id, request.queue_id)
            queue_id = record.queue_id
        return self.withdraw(db, user_id=user_id, queue_id=queue_id)

    def _withdraw(self, db: Session, user_id: str, queue_id: str) -> tuple[dict, Optional[str]]:
        request, companion_record, role = find_pairing(db, user_id=user_id, queue_id=queue_id)
        if not request:
            raise NothingToWithdrawError(user_id, queue_id)

        fee = withdrawal_fee(request.offered_price)
        other_user_id = dissolve_pairing(
            db, request=request, companion_record=companion_record, leaving_role=role
        )
        return {"request_id": request.id, "role": role, "fee": fee}, other_user_id

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_request(self, db: Session, *, request_id: str) -> CompanionRequest:
        request = crud.companion_request.get(db, request_id)
        if not request:
            raise CompanionRequestNotFoundError(request_id)
        return request

    def get_visible_request(
        self, db: Session, *, request_id: str, user_id: str, is_admin: bool = False
    ) -> CompanionRequest:
        """A request as seen by its requester, its matched companion or an admin."""
        request = self.get_request(db, request_id=request_id)
        if request.user_id == user_id or is_admin:
            return request
        record = crud.companion.get_by_request(db, request_id=request_id)
        if record and record.user_id == user_id:
            return request
        raise PermissionDeniedError(details={"request_id": request_id})

    def list_user_requests(self, db: Session, *, user_id: str) -> List[CompanionRequest]:
        return crud.companion_request.get_multi_by_user(db, user_id=user_id)

    def list_user_companions(self, db: Session, *, user_id: str) -> List[Companion]:
        return crud.companion.get_multi_by_user(db, user_id=user_id)
