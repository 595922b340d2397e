# smartqueue/crud/crud_companion.py
from typing import List, Optional

from sqlalchemy.orm import Session

from smartqueue.constants.queue import CompanionRequestStatus, CompanionStatus
from smartqueue.crud.base import CRUDBase
from smartqueue.models.companion import Companion, CompanionRequest
from smartqueue.models.queue_entry import QueueEntry
from smartqueue.schemas.companion import CompanionPriceUpdate, CompanionRequestCreate


class CRUDCompanionRequest(CRUDBase[CompanionRequest, CompanionRequestCreate, CompanionPriceUpdate]):

    def get_open_for_queue(
        self, db: Session, *, user_id: str, queue_id: str
    ) -> Optional[CompanionRequest]:
        """The pending or matched request of this user for this entry, if any."""
        return (
            db.query(self.model)
            .filter(
                self.model.user_id == user_id,
                self.model.queue_id == queue_id,
                self.model.status.in_(CompanionRequestStatus.OPEN),
            )
            .first()
        )

    def get_matched_for_queue(self, db: Session, *, queue_id: str) -> Optional[CompanionRequest]:
        return (
            db.query(self.model)
            .filter(
                self.model.queue_id == queue_id,
                self.model.status == CompanionRequestStatus.MATCHED,
            )
            .with_for_update()
            .populate_existing()
            .first()
        )

    def delete_withdrawn(self, db: Session, *, user_id: str, queue_id: str) -> int:
        stale = (
            db.query(self.model)
            .filter(
                self.model.user_id == user_id,
                self.model.queue_id == queue_id,
                self.model.status == CompanionRequestStatus.WITHDRAWN_BY_COMPANION,
            )
            .all()
        )
        for request in stale:
            db.delete(request)
        db.flush()
        return len(stale)

    def create(
        self,
        db: Session,
        *,
        user_id: str,
        entry: QueueEntry,
        offered_price: int,
        search_range: int,
    ) -> CompanionRequest:
        db_obj = self.model(
            user_id=user_id,
            queue_id=entry.id,
            event_id=entry.event_id,
            time_slot_id=entry.time_slot_id,
            original_queue_number=entry.original_queue_number,
            offered_price=offered_price,
            search_range=search_range,
            status=CompanionRequestStatus.PENDING,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_multi_pending(
        self, db: Session, *, below_range: int, limit: int = 500
    ) -> List[CompanionRequest]:
        """Pending requests whose window can still grow, oldest first."""
        return (
            db.query(self.model)
            .filter(
                self.model.status == CompanionRequestStatus.PENDING,
                self.model.search_range < below_range,
            )
            .order_by(self.model.created_at.asc())
            .limit(limit)
            .all()
        )

    def get_pending_by_queue(self, db: Session, *, queue_id: str) -> List[CompanionRequest]:
        return (
            db.query(self.model)
            .filter(
                self.model.queue_id == queue_id,
                self.model.status == CompanionRequestStatus.PENDING,
            )
            .order_by(self.model.created_at.desc())
            .all()
        )

    def get_pending_in_slot(
        self, db: Session, *, time_slot_id: str, exclude_user_id: str
    ) -> List[CompanionRequest]:
        return (
            db.query(self.model)
            .filter(
                self.model.time_slot_id == time_slot_id,
                self.model.status == CompanionRequestStatus.PENDING,
                self.model.user_id != exclude_user_id,
            )
            .order_by(self.model.offered_price.desc(), self.model.created_at.asc())
            .all()
        )

    def get_multi_by_user(self, db: Session, *, user_id: str) -> List[CompanionRequest]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc())
            .all()
        )


class CRUDCompanion(CRUDBase[Companion, CompanionRequestCreate, dict]):

    def create(
        self, db: Session, *, user_id: str, request: CompanionRequest, entry: QueueEntry
    ) -> Companion:
        db_obj = self.model(
            user_id=user_id,
            request_id=request.id,
            queue_id=entry.id,
            original_queue_number=entry.original_queue_number,
            status=CompanionStatus.WAITING,
            earned_amount=request.offered_price,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_by_request(self, db: Session, *, request_id: str) -> Optional[Companion]:
        return db.query(self.model).filter(self.model.request_id == request_id).first()

    def get_by_user_and_queue(
        self, db: Session, *, user_id: str, queue_id: str
    ) -> Optional[Companion]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.queue_id == queue_id)
            .first()
        )

    def get_multi_by_queue(self, db: Session, *, queue_id: str) -> List[Companion]:
        return db.query(self.model).filter(self.model.queue_id == queue_id).all()

    def get_multi_by_user(self, db: Session, *, user_id: str) -> List[Companion]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.created_at.desc())
            .all()
        )

    def remove(self, db: Session, *, db_obj: Companion) -> None:
        db.delete(db_obj)
        db.flush()


companion_request = CRUDCompanionRequest(CompanionRequest)
companion = CRUDCompanion(Companion)
