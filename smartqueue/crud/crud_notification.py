# smartqueue/crud/crud_notification.py
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from smartqueue.crud.base import CRUDBase
from smartqueue.models.notification import Notification
from smartqueue.utils.timezone import utcnow


class CRUDNotification(CRUDBase[Notification, dict, dict]):

    def create(
        self,
        db: Session,
        *,
        user_id: str,
        kind: str,
        title: str,
        message: str,
        payload: Optional[dict] = None,
    ) -> Notification:
        db_obj = self.model(
            user_id=user_id,
            kind=kind,
            title=title,
            message=message,
            payload=payload or {},
            is_read=False,
        )
        db.add(db_obj)
        db.flush()
        return db_obj

    def get_multi_by_user(
        self, db: Session, *, user_id: str, unread_only: bool = False, limit: int = 50
    ) -> List[Notification]:
        query = db.query(self.model).filter(self.model.user_id == user_id)
        if unread_only:
            query = query.filter(self.model.is_read.is_(False))
        return query.order_by(self.model.created_at.desc()).limit(limit).all()

    def count_unread(self, db: Session, *, user_id: str) -> int:
        return (
            db.query(func.count(self.model.id))
            .filter(self.model.user_id == user_id, self.model.is_read.is_(False))
            .scalar()
            or 0
        )

    def mark_read(self, db: Session, *, db_obj: Notification) -> Notification:
        if not db_obj.is_read:
            db_obj.is_read = True
            db_obj.read_at = utcnow()
            db.flush()
        return db_obj

    def mark_all_read(self, db: Session, *, user_id: str) -> int:
        updated = (
            db.query(self.model)
            .filter(self.model.user_id == user_id, self.model.is_read.is_(False))
            .update({"is_read": True, "read_at": utcnow()}, synchronize_session=False)
        )
        db.flush()
        return updated


notification = CRUDNotification(Notification)
