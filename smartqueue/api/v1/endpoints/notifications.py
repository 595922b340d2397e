# smartqueue/api/v1/endpoints/notifications.py
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from smartqueue.api import deps
from smartqueue.core.exceptions import NotificationNotFoundError
from smartqueue.crud.crud_notification import notification as crud_notification
from smartqueue.schemas.notification import Notification as NotificationSchema, UnreadCount
from smartqueue.schemas.token import TokenPayload

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("/me", response_model=List[NotificationSchema])
def list_my_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return crud_notification.get_multi_by_user(
        db, user_id=current_user.user_id, unread_only=unread_only, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    return {"unread": crud_notification.count_unread(db, user_id=current_user.user_id)}


@router.post("/read-all", response_model=UnreadCount)
def mark_all_notifications_read(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    crud_notification.mark_all_read(db, user_id=current_user.user_id)
    db.commit()
    return {"unread": 0}


@router.post("/{notification_id}/read", response_model=NotificationSchema)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
):
    db_obj = crud_notification.get(db, notification_id)
    # Someone else's notification is reported as missing.
    if not db_obj or db_obj.user_id != current_user.user_id:
        raise NotificationNotFoundError(notification_id)
    crud_notification.mark_read(db, db_obj=db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj
