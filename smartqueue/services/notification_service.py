# smartqueue/services/notification_service.py
"""
Fire-and-forget user notifications.

Services call `notify` only after their own transaction has committed, and a
dispatcher never raises: a lost notification must not undo a join, a call or
a match.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from smartqueue.constants.queue import NotificationKind
from smartqueue.crud.crud_notification import notification as crud_notification

logger = logging.getLogger(__name__)


def _render(kind: str, payload: Dict[str, Any]) -> tuple[str, str]:
    if kind == NotificationKind.QUEUE_JOINED:
        return (
            "Queue registration complete",
            f"Your queue number is {payload.get('queue_number')}. "
            f"Estimated wait: {payload.get('estimated_wait_time')} minutes.",
        )
    if kind == NotificationKind.QUEUE_CALL:
        return (
            "It's your turn",
            f"Number {payload.get('queue_number')}, please proceed to the entrance.",
        )
    if kind == NotificationKind.COMPANION_MATCHED:
        return (
            "Companion matched",
            f"You now share queue number {payload.get('linked_queue_number')}.",
        )
    if kind == NotificationKind.COMPANION_WITHDRAWN:
        return (
            "Companion service withdrawn",
            "The companion pairing for your queue entry has ended.",
        )
    return ("Notification", "")


class NotificationDispatcher(ABC):
    """Interface: deliver a notification to a user."""

    @abstractmethod
    def notify(self, user_id: str, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        """Deliver one notification. Implementations must not raise."""
        pass


class NullNotificationDispatcher(NotificationDispatcher):
    def notify(self, user_id: str, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        logger.debug(f"Dropping {kind} notification for user {user_id}")


class DatabaseNotificationDispatcher(NotificationDispatcher):
    """
    Stores notifications as rows the client app polls.

    Uses its own session so a failure here cannot touch the caller's
    transaction.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def notify(self, user_id: str, kind: str, payload: Optional[Dict[str, Any]] = None) -> None:
        payload = payload or {}
        db = self.session_factory()
        try:
            title, message = _render(kind, payload)
            crud_notification.create(
                db,
                user_id=user_id,
                kind=kind,
                title=title,
                message=message,
                payload=payload,
            )
            db.commit()
            logger.info(f"Notification {kind} stored for user {user_id}")
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to deliver {kind} notification to user {user_id}: {e}", exc_info=True)
        finally:
            db.close()
