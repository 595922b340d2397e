# smartqueue/services/ticket_verification.py
import logging

from sqlalchemy.orm import Session

from smartqueue.constants.queue import TicketStatus
from smartqueue.models.ticket import Ticket

logger = logging.getLogger(__name__)


class TicketVerifier:
    """
    Reads the outcome of the external ticket/face verification pipeline.

    The pipeline writes Ticket rows; a user may join an event's queue only
    with at least one verified ticket for it.
    """

    def is_ticket_valid(self, db: Session, user_id: str, event_id: str) -> bool:
        verified = (
            db.query(Ticket.id)
            .filter(
                Ticket.user_id == user_id,
                Ticket.event_id == event_id,
                Ticket.status == TicketStatus.VERIFIED,
            )
            .first()
        )
        if verified is None:
            logger.info(f"No verified ticket for user {user_id} on event {event_id}")
        return verified is not None
