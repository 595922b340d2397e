# smartqueue/models/ticket.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class Ticket(Base):
    """
    Ticket verification outcome written by the external image/face
    verification pipeline. This service only reads `status`.
    """
    __tablename__ = "tickets"

    id = Column(String, primary_key=True, default=lambda: f"tkt_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_number = Column(String, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, verified, rejected
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
