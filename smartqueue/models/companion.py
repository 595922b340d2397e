# smartqueue/models/companion.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, CheckConstraint

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class CompanionRequest(Base):
    """
    A paid request for someone to share their place in line.

    Status tracking: pending -> matched | cancelled,
    matched -> withdrawn_by_companion | cancelled.
    """
    __tablename__ = "companion_requests"

    id = Column(String, primary_key=True, default=lambda: f"creq_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)  # requester
    queue_id = Column(String, ForeignKey("queue_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    time_slot_id = Column(String, ForeignKey("time_slots.id", ondelete="CASCADE"), nullable=False, index=True)

    original_queue_number = Column(Integer, nullable=False)
    offered_price = Column(Integer, nullable=False)
    search_range = Column(Integer, nullable=False, default=5)
    status = Column(String(30), nullable=False, default="pending", index=True)

    # Set on match
    companion_id = Column(String, nullable=True)
    linked_queue_number = Column(Integer, nullable=True)
    matched_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        CheckConstraint("offered_price >= 0", name="check_offered_price_positive"),
        CheckConstraint("search_range >= 0", name="check_search_range_positive"),
    )


class Companion(Base):
    """The accepting side of a matched companion request."""
    __tablename__ = "companions"

    id = Column(String, primary_key=True, default=lambda: f"cmp_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)  # acceptor
    request_id = Column(String, ForeignKey("companion_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    queue_id = Column(String, ForeignKey("queue_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    original_queue_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="waiting")  # waiting, active
    earned_amount = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
