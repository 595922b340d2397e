# smartqueue/models/time_slot.py
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class TimeSlot(Base):
    """
    A bookable time window of an event and its capacity ledger.

    `current_count` is the live number of waiting entries; it is only ever
    changed inside the transaction that creates, cancels or calls an entry.
    Status follows the counter: full when current_count == max_capacity,
    unless an admin closed the slot.
    """
    __tablename__ = "time_slots"

    id = Column(String, primary_key=True, default=lambda: f"slot_{uuid.uuid4().hex[:12]}")
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM
    end_time = Column(String(5), nullable=False)  # HH:MM
    max_capacity = Column(Integer, nullable=False)
    current_count = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="available")  # available, full, closed
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    event = relationship("Event", back_populates="time_slots")

    __table_args__ = (
        CheckConstraint("max_capacity >= 0", name="check_slot_capacity_positive"),
        CheckConstraint("current_count >= 0", name="check_slot_count_positive"),
        CheckConstraint("current_count <= max_capacity", name="check_slot_count_lte_capacity"),
    )
