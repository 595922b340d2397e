# smartqueue/models/event.py
import uuid

from sqlalchemy import Column, DateTime, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class Event(Base):
    __tablename__ = "events"

    id = Column(String, primary_key=True, default=lambda: f"evt_{uuid.uuid4().hex[:12]}")
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False, default=0)
    status = Column(String(20), nullable=False, default="upcoming")  # upcoming, active, completed, cancelled
    created_by = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    time_slots = relationship(
        "TimeSlot",
        back_populates="event",
        order_by="TimeSlot.start_time",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("capacity >= 0", name="check_event_capacity_positive"),
    )
