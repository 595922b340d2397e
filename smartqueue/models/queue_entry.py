# smartqueue/models/queue_entry.py
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    text,
)

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class QueueEntry(Base):
    """
    A user's place in a time slot's line.

    `original_queue_number` is assigned at join and never changes; numbers are
    never reused within a slot, cancelled entries included. `queue_number` is
    the display/ordering value and is overwritten when the entry is linked to
    a companion pairing.
    """
    __tablename__ = "queue_entries"

    id = Column(String, primary_key=True, default=lambda: f"que_{uuid.uuid4().hex[:12]}")
    event_id = Column(String, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    time_slot_id = Column(String, ForeignKey("time_slots.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)  # No FK - users live with the identity provider

    queue_number = Column(Integer, nullable=False)
    original_queue_number = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="waiting")  # waiting, called, entered, cancelled
    estimated_wait_time = Column(Integer, nullable=True)  # minutes

    # Companion linkage
    is_companion_service = Column(Boolean, nullable=False, default=False)
    companion_type = Column(String(20), nullable=True)  # requester, companion
    display_label = Column(String, nullable=True)
    linked_queue_number = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
    called_at = Column(DateTime(timezone=True), nullable=True)
    entered_at = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("time_slot_id", "original_queue_number", name="unique_slot_queue_number"),
        Index(
            "uq_active_entry_per_user_slot",
            "event_id",
            "time_slot_id",
            "user_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
        Index("ix_queue_entries_slot_status_number", "time_slot_id", "status", "queue_number"),
    )
