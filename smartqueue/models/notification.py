# smartqueue/models/notification.py
import uuid

from sqlalchemy import Boolean, Column, DateTime, JSON, String

from smartqueue.db.base_class import Base
from smartqueue.utils.timezone import utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True, default=lambda: f"ntf_{uuid.uuid4().hex[:12]}")
    user_id = Column(String, nullable=False, index=True)
    kind = Column(String(50), nullable=False)  # queue_joined, queue_call, companion_matched, companion_withdrawn
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    payload = Column(JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    read_at = Column(DateTime(timezone=True), nullable=True)
