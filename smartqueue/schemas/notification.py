# smartqueue/schemas/notification.py
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel


class Notification(BaseModel):
    id: str
    user_id: str
    kind: str
    title: str
    message: str
    payload: Optional[Dict[str, Any]] = None
    is_read: bool
    created_at: datetime
    read_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnreadCount(BaseModel):
    unread: int
