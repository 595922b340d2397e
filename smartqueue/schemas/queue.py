# smartqueue/schemas/queue.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class QueueJoinRequest(BaseModel):
    event_id: str = Field(..., alias="eventId")
    time_slot_id: str = Field(..., alias="timeSlotId")

    model_config = {"populate_by_name": True}


class QueueEntry(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "que_0a1b2c3d4e5f"})
    event_id: str
    time_slot_id: str
    user_id: str
    queue_number: int
    original_queue_number: int
    status: str
    estimated_wait_time: Optional[int] = None
    is_companion_service: bool = False
    companion_type: Optional[str] = None
    display_label: Optional[str] = None
    linked_queue_number: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    called_at: Optional[datetime] = None
    entered_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class QueueSummary(BaseModel):
    event_id: str
    time_slot_id: str
    total_count: int
    waiting_count: int
    called_count: int
    entered_count: int
    cancelled_count: int
    estimated_wait_time: int  # minutes
