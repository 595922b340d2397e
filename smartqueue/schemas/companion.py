# smartqueue/schemas/companion.py
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CompanionRequestCreate(BaseModel):
    queue_id: str = Field(..., alias="queueId")
    offered_price: int = Field(..., alias="offeredPrice", json_schema_extra={"example": 15000})

    model_config = {"populate_by_name": True}


class CompanionPriceUpdate(BaseModel):
    offered_price: int = Field(..., alias="offeredPrice")

    model_config = {"populate_by_name": True}


class CompanionAccept(BaseModel):
    companion_queue_id: str = Field(..., alias="companionQueueId")

    model_config = {"populate_by_name": True}


class CompanionRequest(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "creq_5d6e7f8a9b0c"})
    user_id: str
    queue_id: str
    event_id: str
    time_slot_id: str
    original_queue_number: int
    offered_price: int
    search_range: int
    status: str
    companion_id: Optional[str] = None
    linked_queue_number: Optional[int] = None
    matched_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class Companion(BaseModel):
    id: str
    user_id: str
    request_id: str
    queue_id: str
    original_queue_number: int
    status: str
    earned_amount: int
    created_at: datetime

    model_config = {"from_attributes": True}


class WithdrawalResult(BaseModel):
    request_id: str
    role: str  # requester or companion
    fee: int
