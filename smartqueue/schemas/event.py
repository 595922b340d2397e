# smartqueue/schemas/event.py
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class EventStatus(str, Enum):
    upcoming = "upcoming"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class TimeSlotStatus(str, Enum):
    available = "available"
    full = "full"
    closed = "closed"


class TimeSlotCreate(BaseModel):
    start_time: str = Field(..., alias="startTime", json_schema_extra={"example": "10:00"})
    end_time: str = Field(..., alias="endTime", json_schema_extra={"example": "10:30"})
    max_capacity: int = Field(..., alias="maxCapacity", ge=0)

    model_config = {"populate_by_name": True}

    @field_validator("start_time", "end_time")
    @classmethod
    def check_hh_mm(cls, value: str) -> str:
        hours, sep, minutes = value.partition(":")
        if not sep or not (hours.isdigit() and minutes.isdigit()) or len(minutes) != 2:
            raise ValueError("time must use the HH:MM format")
        if not (0 <= int(hours) < 24 and 0 <= int(minutes) < 60):
            raise ValueError("time must use the HH:MM format")
        return f"{int(hours):02d}:{minutes}"


class TimeSlotUpdate(BaseModel):
    max_capacity: Optional[int] = Field(None, alias="maxCapacity", ge=0)
    status: Optional[TimeSlotStatus] = None

    model_config = {"populate_by_name": True}


class TimeSlot(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "slot_c5a6d8e0f9b1"})
    event_id: str
    start_time: str
    end_time: str
    max_capacity: int
    current_count: int
    status: TimeSlotStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class TimeSlotSummary(BaseModel):
    time_slot_id: str
    current_count: int
    available_count: int
    is_full: bool
    is_closed: bool


class EventCreate(BaseModel):
    name: str = Field(..., json_schema_extra={"example": "Fan Meeting 2025"})
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    capacity: int = Field(0, ge=0)
    time_slots: List[TimeSlotCreate] = Field(default_factory=list, alias="timeSlots")

    model_config = {"populate_by_name": True}


class EventUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=0)
    status: Optional[EventStatus] = None


class Event(BaseModel):
    id: str = Field(..., json_schema_extra={"example": "evt_c5a6d8e0f9b1"})
    name: str
    description: Optional[str] = None
    date: datetime
    location: Optional[str] = None
    capacity: int
    status: EventStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class EventWithTimeSlots(Event):
    time_slots: List[TimeSlot] = []
