# smartqueue/api/v1/endpoints/events.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from smartqueue.api import deps
from smartqueue.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventStatus,
    EventUpdate,
    EventWithTimeSlots,
    TimeSlot as TimeSlotSchema,
)
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.event_service import EventService

router = APIRouter(tags=["Events"])


@router.post("/events", response_model=EventWithTimeSlots, status_code=status.HTTP_201_CREATED)
def create_event(
    event_in: EventCreate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    service: EventService = Depends(deps.get_event_service),
):
    """Creates an event together with its time slots (admin only)."""
    return service.create_event(db, event_in=event_in, created_by=admin.user_id)


@router.get("/events", response_model=List[EventSchema])
def list_events(
    status_filter: Optional[EventStatus] = Query(None, alias="status"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=100),
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: EventService = Depends(deps.get_event_service),
):
    status_value = status_filter.value if status_filter else None
    return service.list_events(db, status=status_value, skip=skip, limit=limit)


@router.get("/events/{event_id}", response_model=EventWithTimeSlots)
def get_event(
    event_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: EventService = Depends(deps.get_event_service),
):
    return service.get_event(db, event_id=event_id)


@router.patch("/events/{event_id}", response_model=EventSchema)
def update_event(
    event_id: str,
    event_in: EventUpdate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    service: EventService = Depends(deps.get_event_service),
):
    """Partially update an event. Once people have queued only status and capacity may change."""
    return service.update_event(db, event_id=event_id, event_in=event_in)


@router.get("/events/{event_id}/timeSlots", response_model=List[TimeSlotSchema])
def list_event_time_slots(
    event_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: EventService = Depends(deps.get_event_service),
):
    return service.list_time_slots(db, event_id=event_id)
