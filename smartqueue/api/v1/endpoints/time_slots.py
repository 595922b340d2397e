# smartqueue/api/v1/endpoints/time_slots.py
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from smartqueue.api import deps
from smartqueue.schemas.event import TimeSlot as TimeSlotSchema, TimeSlotSummary, TimeSlotUpdate
from smartqueue.schemas.queue import QueueEntry as QueueEntrySchema, QueueSummary
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.dispatch_service import CallDispatcher
from smartqueue.services.event_service import EventService

router = APIRouter(tags=["Time Slots"])


@router.post(
    "/timeSlots/{time_slot_id}/callNext",
    response_model=QueueEntrySchema,
    responses={204: {"description": "Nobody is waiting"}},
)
def call_next_person(
    time_slot_id: str,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    dispatcher: CallDispatcher = Depends(deps.get_dispatcher),
):
    """Call the next waiting person of the slot (admin only)."""
    entry = dispatcher.call_next(db, time_slot_id=time_slot_id)
    if entry is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return entry


@router.patch("/timeSlots/{time_slot_id}", response_model=TimeSlotSchema)
def update_time_slot(
    time_slot_id: str,
    slot_in: TimeSlotUpdate,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    service: EventService = Depends(deps.get_event_service),
):
    """Change capacity, or close/reopen the slot (admin only)."""
    return service.update_time_slot(db, time_slot_id=time_slot_id, slot_in=slot_in)


@router.get("/timeSlots/{time_slot_id}/summary", response_model=TimeSlotSummary)
def get_time_slot_summary(
    time_slot_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: EventService = Depends(deps.get_event_service),
):
    return service.slot_summary(db, time_slot_id=time_slot_id)


@router.get("/timeSlots/{time_slot_id}/queue", response_model=List[QueueEntrySchema])
def list_time_slot_queue(
    time_slot_id: str,
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    service: EventService = Depends(deps.get_event_service),
):
    """All entries of the slot ordered by queue number (admin only)."""
    return service.list_slot_queue(db, time_slot_id=time_slot_id, status=status_filter)


@router.get("/timeSlots/{time_slot_id}/queueSummary", response_model=QueueSummary)
def get_queue_summary(
    time_slot_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: EventService = Depends(deps.get_event_service),
):
    return service.queue_summary(db, time_slot_id=time_slot_id)
