# smartqueue/api/v1/endpoints/queues.py
from typing import List
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from smartqueue.api import deps
from smartqueue.core.config import settings
from smartqueue.core.limiter import limiter
from smartqueue.schemas.companion import CompanionRequest as CompanionRequestSchema
from smartqueue.schemas.queue import QueueEntry as QueueEntrySchema, QueueJoinRequest
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.admission_service import QueueAdmissionService
from smartqueue.services.companion_service import CompanionMatchingService
from smartqueue.services.dispatch_service import CallDispatcher

router = APIRouter(tags=["Queues"])


@router.post("/queues", response_model=QueueEntrySchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.RATE_LIMIT_JOIN)
def join_queue(
    request: Request,  # Required for rate limiting
    join_in: QueueJoinRequest,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: QueueAdmissionService = Depends(deps.get_admission_service),
):
    """
    Join the line of an event time slot.

    **Errors**:
    - 404: Event or time slot not found
    - 409: Already registered, slot full/closed, or event not open
    - 403: Ticket not verified (when verification is required)
    """
    return service.join_queue(
        db,
        event_id=join_in.event_id,
        time_slot_id=join_in.time_slot_id,
        user_id=current_user.user_id,
    )


@router.get("/queues/me", response_model=List[QueueEntrySchema])
def list_my_queue_entries(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: QueueAdmissionService = Depends(deps.get_admission_service),
):
    """Waiting and called entries of the current user, newest first."""
    return service.list_active_entries(db, user_id=current_user.user_id)


@router.get("/queues/{queue_id}", response_model=QueueEntrySchema)
def get_queue_entry(
    queue_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: QueueAdmissionService = Depends(deps.get_admission_service),
):
    return service.get_entry(
        db, queue_id=queue_id, user_id=current_user.user_id, is_admin=current_user.is_admin
    )


@router.delete("/queues/{queue_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def cancel_queue_entry(
    request: Request,
    queue_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: QueueAdmissionService = Depends(deps.get_admission_service),
):
    """Cancel your queue entry; the queue number is never handed out again."""
    service.cancel_queue(
        db, queue_id=queue_id, user_id=current_user.user_id, is_admin=current_user.is_admin
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/queues/{queue_id}/enter", response_model=QueueEntrySchema)
def mark_entered(
    queue_id: str,
    db: Session = Depends(deps.get_db),
    admin: TokenPayload = Depends(deps.require_admin),
    dispatcher: CallDispatcher = Depends(deps.get_dispatcher),
):
    """Confirm that a called person went in (admin only)."""
    return dispatcher.mark_entered(db, queue_id=queue_id)


@router.get(
    "/queues/{queue_id}/companionRequests/matchable",
    response_model=List[CompanionRequestSchema],
)
def list_matchable_requests(
    queue_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """Pending companion requests this entry could accept."""
    return service.list_matchable_requests(db, queue_id=queue_id, user_id=current_user.user_id)
