# smartqueue/api/v1/endpoints/companion_requests.py
from typing import List
from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.orm import Session

from smartqueue.api import deps
from smartqueue.core.config import settings
from smartqueue.core.limiter import limiter
from smartqueue.schemas.companion import (
    Companion as CompanionSchema,
    CompanionAccept,
    CompanionPriceUpdate,
    CompanionRequest as CompanionRequestSchema,
    CompanionRequestCreate,
    WithdrawalResult,
)
from smartqueue.schemas.queue import QueueEntry as QueueEntrySchema
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.companion_service import CompanionMatchingService

router = APIRouter(tags=["Companions"])


@router.post(
    "/companionRequests",
    response_model=CompanionRequestSchema,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def create_companion_request(
    request: Request,
    request_in: CompanionRequestCreate,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """
    Offer a price for someone nearby in the same time slot to go in with you.

    **Errors**:
    - 400: Offered price below the minimum
    - 403: Queue entry belongs to someone else
    - 409: An open request already exists, or the entry is already paired
    """
    return service.create_request(
        db,
        user_id=current_user.user_id,
        queue_id=request_in.queue_id,
        offered_price=request_in.offered_price,
    )


@router.get("/companionRequests/me", response_model=List[CompanionRequestSchema])
def list_my_companion_requests(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    return service.list_user_requests(db, user_id=current_user.user_id)


@router.get("/companionRequests/{request_id}", response_model=CompanionRequestSchema)
def get_companion_request(
    request_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """Visible to the requester, the matched companion and admins."""
    return service.get_visible_request(
        db, request_id=request_id, user_id=current_user.user_id, is_admin=current_user.is_admin
    )


@router.get("/companionRequests/{request_id}/candidates", response_model=List[QueueEntrySchema])
def list_candidates(
    request_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """Waiting entries inside the request's current search range."""
    return service.find_candidates(
        db, request_id=request_id, user_id=current_user.user_id, is_admin=current_user.is_admin
    )


@router.post("/companionRequests/{request_id}/accept", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def accept_companion_request(
    request: Request,
    request_id: str,
    accept_in: CompanionAccept,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """
    Accept a pending request with your own queue entry. Both entries move to
    the larger of the two queue numbers.

    **Errors**:
    - 409: Request already processed, different time slot, or entry already paired
    """
    service.accept_request(
        db,
        request_id=request_id,
        companion_user_id=current_user.user_id,
        companion_queue_id=accept_in.companion_queue_id,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/companionRequests/{request_id}/cancel", response_model=CompanionRequestSchema)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def cancel_companion_request(
    request: Request,
    request_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    return service.cancel_request(db, request_id=request_id, user_id=current_user.user_id)


@router.patch("/companionRequests/{request_id}/price", response_model=CompanionRequestSchema)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def update_companion_request_price(
    request: Request,
    request_id: str,
    price_in: CompanionPriceUpdate,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    return service.update_price(
        db,
        request_id=request_id,
        user_id=current_user.user_id,
        offered_price=price_in.offered_price,
    )


@router.post("/companionRequests/{request_id}/withdraw", response_model=WithdrawalResult)
@limiter.limit(settings.RATE_LIMIT_MUTATION)
def withdraw_companion_service(
    request: Request,
    request_id: str,
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    """End a matched pairing as either side. The response carries the withdrawal fee."""
    return service.withdraw_from_request(db, request_id=request_id, user_id=current_user.user_id)


@router.get("/companions/me", response_model=List[CompanionSchema])
def list_my_companion_activities(
    db: Session = Depends(deps.get_db),
    current_user: TokenPayload = Depends(deps.get_current_user),
    service: CompanionMatchingService = Depends(deps.get_companion_service),
):
    return service.list_user_companions(db, user_id=current_user.user_id)
