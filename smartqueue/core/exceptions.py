# smartqueue/core/exceptions.py
"""
Custom exception hierarchy for the SmartQueue service.

Every error raised by the admission, matching and dispatch services inherits
from QueueServiceError. The five families tell callers what to do next:

- ValidationError: the input was invalid, correct it and retry.
- ConflictError: someone else already changed the state, refresh.
- NotFoundError: the referenced document does not exist.
- PermissionDeniedError: acting on somebody else's data.
- TransientError: contention or store unavailability, retry later.
"""

from typing import Optional


class ErrorCategory:
    """Error categories used in structured error responses"""
    VALIDATION = "validation_error"
    CONFLICT = "conflict_error"
    NOT_FOUND = "not_found_error"
    PERMISSION = "permission_error"
    TRANSIENT = "transient_error"


class QueueServiceError(Exception):
    """Base exception for all SmartQueue service errors."""

    category = ErrorCategory.CONFLICT
    status_code = 409

    def __init__(
        self,
        message: str,
        error_code: str = "QUEUE_SERVICE_ERROR",
        details: Optional[dict] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


# ===========================================
# Validation Errors
# ===========================================


class ValidationError(QueueServiceError):
    """Input rejected before any mutation."""

    category = ErrorCategory.VALIDATION
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, **kwargs):
        kwargs.setdefault("error_code", "VALIDATION_ERROR")
        details = kwargs.pop("details", None) or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


class InvalidPriceError(ValidationError):
    """Offered price is below the allowed minimum."""

    def __init__(self, price: int, minimum: int):
        super().__init__(
            message=f"Offered price {price} is below the minimum of {minimum}",
            field="offered_price",
            error_code="INVALID_PRICE",
            details={"offered_price": price, "minimum": minimum},
        )


class SelfMatchError(ValidationError):
    """A user tried to accept their own companion request."""

    def __init__(self, request_id: str):
        super().__init__(
            message="You cannot accept your own companion request",
            error_code="SELF_MATCH",
            details={"request_id": request_id},
        )


# ===========================================
# Conflict Errors
# ===========================================


class ConflictError(QueueServiceError):
    """The operation lost against the current state of the store."""

    category = ErrorCategory.CONFLICT
    status_code = 409


class DuplicateEntryError(ConflictError):
    """User already holds a non-cancelled entry for this time slot."""

    def __init__(self, user_id: str, time_slot_id: str):
        super().__init__(
            message=f"User {user_id} is already registered for time slot {time_slot_id}",
            error_code="DUPLICATE_ENTRY",
            details={"user_id": user_id, "time_slot_id": time_slot_id},
        )


class SlotFullError(ConflictError):
    """The time slot cannot admit anybody else."""

    def __init__(self, time_slot_id: str, reason: str = "full"):
        super().__init__(
            message=f"Time slot {time_slot_id} is not accepting entries ({reason})",
            error_code="SLOT_FULL",
            details={"time_slot_id": time_slot_id, "reason": reason},
        )


class EventNotOpenError(ConflictError):
    """The event no longer (or not yet) accepts queue entries."""

    def __init__(self, event_id: str, status: str):
        super().__init__(
            message=f"Event {event_id} is {status} and does not accept queue entries",
            error_code="EVENT_NOT_OPEN",
            details={"event_id": event_id, "status": status},
        )


class AlreadyCancelledError(ConflictError):
    def __init__(self, queue_id: str):
        super().__init__(
            message=f"Queue entry {queue_id} is already cancelled",
            error_code="ALREADY_CANCELLED",
            details={"queue_id": queue_id},
        )


class InvalidStatusTransitionError(ConflictError):
    def __init__(self, entity: str, entity_id: str, current: str, target: str):
        super().__init__(
            message=f"Cannot move {entity} {entity_id} from {current} to {target}",
            error_code="INVALID_STATUS_TRANSITION",
            details={
                "entity": entity,
                "id": entity_id,
                "current_status": current,
                "target_status": target,
            },
        )


class AlreadyProcessedError(ConflictError):
    """Companion request was already matched, cancelled or withdrawn."""

    def __init__(self, request_id: str, status: str):
        super().__init__(
            message=f"Companion request {request_id} was already processed (status: {status})",
            error_code="ALREADY_PROCESSED",
            details={"request_id": request_id, "status": status},
        )


class DuplicateCompanionRequestError(ConflictError):
    def __init__(self, queue_id: str, existing_request_id: str):
        super().__init__(
            message=f"Queue entry {queue_id} already has an open companion request",
            error_code="DUPLICATE_COMPANION_REQUEST",
            details={"queue_id": queue_id, "request_id": existing_request_id},
        )


class CrossSlotMatchError(ConflictError):
    """Requester and companion are queued in different time slots."""

    def __init__(self, request_id: str, companion_queue_id: str):
        super().__init__(
            message="Requester and companion must be queued in the same event time slot",
            error_code="CROSS_SLOT_MATCH",
            details={"request_id": request_id, "companion_queue_id": companion_queue_id},
        )


class AlreadyLinkedError(ConflictError):
    """The queue entry is already part of a companion pairing."""

    def __init__(self, queue_id: str):
        super().__init__(
            message=f"Queue entry {queue_id} is already linked to a companion pairing",
            error_code="ALREADY_LINKED",
            details={"queue_id": queue_id},
        )


# ===========================================
# Not Found Errors
# ===========================================


class NotFoundError(QueueServiceError):
    category = ErrorCategory.NOT_FOUND
    status_code = 404

    def __init__(
        self,
        resource: str,
        resource_id: str,
        error_code: str = "NOT_FOUND",
        message: Optional[str] = None,
    ):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(
            message=message or f"{resource} {resource_id} not found",
            error_code=error_code,
            details={"resource": resource, "id": resource_id},
        )


class EventNotFoundError(NotFoundError):
    def __init__(self, event_id: str):
        super().__init__("Event", event_id, error_code="EVENT_NOT_FOUND")


class SlotNotFoundError(NotFoundError):
    def __init__(self, time_slot_id: str):
        super().__init__("Time slot", time_slot_id, error_code="SLOT_NOT_FOUND")


class QueueEntryNotFoundError(NotFoundError):
    def __init__(self, queue_id: str):
        super().__init__("Queue entry", queue_id, error_code="QUEUE_ENTRY_NOT_FOUND")


class CompanionRequestNotFoundError(NotFoundError):
    def __init__(self, request_id: str):
        super().__init__("Companion request", request_id, error_code="COMPANION_REQUEST_NOT_FOUND")


class NotificationNotFoundError(NotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id, error_code="NOTIFICATION_NOT_FOUND")


class NothingToWithdrawError(NotFoundError):
    """No matched companion relationship exists for the caller's queue entry."""

    def __init__(self, user_id: str, queue_id: str):
        super().__init__(
            "Companion relationship",
            queue_id,
            error_code="NOTHING_TO_WITHDRAW",
            message=f"No active companion relationship for user {user_id} on queue entry {queue_id}",
        )
        self.details["user_id"] = user_id


# ===========================================
# Permission Errors
# ===========================================


class PermissionDeniedError(QueueServiceError):
    """Caller acted on an entry or request owned by someone else."""

    category = ErrorCategory.PERMISSION
    status_code = 403

    def __init__(self, message: str = "Not authorized", **kwargs):
        kwargs.setdefault("error_code", "PERMISSION_DENIED")
        super().__init__(message, **kwargs)


class TicketNotVerifiedError(PermissionDeniedError):
    def __init__(self, user_id: str, event_id: str):
        super().__init__(
            message=f"User {user_id} has no verified ticket for event {event_id}",
            error_code="TICKET_NOT_VERIFIED",
            details={"user_id": user_id, "event_id": event_id},
        )


# ===========================================
# Transient Errors
# ===========================================


class TransientError(QueueServiceError):
    """Transaction contention or store unavailability; safe to retry."""

    category = ErrorCategory.TRANSIENT
    status_code = 503

    def __init__(self, message: str, retry_after: int = 1, **kwargs):
        self.retry_after = retry_after
        kwargs.setdefault("error_code", "TRANSIENT_ERROR")
        super().__init__(message, **kwargs)
