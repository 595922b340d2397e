# smartqueue/api/deps.py
from typing import Generator
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt

from smartqueue.core.config import settings
from smartqueue.db.session import SessionLocal
from smartqueue.schemas.token import TokenPayload
from smartqueue.services.admission_service import QueueAdmissionService
from smartqueue.services.companion_service import CompanionMatchingService
from smartqueue.services.dispatch_service import CallDispatcher
from smartqueue.services.event_service import EventService
from smartqueue.services.notification_service import (
    DatabaseNotificationDispatcher,
    NotificationDispatcher,
)
from smartqueue.services.ticket_verification import TicketVerifier


def get_db() -> Generator:
    """Dependency to get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# This tells FastAPI where to look for the token.
# The `tokenUrl` doesn't have to be a real endpoint in this service,
# it's just for the OpenAPI documentation.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="token")


def get_current_user(token: str = Depends(oauth2_scheme)) -> TokenPayload:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
        token_data = TokenPayload(**payload)
    except (JWTError, ValueError):
        # Catches any error from jose or Pydantic validation
        raise credentials_exception

    return token_data


def require_admin(current_user: TokenPayload = Depends(get_current_user)) -> TokenPayload:
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


# --- Services ---
# Collaborators are wired here so tests can swap them via dependency_overrides.

def get_notifier() -> NotificationDispatcher:
    return DatabaseNotificationDispatcher(SessionLocal)


def get_admission_service(
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> QueueAdmissionService:
    return QueueAdmissionService(notifier=notifier, ticket_verifier=TicketVerifier())


def get_companion_service(
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> CompanionMatchingService:
    return CompanionMatchingService(notifier=notifier)


def get_dispatcher(
    notifier: NotificationDispatcher = Depends(get_notifier),
) -> CallDispatcher:
    return CallDispatcher(notifier=notifier)


def get_event_service() -> EventService:
    return EventService()
