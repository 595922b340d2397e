# smartqueue/core/error_handlers.py
"""
Exception handlers that turn service errors into structured JSON responses.

Response envelope:
    {"error": {"category", "code", "message", "timestamp", "path", ...details}}
"""

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from smartqueue.core.exceptions import (
    ErrorCategory,
    QueueServiceError,
    TransientError,
)

logger = logging.getLogger(__name__)


def _error_body(request: Request, category: str, code: str, message: str, **extra) -> dict:
    return {
        "error": {
            "category": category,
            "code": code,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "path": request.url.path,
            **extra,
        }
    }


async def queue_service_error_handler(request: Request, error: QueueServiceError) -> JSONResponse:
    """Handle structured service errors"""
    log = logger.error if isinstance(error, TransientError) else logger.info
    log(
        f"Request rejected: {error.error_code}",
        extra={
            "category": error.category,
            "error_code": error.error_code,
            "path": request.url.path,
            "method": request.method,
            "details": error.details,
        },
    )

    headers = {}
    if isinstance(error, TransientError):
        headers["Retry-After"] = str(error.retry_after)

    return JSONResponse(
        status_code=error.status_code,
        content=_error_body(
            request, error.category, error.error_code, error.message, **error.details
        ),
        headers=headers,
    )


async def validation_error_handler(request: Request, error: RequestValidationError) -> JSONResponse:
    """Handle FastAPI request validation errors"""
    errors = [
        {
            "field": ".".join(str(loc) for loc in err["loc"]),
            "message": err["msg"],
            "type": err["type"],
        }
        for err in error.errors()
    ]

    logger.warning(
        f"Validation error on {request.url.path}",
        extra={"errors": errors, "method": request.method},
    )

    return JSONResponse(
        status_code=400,
        content=_error_body(
            request,
            ErrorCategory.VALIDATION,
            "REQUEST_VALIDATION_ERROR",
            "Request validation failed",
            validation_errors=errors,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QueueServiceError, queue_service_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
