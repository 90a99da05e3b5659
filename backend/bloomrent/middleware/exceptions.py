"""Error envelope and exception handlers.

Every error response has the same shape::

    {"error": {"code": "RESOURCE_NOT_FOUND", "message": "...", "details": {...}}}

Wizard and invitation services report user-correctable problems as
``ActionResult`` values. The exceptions below are raised by the
data-access layer and the read-only views; the handlers turn them, along
with framework and database errors, into the envelope.
"""

import logging
from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bloomrent.config import settings

logger = logging.getLogger(__name__)


class BloomRentException(Exception):
    """Base class for errors with a user-facing message."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BAD_REQUEST"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        if error_code:
            self.error_code = error_code


class BusinessLogicError(BloomRentException):
    """A write the current state does not allow (occupied unit, locked branch)."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_code = "BUSINESS_LOGIC_ERROR"


class ResourceNotFoundError(BloomRentException):
    """Missing row, or a row owned by someone else.

    ``message`` replaces the generic "<resource> not found: <id>" text.
    """

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "RESOURCE_NOT_FOUND"

    def __init__(self, resource: str, identifier: str, message: str | None = None):
        super().__init__(message or f"{resource} not found: {identifier}")
        self.resource = resource
        self.identifier = identifier


class PermissionDeniedError(BloomRentException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "PERMISSION_DENIED"

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message)


# ── Envelope ────────────────────────────────────────────────

def error_response(
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message, "details": details or {}}},
        headers=headers,
    )


def _where(request: Request) -> dict[str, str]:
    return {"path": request.url.path, "method": request.method}


# ── Handlers ────────────────────────────────────────────────

async def bloomrent_exception_handler(request: Request, exc: BloomRentException) -> JSONResponse:
    logger.warning(f"{exc.error_code} on {request.url.path}: {exc.message}", extra=_where(request))
    return error_response(exc.status_code, exc.error_code, exc.message)


async def http_exception_handler(
    request: Request, exc: HTTPException | StarletteHTTPException
) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url.path}: {exc.detail}", extra=_where(request))
    return error_response(
        exc.status_code,
        f"HTTP_{exc.status_code}",
        str(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError | ValidationError
) -> JSONResponse:
    """Request body/query failed validation: one entry per field."""
    errors = [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    logger.warning(
        f"Validation error on {request.url.path}: {[e['field'] for e in errors]}",
        extra=_where(request),
    )
    return error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Validation error",
        {"errors": errors},
    )


# Substring of the driver message -> (code, message)
_INTEGRITY_MESSAGES = (
    ("unique", "DUPLICATE_RECORD", "A record with this value already exists"),
    ("foreign key", "FOREIGN_KEY_VIOLATION", "Referenced record does not exist"),
    ("not null", "NULL_VALUE_NOT_ALLOWED", "Required field is missing"),
)


async def integrity_exception_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    driver_message = str(getattr(exc, "orig", exc)).lower()
    logger.error(f"Integrity error on {request.url.path}: {driver_message}", extra=_where(request))

    for needle, code, message in _INTEGRITY_MESSAGES:
        if needle in driver_message:
            return error_response(status.HTTP_409_CONFLICT, code, message)
    return error_response(
        status.HTTP_409_CONFLICT, "INTEGRITY_ERROR", "Database constraint violation"
    )


async def operational_exception_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}", extra=_where(request))
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "DATABASE_UNAVAILABLE",
        "Database temporarily unavailable. Please try again.",
        {"retryable": True},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: a generic, retryable error with a support contact.

    The traceback goes to the log only.
    """
    logger.error(f"Unhandled exception on {request.url.path}: {exc!r}", extra=_where(request), exc_info=exc)
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "Something went wrong. Please try again later.",
        {"retryable": True, "support_email": settings.support_email},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(BloomRentException, bloomrent_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(IntegrityError, integrity_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
