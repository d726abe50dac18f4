"""
Error taxonomy and exception handlers.

Every failure a service can produce is one of the classes below. They are
``HTTPException`` subclasses, so services raise them directly and FastAPI
maps them to a stable status code; the handlers render the envelope used
across the API:

    {"error": {"code": "NOT_FOUND", "message": "Channel not found", "status": 404}}
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

log = structlog.get_logger()


class AppError(HTTPException):
    """Base class for typed service failures."""

    status_code_default = 500
    code = "INTERNAL"
    message_default = "Internal server error"

    def __init__(self, message: str | None = None, *, headers: dict | None = None):
        super().__init__(
            status_code=self.status_code_default,
            detail=message or self.message_default,
            headers=headers,
        )

    @property
    def message(self) -> str:
        return self.detail


class ValidationError(AppError):
    """Malformed or missing input."""
    status_code_default = 400
    code = "VALIDATION_ERROR"
    message_default = "Invalid input"


class InvalidReference(AppError):
    """An identifier that does not have the store's id shape."""
    status_code_default = 400
    code = "INVALID_REFERENCE"
    message_default = "Invalid identifier"


class InvalidOperation(AppError):
    status_code_default = 400
    code = "INVALID_OPERATION"
    message_default = "Operation not allowed"


class Unauthorized(AppError):
    status_code_default = 401
    code = "UNAUTHORIZED"
    message_default = "Unauthorized"


class Forbidden(AppError):
    status_code_default = 403
    code = "FORBIDDEN"
    message_default = "Forbidden"


class NotFound(AppError):
    status_code_default = 404
    code = "NOT_FOUND"
    message_default = "Not found"


class Conflict(AppError):
    status_code_default = 409
    code = "CONFLICT"
    message_default = "Conflict"


class InternalError(AppError):
    pass


class ServiceUnavailable(AppError):
    """A dependency (database, Redis, asset host) is not answering."""
    status_code_default = 503
    code = "SERVICE_UNAVAILABLE"
    message_default = "Service unavailable"


def error_body(code: str, message: str, status: int) -> dict:
    return {"error": {"code": code, "message": message, "status": status}}


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error("request.internal_error", path=request.url.path, detail=exc.detail)
        message = exc.message_default
    else:
        message = exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.code, message, exc.status_code),
        headers=exc.headers,
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("request.unhandled_error", path=request.url.path, error=type(exc).__name__)
    return JSONResponse(
        status_code=500,
        content=error_body(InternalError.code, InternalError.message_default, 500),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error envelope handlers to an application."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
