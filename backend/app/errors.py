"""
Application error taxonomy and FastAPI exception handlers.

Every failure that reaches a client is rendered as ``{"error": <message>}``
(plus optional extra keys). Internal details are logged, never returned,
outside of development.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import sanitize_error

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================


class AppError(Exception):
    """Base class for errors with a client-safe message and HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "An internal error occurred."

    def __init__(self, message: str | None = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)


class ClientInputError(AppError):
    """A required field is missing or a request value is unusable."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class FolderLimitReached(AppError):
    """The user already owns the maximum number of folders."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Maximum folder limit reached"


class ProviderUnavailable(AppError):
    """A generative or speech provider has no credentials configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Provider not configured"


class ProviderTransportError(AppError):
    """The provider could not be reached or answered with an error status."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "The AI provider request failed"

    def __init__(
        self,
        message: str | None = None,
        *,
        provider_status: int | None = None,
        provider_message: str | None = None,
        **extra: Any,
    ):
        self.provider_status = provider_status
        self.provider_message = provider_message
        super().__init__(message, **extra)


class MalformedGenerativeOutput(AppError):
    """The model's response does not match the required schema."""

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to generate response correctly."


# =============================================================================
# HANDLERS
# =============================================================================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError as ``{"error": ...}`` with its status code."""
    if exc.status_code >= 500:
        logger.warning(
            "%s on %s %s: %s",
            type(exc).__name__,
            request.method,
            request.url.path,
            exc.message,
        )
    payload: dict[str, Any] = {"error": exc.message}
    payload.update(exc.extra)
    return JSONResponse(status_code=exc.status_code, content=payload)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (401, 404, ...) in the same `{"error"}` shape."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def _field_name(loc: tuple) -> str:
    """Turn a pydantic error location into the client-facing field name."""
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return ".".join(parts) or "body"


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Convert request validation failures into a 400 naming the offending fields.

    Missing fields are reported separately so clients can tell
    "you forgot userAnswer" apart from "userAnswer has the wrong type".
    """
    missing: list[str] = []
    invalid: list[str] = []
    for error in exc.errors():
        name = _field_name(tuple(error.get("loc", ())))
        if error.get("type") in ("missing", "string_too_short"):
            missing.append(name)
        else:
            invalid.append(name)

    if missing:
        message = f"Missing required fields: {', '.join(missing)}"
    else:
        message = f"Invalid fields: {', '.join(invalid)}"

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": message, "fields": missing + invalid},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Final safety net: log the traceback, return a generic 500."""
    logger.exception(
        "Unhandled exception during request: %s %s",
        request.method,
        request.url.path,
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": sanitize_error(exc, generic_message="Internal server error")},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all handlers to the application."""
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
