"""Application errors and the middleware that renders them as JSON.

Services raise the APIError subclasses below; the middleware turns them
into the common error body (error, message, details, request_id,
timestamp). Anything else becomes a masked 500.
"""

import logging
import time
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """An error whose message is safe to show to the user.

    Subclasses pin ``status_code`` and ``error_type``; the message is
    what the client displays.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"
    default_message: str = "Something went wrong"

    def __init__(
        self,
        message: str | None = None,
        details: list[dict[str, Any]] | None = None,
        *,
        status_code: int | None = None,
        error_type: str | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.details = details
        if status_code is not None:
            self.status_code = status_code
        if error_type is not None:
            self.error_type = error_type
        super().__init__(self.message)

    def headers(self) -> dict[str, str]:
        return {}


class NotFoundError(APIError):
    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"
    default_message = "Not found"


class ValidationError(APIError):
    """Form input the user has to correct."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    error_type = "validation_error"
    default_message = "Please check the form and try again"


class AuthorizationError(APIError):
    """The user is signed in but may not act on this row."""

    status_code = status.HTTP_403_FORBIDDEN
    error_type = "authorization_error"
    default_message = "You do not have access to this"


class BackendError(APIError):
    """Supabase rejected a write or a storage upload.

    Carries the backend's own message so the client can show it as is.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "backend_error"
    default_message = "The request could not be completed"


class RateLimitError(APIError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    error_type = "rate_limit_exceeded"
    default_message = "Too many requests. Please slow down."

    def __init__(
        self,
        message: str | None = None,
        retry_after: int = 60,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after = retry_after

    def headers(self) -> dict[str, str]:
        return {
            "Retry-After": str(self.retry_after),
            "X-RateLimit-Reset": str(int(time.time()) + self.retry_after),
        }


def backend_error_message(exc: Exception) -> str:
    """Message of a PostgREST or storage error, falling back to str(exc)."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


def backend_error_code(exc: Exception) -> str | None:
    """Postgres SQLSTATE of a PostgREST error, such as 23505."""
    code = getattr(exc, "code", None)
    return None if code is None else str(code)


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Render application errors raised by routes and dependencies."""
    request_id = request.headers.get("X-Request-ID")

    try:
        return await call_next(request)
    except APIError as e:
        logger.warning(
            "%s %s -> %s: %s",
            request.method,
            request.url.path,
            e.error_type,
            e.message,
            extra={"request_id": request_id, "status_code": e.status_code},
        )
        return create_error_response(
            error_type=e.error_type,
            message=e.message,
            status_code=e.status_code,
            details=e.details,
            request_id=request_id,
            headers=e.headers(),
        )
    except HTTPException as e:
        logger.warning("%s %s -> HTTP %s: %s", request.method, request.url.path, e.status_code, e.detail)
        return create_error_response(
            error_type="http_error",
            message=str(e.detail),
            status_code=e.status_code,
            request_id=request_id,
        )
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path, extra={"request_id": request_id})
        return create_error_response(
            error_type="internal_error",
            message="An unexpected error occurred",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
