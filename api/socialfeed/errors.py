"""Application error hierarchy and the FastAPI handlers that render it.

Every client-facing error carries a machine-readable `code` so clients can
branch on it without parsing English messages. Responses share one envelope:

    {"code": "...", "message": "...", "details": {...}}   # details optional

Anything that is not a SocialFeedError (storage failures, bugs) is logged
server-side and rendered as a generic 500.
"""
from __future__ import annotations

from typing import Any

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

log = structlog.get_logger(__name__)


class SocialFeedError(Exception):
    """Base class for all application-level errors."""

    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class InvalidRatingError(SocialFeedError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "INVALID_RATING"

    def __init__(self, value: float):
        super().__init__(
            message=f"Rating must be between 1 and 5, inclusive. Received {value}.",
            details={"rating": value},
        )


class SelfRatingError(SocialFeedError):
    http_status = status.HTTP_403_FORBIDDEN
    code = "SELF_RATING"

    def __init__(self, user_id: int):
        super().__init__(
            message="Users are not allowed to rate themselves.",
            details={"user_id": user_id},
        )


class BlankFieldError(SocialFeedError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "BLANK_FIELD"

    def __init__(self, field: str):
        super().__init__(message=f"{field} must not be blank.", details={"field": field})


class InvalidPaginationError(SocialFeedError):
    http_status = status.HTTP_400_BAD_REQUEST
    code = "INVALID_PAGINATION"

    def __init__(self, start: int, limit: int):
        super().__init__(
            message="start and limit must not be negative.",
            details={"start": start, "limit": limit},
        )


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

class UserNotFoundError(SocialFeedError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "USER_NOT_FOUND"

    def __init__(self, user_id: int):
        super().__init__(message=f"User {user_id} not found.", details={"user_id": user_id})


class PostNotFoundError(SocialFeedError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "POST_NOT_FOUND"

    def __init__(self, post_id: int):
        super().__init__(message=f"Post {post_id} not found.", details={"post_id": post_id})


class CommentNotFoundError(SocialFeedError):
    http_status = status.HTTP_404_NOT_FOUND
    code = "COMMENT_NOT_FOUND"

    def __init__(self, comment_id: int):
        super().__init__(
            message=f"Comment {comment_id} not found.",
            details={"comment_id": comment_id},
        )


class EmailAlreadyRegisteredError(SocialFeedError):
    http_status = status.HTTP_409_CONFLICT
    code = "EMAIL_ALREADY_REGISTERED"

    def __init__(self, email: str):
        super().__init__(message="Email already registered.", details={"email": email})


# ---------------------------------------------------------------------------
# Streaming reads
# ---------------------------------------------------------------------------

class IterationError(SocialFeedError):
    """A row source failed part-way through a streamed read."""

    code = "ITERATION_ERROR"

    def __init__(self, message: str):
        super().__init__(message=message)


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def socialfeed_exception_handler(request: Request, exc: SocialFeedError) -> JSONResponse:
    if exc.http_status >= 500:
        log.error("request_error", code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render framework HTTP errors (404 route, 405, 429 rate limit) in the common envelope."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": f"HTTP_{exc.status_code}", "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc not in ("body", "query")),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "unhandled_exception",
        error_type=type(exc).__name__,
        error=str(exc),
        exc_info=exc,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
