"""Common shared schema types used across the API."""

from typing import Any, Optional

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response envelope (see socialfeed.errors)."""

    code: str
    message: str
    details: Optional[dict[str, Any]] = None


def error_response(description: str) -> dict[str, Any]:
    """OpenAPI `responses=` entry for a status rendered in the error envelope."""
    return {"model": ErrorResponse, "description": description}


# Statuses any /api/v1 route can return; routers attach these so the
# generated docs show the envelope instead of FastAPI's default 422 body
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: error_response("Invalid input (INVALID_RATING, BLANK_FIELD, INVALID_PAGINATION)"),
    404: error_response("Referenced user, post or comment does not exist"),
    422: error_response("Request validation failed (VALIDATION_ERROR)"),
    429: error_response("Rate limit exceeded (HTTP_429); see Retry-After"),
}
