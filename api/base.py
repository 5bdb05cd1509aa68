"""Response envelope shared by every endpoint, plus the error code vocabulary."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.civil_dates import now_utc


class APIError(BaseModel):
    code: str = Field(..., description="One of ErrorCodes")
    message: str = Field(..., description="Shown to the operator as-is")


class APIMeta(BaseModel):
    """Bookkeeping attached to every envelope."""

    timestamp: datetime = Field(..., description="When the response was built (UTC)")
    request_id: str = Field(..., description="Matches the X-Request-ID response header")
    warnings: list[str] = Field(
        default_factory=list,
        description="Follow-up steps that failed after the main write succeeded",
    )


class APIResponse(BaseModel):
    """
    {success, data, error, meta}: the only shape the view host has to parse.

    Exactly one of data/error is meaningful, chosen by success.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None, warnings: list[str] | None = None) -> APIMeta:
    return APIMeta(
        timestamp=now_utc(),
        request_id=request_id or str(uuid4()),
        warnings=list(warnings or ()),
    )


def success_response(
    data: Any,
    warnings: list[str] | None = None,
    request_id: str | None = None,
) -> APIResponse:
    """Wrap data; warnings end up in a banner above the page."""
    return APIResponse(success=True, data=data, meta=_meta(request_id, warnings))


def error_response(code: str, message: str, request_id: str | None = None) -> APIResponse:
    return APIResponse(
        success=False,
        error=APIError(code=code, message=message),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """Machine-readable codes carried in APIError.code."""

    NOT_FOUND = "NOT_FOUND"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Job status moves outside the lifecycle graph
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"

    # Store or gateway outage
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
