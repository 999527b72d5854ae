"""Unified API response envelope and error codes."""

from typing import Any
from datetime import datetime
from uuid import uuid4

from pydantic import BaseModel, Field

from utils.timezone import now_utc


class APIError(BaseModel):
    """Error details in API response."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    field: str | None = Field(None, description="Offending input, for validation errors")


class APIMeta(BaseModel):
    """Metadata included in every API response."""

    timestamp: datetime = Field(..., description="Response timestamp (UTC)")
    request_id: str = Field(..., description="Request identifier for tracing")


class APIResponse(BaseModel):
    """
    Envelope for every JSON endpoint: {success, data, error, meta}.

    Document endpoints (HTML, PDF) return their content directly on
    success and this envelope on failure.
    """

    success: bool
    data: Any | None = None
    error: APIError | None = None
    meta: APIMeta


def _meta(request_id: str | None) -> APIMeta:
    return APIMeta(timestamp=now_utc(), request_id=request_id or str(uuid4()))


def success_response(data: Any, request_id: str | None = None) -> APIResponse:
    return APIResponse(success=True, data=data, error=None, meta=_meta(request_id))


def error_response(code: str, message: str, field: str | None = None, request_id: str | None = None) -> APIResponse:
    return APIResponse(
        success=False,
        data=None,
        error=APIError(code=code, message=message, field=field),
        meta=_meta(request_id),
    )


class ErrorCodes:
    """Machine-readable error codes shared by the API and BillingAPIClient."""

    # Authentication
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    SESSION_EXPIRED = "SESSION_EXPIRED"

    # Request shape
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Invoices
    NOT_FOUND = "NOT_FOUND"
    DUPLICATE_NUMBER = "DUPLICATE_NUMBER"
    CLIENT_OWNERSHIP = "CLIENT_OWNERSHIP"

    # Export
    RENDER_FAILED = "RENDER_FAILED"

    # Infrastructure
    INTERNAL_ERROR = "INTERNAL_ERROR"
