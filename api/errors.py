"""Global exception handlers for FastAPI."""

import logging

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from core.exceptions import (
    BillingError,
    ClientOwnershipError,
    DuplicateNumberError,
    NotFoundError,
    RenderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first; BillingError catches the rest of the hierarchy
_BILLING_ERRORS: list[tuple[type[BillingError], int, str]] = [
    (ValidationError, 400, ErrorCodes.VALIDATION_ERROR),
    (DuplicateNumberError, 409, ErrorCodes.DUPLICATE_NUMBER),
    (ClientOwnershipError, 403, ErrorCodes.CLIENT_OWNERSHIP),
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (RenderError, 502, ErrorCodes.RENDER_FAILED),
]


def _json_error(request: Request, status_code: int, code: str, message: str, field: str | None = None) -> JSONResponse:
    request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=error_response(code, message, field=field, request_id=request_id).model_dump(mode="json"),
    )


def _first_error(errors: list[dict]) -> tuple[str, str | None]:
    """Message and dotted field path of the first pydantic error."""
    if not errors:
        return "Invalid input", None
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    field = ".".join(loc) or None
    message = first.get("msg", "Invalid input")
    return (f"{field}: {message}" if field else message), field


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(BillingError)
    async def billing_error_handler(request: Request, exc: BillingError):
        for exc_type, status_code, code in _BILLING_ERRORS:
            if isinstance(exc, exc_type):
                if status_code >= 500:
                    logger.error(f"{type(exc).__name__}: {exc}")
                return _json_error(request, status_code, code, str(exc), getattr(exc, "field", None))
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(pydantic.ValidationError)
    async def model_validation_handler(request: Request, exc: pydantic.ValidationError):
        message, field = _first_error(exc.errors())
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, message, field)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message, field = _first_error(list(exc.errors()))
        return _json_error(request, 422, ErrorCodes.VALIDATION_ERROR, message, field)

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _json_error(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json_error(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
