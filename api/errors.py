"""Global exception handlers for FastAPI."""

import logging

import pydantic
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

from api.base import error_response, ErrorCodes
from clients.email_client import EmailDeliveryError
from core.exceptions import (
    LedgerError, NotFoundError, ValidationError, EditLockedError,
    DeleteBlockedError, StateConflictError,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins.
_LEDGER_ERROR_MAP: list[tuple[type[LedgerError], int, str]] = [
    (NotFoundError, 404, ErrorCodes.NOT_FOUND),
    (ValidationError, 400, ErrorCodes.VALIDATION_ERROR),
    (EditLockedError, 409, ErrorCodes.INVOICE_LOCKED),
    (DeleteBlockedError, 409, ErrorCodes.INVOICE_ALREADY_PAID),
    (StateConflictError, 409, ErrorCodes.INVALID_STATUS_TRANSITION),
]


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _json(request: Request, status_code: int, code: str, message: str, details: dict | None = None):
    return JSONResponse(
        status_code=status_code,
        content=error_response(
            code, message, details=details, request_id=_request_id(request)
        ).model_dump(mode="json"),
    )


def _details(exc: LedgerError) -> dict | None:
    if isinstance(exc, ValidationError) and exc.remaining_balance is not None:
        return {"remaining_balance": str(exc.remaining_balance)}
    if isinstance(exc, EditLockedError):
        return {"status": exc.status, "fields": sorted(exc.fields)}
    return None


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the app."""

    @app.exception_handler(LedgerError)
    async def ledger_error_handler(request: Request, exc: LedgerError):
        for error_type, status_code, code in _LEDGER_ERROR_MAP:
            if isinstance(exc, error_type):
                return _json(request, status_code, code, str(exc), _details(exc))
        return _json(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(EmailDeliveryError)
    async def delivery_error_handler(request: Request, exc: EmailDeliveryError):
        return _json(request, 502, ErrorCodes.EMAIL_DELIVERY_FAILED, str(exc))

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return _json(request, 400, ErrorCodes.INVALID_REQUEST, str(exc))

    @app.exception_handler(pydantic.ValidationError)
    async def model_error_handler(request: Request, exc: pydantic.ValidationError):
        return _json(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors(include_url=False)))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _json(request, 422, ErrorCodes.VALIDATION_ERROR, str(exc.errors()))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return _json(request, 500, ErrorCodes.INTERNAL_ERROR, "An internal error occurred")
