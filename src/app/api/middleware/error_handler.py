"""Global error handling.

Every error leaves the API in the same shape: the error code plus the
catalog entry for it (see ``app.core.errors``). Internal details and raw
database messages are only logged in debug mode.
"""

import logging

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from app.config import settings
from app.core.errors import get_error
from app.core.exceptions import CardManagementError

logger = logging.getLogger(__name__)


def _error_response(status_code: int, error_code: str, message: str | None = None) -> JSONResponse:
    error_info = get_error(error_code)
    return JSONResponse(
        status_code=status_code,
        content={
            "error_code": error_code,
            "message": message or error_info["message"],
            "user_message": error_info["user_message"],
            "suggestion": error_info["suggestion"],
            "retry_allowed": error_info["retry_allowed"],
        },
    )


def _request_context(request: Request) -> dict:
    return {"path": request.url.path, "method": request.method}


async def handle_card_management_error(
    request: Request, exc: CardManagementError
) -> JSONResponse:
    """Render a card management exception from the error catalog.

    Args:
        request: The incoming request
        exc: The raised exception

    Returns:
        JSONResponse with the catalog entry and the exception's HTTP status
    """
    extra = {"error_code": exc.error_code, **_request_context(request)}
    if settings.debug:
        extra["details"] = exc.details

    if exc.http_status >= 500:
        logger.error("Card management error: %s", exc.error_code, extra=extra)
    else:
        logger.warning("Request rejected: %s", exc.error_code, extra=extra)

    return _error_response(exc.http_status, exc.error_code)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Turn request validation failures into a 400 listing each bad field."""
    errors = exc.errors()
    messages = [
        f"{'.'.join(str(part) for part in error.get('loc', []))}: {error.get('msg', 'Invalid value')}"
        for error in errors
    ]

    extra = _request_context(request)
    if settings.debug:
        extra["errors"] = errors
    logger.warning("Validation error on %s", request.url.path, extra=extra)

    return _error_response(status.HTTP_400_BAD_REQUEST, "VAL_001", " | ".join(messages))


async def handle_integrity_error(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Map unique violations to 409 and other constraint failures to 500."""
    # str(exc) can include SQL and bound parameters, card ciphertext among them.
    if settings.debug:
        logger.exception("Database integrity error on %s", request.url.path, extra=_request_context(request))
    else:
        logger.error("Database integrity error on %s", request.url.path, extra=_request_context(request))

    error_msg = str(exc.orig).lower()
    if "unique" in error_msg or "duplicate" in error_msg:
        return _error_response(status.HTTP_409_CONFLICT, "DB_002")
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "DB_001")


async def handle_generic_error(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions without exposing internals."""
    extra = {"error_type": type(exc).__name__, **_request_context(request)}
    if settings.debug:
        logger.exception("Unexpected error on %s", request.url.path, extra=extra)
    else:
        logger.error("Unexpected error on %s", request.url.path, extra=extra)

    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "SYS_001")
