"""FastAPI exception handlers producing the shared JSON error envelope."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...services.errors import (
    NetworkFailure,
    PublisherError,
    TransactionFailure,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

DEFAULT_ERRORS: Dict[int, Tuple[str, str]] = {
    status.HTTP_400_BAD_REQUEST: ("validation_error", "Invalid request payload"),
    status.HTTP_404_NOT_FOUND: ("not_found", "Resource not found"),
    status.HTTP_409_CONFLICT: ("conflict", "Request conflicts with current settings"),
    status.HTTP_500_INTERNAL_SERVER_ERROR: ("internal_error", "Internal server error"),
    status.HTTP_502_BAD_GATEWAY: ("upstream_error", "Knowledge graph service failed"),
}

PUBLISHER_ERRORS: Dict[type, Tuple[int, str]] = {
    ValidationFailure: (status.HTTP_400_BAD_REQUEST, "validation_error"),
    NetworkFailure: (status.HTTP_502_BAD_GATEWAY, "network_error"),
    TransactionFailure: (status.HTTP_502_BAD_GATEWAY, "transaction_error"),
}


def _normalize_error(
    status_code: int, detail: Any
) -> Tuple[str, str, Optional[Dict[str, Any]]]:
    default_error, default_message = DEFAULT_ERRORS.get(
        status_code, DEFAULT_ERRORS[status.HTTP_500_INTERNAL_SERVER_ERROR]
    )
    if isinstance(detail, dict):
        error = detail.get("error", default_error)
        message = detail.get("message", default_message)
        detail_payload = detail.get("detail")
        if detail_payload is None:
            remainder = {
                k: v for k, v in detail.items() if k not in {"error", "message", "detail"}
            }
            detail_payload = remainder or None
        return error, message, detail_payload
    if isinstance(detail, str) and detail:
        return default_error, detail, None
    return default_error, default_message, None


def _response(status_code: int, detail: Any) -> JSONResponse:
    error, message, extra = _normalize_error(status_code, detail)
    return JSONResponse(
        status_code=status_code, content={"error": error, "message": message, "detail": extra}
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    detail = {"detail": {"errors": exc.errors()}}
    return _response(status.HTTP_400_BAD_REQUEST, detail)


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return _response(exc.status_code, exc.detail)


async def publisher_exception_handler(request: Request, exc: PublisherError) -> JSONResponse:
    for error_type, (status_code, error) in PUBLISHER_ERRORS.items():
        if isinstance(exc, error_type):
            logger.warning("%s: %s", type(exc).__name__, exc.message)
            return _response(
                status_code, {"error": error, "message": exc.message, "detail": exc.details or None}
            )
    logger.exception("Unhandled publisher error: %s", exc)
    return _response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        {"message": exc.message, "detail": exc.details or None},
    )


async def not_found_exception_handler(request: Request, exc: FileNotFoundError) -> JSONResponse:
    return _response(status.HTTP_404_NOT_FOUND, str(exc) or None)


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.args[0] if exc.args else None)


def register_error_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI application."""
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(PublisherError, publisher_exception_handler)
    app.add_exception_handler(FileNotFoundError, not_found_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)


__all__ = [
    "register_error_handlers",
    "validation_exception_handler",
    "http_exception_handler",
    "publisher_exception_handler",
    "not_found_exception_handler",
    "internal_exception_handler",
]
