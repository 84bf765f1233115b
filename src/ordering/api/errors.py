"""Map core errors to HTTP responses.

Bodies follow one shape: ``{"error": "message"}``, or for validation errors
``{"error": {"field": "message"}}``.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.exceptions import (
    Conflict,
    InsufficientStock,
    NotFound,
    StorageError,
    StorefrontError,
    ValidationError,
)

logger = structlog.get_logger(__name__)

# Checked in order; subclasses come before their bases
_STATUS_CODES = (
    (ValidationError, 400),
    (InsufficientStock, 400),
    (NotFound, 404),
    (Conflict, 409),
    (StorageError, 500),
)


def status_code_for(exc: StorefrontError) -> int:
    for exc_class, status_code in _STATUS_CODES:
        if isinstance(exc, exc_class):
            return status_code
    return 500


def error_body(exc: StorefrontError) -> dict:
    if isinstance(exc, ValidationError):
        return {"error": {field: "; ".join(messages) for field, messages in exc.messages.items()}}
    return {"error": exc.message}


async def handle_storefront_error(request: Request, exc: StorefrontError) -> JSONResponse:
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error(
            "Request failed",
            method=request.method,
            path=request.url.path,
            error_type=exc.__class__.__name__,
            exc_info=exc,
        )
    else:
        logger.info(
            "Request rejected",
            method=request.method,
            path=request.url.path,
            status_code=status_code,
            error=exc.message,
        )
    return JSONResponse(status_code=status_code, content=error_body(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, handle_storefront_error)
