"""
Error Handling for Bookshelf

Centralized error handling:
- Structured error responses
- Logging of errors
- Exception translation
"""

import traceback
from datetime import datetime, timezone

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from sqlalchemy.exc import DBAPIError

from bookshelf.exceptions import (
    BookshelfException,
    ValidationError,
    UnauthorizedError,
    ForbiddenError,
    NotFoundError,
    ConflictError,
    TransientStoreError,
)
from bookshelf.api.middleware.logging import get_request_id
from bookshelf.storage.models import is_transient_store_error


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: str = None,
) -> JSONResponse:
    """Create standardized error response."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return "; ".join(parts)


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""

    @app.exception_handler(BookshelfException)
    async def bookshelf_exception_handler(request: Request, exc: BookshelfException):
        if exc.status_code >= 500:
            logger.error(f"Bookshelf error: {exc.code} - {exc.message} ({exc.detail})")
        else:
            logger.warning(f"Bookshelf error: {exc.code} - {exc.message}")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        detail = _describe_validation_errors(exc)
        logger.warning(f"Validation error on {request.url.path}: {detail}")
        return create_error_response(
            error="Validation Error",
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )

    @app.exception_handler(DBAPIError)
    async def store_exception_handler(request: Request, exc: DBAPIError):
        if not is_transient_store_error(exc):
            logger.error(
                f"Database error on {request.url.path} [request {get_request_id()}]: "
                f"{type(exc).__name__}: {exc}"
            )
            return create_error_response(
                error="Internal Server Error",
                code="INTERNAL_ERROR",
                status_code=500,
                detail="An unexpected error occurred",
            )

        logger.error(f"Store failure on {request.url.path} [request {get_request_id()}]: {exc}")
        return create_error_response(
            error="Store unavailable",
            code="STORE_UNAVAILABLE",
            status_code=503,
            detail="A backing store could not be reached; retry later",
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception [request {get_request_id()}]: "
            f"{type(exc).__name__}: {str(exc)}\n{traceback.format_exc()}"
        )
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )


__all__ = [
    "BookshelfException",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "TransientStoreError",
    "create_error_response",
    "setup_exception_handlers",
]
