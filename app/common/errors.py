"""
Global exception handlers.

Services raise HTTPException for expected failures; these handlers cover
what escapes them: database constraint violations, connection problems and
unexpected errors. Every body carries a machine-readable code and the request id.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError

logger = logging.getLogger(__name__)


def _error_response(request: Request, status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": detail,
            "code": code,
            "request_id": getattr(request.state, "request_id", None),
        },
    )


def _is_foreign_key_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig).lower() if exc.orig is not None else str(exc).lower()
    return "foreign key" in message


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    if _is_foreign_key_violation(exc):
        logger.warning(f"Foreign key violation on {request.url.path}: {exc.orig}")
        return _error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Referenced record does not exist",
            "FOREIGN_KEY_CONSTRAINT",
        )
    logger.warning(f"Duplicate entry on {request.url.path}: {exc.orig}")
    return _error_response(
        request,
        status.HTTP_409_CONFLICT,
        "A record with these values already exists",
        "DUPLICATE_ENTRY",
    )


async def operational_error_handler(request: Request, exc: OperationalError) -> JSONResponse:
    logger.error(f"Database unavailable on {request.url.path}: {exc}")
    return _error_response(
        request,
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Database temporarily unavailable",
        "DATABASE_ERROR",
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unexpected error on {request.url.path}: {exc}")
    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "An unexpected error occurred",
        "INTERNAL_ERROR",
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(OperationalError, operational_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
