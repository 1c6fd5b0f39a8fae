"""Exception handlers: map application, validation, database and unexpected errors to JSON envelopes."""

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.responses import error_response
from app.core.config import Settings
from app.core.errors import AppError, AuthenticationError, ValidationError

logger = logging.getLogger(__name__)

# Substrings drivers use in unique-violation messages (Postgres, SQLite).
_UNIQUE_MARKERS = ("unique", "duplicate")


def _is_unique_violation(exc: IntegrityError) -> bool:
    text = str(exc.orig or exc).lower()
    return any(marker in text for marker in _UNIQUE_MARKERS)


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    dev = settings.APP_ENV == "dev"

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(
                "Application error",
                exc_info=exc,
                extra={"path": request.url.path, "status": exc.status_code},
            )
        else:
            logger.info(
                "Request rejected",
                extra={"path": request.url.path, "status": exc.status_code, "reason": exc.message},
            )
        message = exc.message
        if exc.status_code >= 500 and not dev:
            message = "Something went wrong"
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthenticationError) else None
        return error_response(
            exc.status_code,
            exc.title,
            message,
            details=exc.details if isinstance(exc, ValidationError) else None,
            exc=exc,
            include_stack=dev and exc.status_code >= 500,
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(
            400,
            "Validation Error",
            "Invalid input data",
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        logger.warning("Integrity error", extra={"path": request.url.path})
        if _is_unique_violation(exc):
            return error_response(
                409,
                "Duplicate Entry",
                "A record with this information already exists",
            )
        return error_response(400, "Database Validation Error", "Invalid data provided")

    @app.exception_handler(OperationalError)
    async def handle_operational_error(request: Request, exc: OperationalError):
        logger.error("Database unavailable", exc_info=exc, extra={"path": request.url.path})
        return error_response(503, "Service Unavailable", "Database connection failed")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(
            exc.status_code,
            "HTTP Error",
            str(exc.detail),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return error_response(
            500,
            "Internal Server Error",
            str(exc) if dev else "Something went wrong",
            exc=exc,
            include_stack=dev,
        )
