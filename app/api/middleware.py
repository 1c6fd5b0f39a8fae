"""Request logging middleware: request id, method, path, status, duration and JWT subject.

Request and response bodies are never logged.
"""

import logging
import time
import uuid

import jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("app.request")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log request/response metadata and echo X-Request-ID to the client."""

    async def dispatch(self, request: Request, call_next) -> Response:  # type: ignore[override]
        start = time.monotonic()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        user_sub = _token_subject(request)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Unhandled exception during request",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "request_id": request_id,
                    "duration_ms": int((time.monotonic() - start) * 1000),
                    "user_sub": user_sub,
                },
            )
            raise

        logger.info(
            "Request finished",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": int((time.monotonic() - start) * 1000),
                "client_ip": request.client.host if request.client else None,
                "request_id": request_id,
                "user_sub": user_sub,
            },
        )
        response.headers.setdefault("X-Request-ID", request_id)
        return response


def _token_subject(request: Request) -> str | None:
    """Best-effort sub claim of a bearer token; an invalid token is ignored here."""
    auth_header = request.headers.get("Authorization") or ""
    if not auth_header.lower().startswith("bearer "):
        return None
    settings = request.app.state.settings
    try:
        payload = jwt.decode(
            auth_header.split(None, 1)[1],
            settings.JWT_SECRET.get_secret_value(),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except (jwt.PyJWTError, IndexError):
        return None
    return payload.get("sub")
