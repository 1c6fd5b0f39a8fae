"""Response-formatting helpers shared by every route and exception handler."""

import traceback
from typing import Any, TypeVar

from fastapi.responses import JSONResponse

from app.schemas.common import ApiResponse, ErrorResponse

T = TypeVar("T")


def ok(data: T | None = None, message: str = "Success") -> ApiResponse[T]:
    """Wrap a payload in the success envelope."""
    return ApiResponse[Any](success=True, data=data, message=message)


def created(data: T, message: str = "Created successfully") -> ApiResponse[T]:
    return ok(data, message)


def error_response(
    status_code: int,
    error: str,
    message: str,
    details: Any = None,
    exc: BaseException | None = None,
    include_stack: bool = False,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build the error envelope; the traceback is attached only when include_stack is set."""
    stack = None
    if include_stack and exc is not None:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    body = ErrorResponse(error=error, message=message, details=details, stack=stack)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True, mode="json"),
        headers=headers,
    )
