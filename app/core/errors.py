"""Application error hierarchy. Each error carries the HTTP status it maps to."""

from typing import Any


class AppError(Exception):
    """Base class for errors raised by services and repositories."""

    status_code: int = 500
    title: str = "Internal Server Error"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Malformed input or a business-rule violation on input data."""

    status_code = 400
    title = "Validation Error"

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None) -> None:
        self.details = details
        super().__init__(message)


class AuthenticationError(AppError):
    status_code = 401
    title = "Authentication Error"

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message)


class AuthorizationError(AppError):
    status_code = 403
    title = "Authorization Error"

    def __init__(self, message: str = "Insufficient permissions") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    title = "Not Found"

    def __init__(self, resource: str = "Resource") -> None:
        super().__init__(f"{resource} not found")


class ConflictError(AppError):
    status_code = 409
    title = "Duplicate Entry"

    def __init__(self, message: str = "A record with this information already exists") -> None:
        super().__init__(message)


class RepositoryError(AppError):
    """Raised when a database operation fails for reasons other than a constraint violation."""

    status_code = 500
    title = "Database Error"

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(message)
