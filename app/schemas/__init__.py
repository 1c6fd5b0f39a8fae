"""Pydantic request/response schemas."""

from app.schemas.auth import (
    AuthResult,
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    MeResult,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    TokenPayload,
    ValidateTokenRequest,
    ValidateTokenResult,
)
from app.schemas.common import ApiResponse, ErrorResponse, Pagination
from app.schemas.health import HealthResponse
from app.schemas.user import UserCreate, UserOut, UserPage, UserResult, UserUpdate

__all__ = [
    "ApiResponse",
    "AuthResult",
    "ChangePasswordRequest",
    "CurrentUser",
    "ErrorResponse",
    "HealthResponse",
    "LoginRequest",
    "MeResult",
    "Pagination",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPair",
    "TokenPayload",
    "UserCreate",
    "UserOut",
    "UserPage",
    "UserResult",
    "UserUpdate",
    "ValidateTokenRequest",
    "ValidateTokenResult",
]
