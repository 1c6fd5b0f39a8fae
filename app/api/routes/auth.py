"""Auth endpoints: register, login, refresh, me, logout, validate, change-password."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.deps import get_auth_service, get_current_user
from app.api.responses import created, ok
from app.schemas.auth import (
    AuthResult,
    ChangePasswordRequest,
    CurrentUser,
    LoginRequest,
    MeResult,
    RefreshRequest,
    RegisterRequest,
    TokenPair,
    ValidateTokenRequest,
    ValidateTokenResult,
)
from app.schemas.common import ApiResponse
from app.schemas.user import UserOut
from app.services.auth import AuthService

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
)
def register(
    body: RegisterRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthResult]:
    """Create an account and return the user with an access/refresh token pair."""
    return created(auth.register(body), "User registered successfully")


@router.post("/login", response_model=ApiResponse[AuthResult])
def login(
    body: LoginRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[AuthResult]:
    """
    Authenticate with email and password; returns the user and a token pair.
    Send the access token as: Authorization: Bearer <accessToken>
    """
    return ok(auth.login(body.email, body.password), "Login successful")


@router.post("/refresh", response_model=ApiResponse[TokenPair])
def refresh(
    body: RefreshRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[TokenPair]:
    return ok(auth.refresh_token(body.refresh_token), "Token refreshed successfully")


@router.get("/me", response_model=ApiResponse[MeResult])
def me(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[MeResult]:
    """Return the profile of the user the bearer token belongs to (401 once deleted or deactivated)."""
    user = auth.get_profile(current_user.id)
    return ok(MeResult(user=UserOut.model_validate(user)), "User profile retrieved successfully")


@router.post("/logout", response_model=ApiResponse[None])
def logout(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[None]:
    """Server-side no-op beyond checking the user exists; clients drop their tokens."""
    auth.logout(current_user.id)
    return ok(None, "Logout successful")


@router.post("/validate", response_model=ApiResponse[ValidateTokenResult])
def validate(
    body: ValidateTokenRequest,
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[ValidateTokenResult]:
    payload = auth.validate_token(body.token)
    return ok(ValidateTokenResult(payload=payload), "Token is valid")


@router.post("/change-password", response_model=ApiResponse[None])
def change_password(
    body: ChangePasswordRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth: Annotated[AuthService, Depends(get_auth_service)],
) -> ApiResponse[None]:
    auth.change_password(
        current_user.id,
        body.current_password,
        body.new_password,
        body.confirm_new_password,
    )
    return ok(None, "Password changed successfully")
