"""Auth dependencies: bearer verification, role gates and the self-or-admin resource guard."""

from collections.abc import Callable
from typing import Annotated

import jwt
from fastapi import Depends, Path, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.database import get_db
from app.core.errors import AuthenticationError, AuthorizationError
from app.core.security import decode_token
from app.models.user import UserRole
from app.repositories.user import UserRepository
from app.schemas.auth import CurrentUser
from app.services.auth import AuthService
from app.services.users import UserService

security = HTTPBearer(auto_error=False)


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_user_repository(db: Annotated[Session, Depends(get_db)]) -> UserRepository:
    return UserRepository(db)


def get_auth_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> AuthService:
    return AuthService(users, settings)


def get_user_service(
    users: Annotated[UserRepository, Depends(get_user_repository)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> UserService:
    return UserService(users, settings)


def _principal_from_token(token: str, settings: Settings) -> CurrentUser:
    try:
        payload = decode_token(token, settings, expected_type="access")
    except jwt.PyJWTError as e:
        raise AuthenticationError("Invalid or missing authentication token") from e
    try:
        return CurrentUser(
            id=int(payload["id"]),
            email=str(payload["email"]),
            role=str(payload["role"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token payload") from e


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser:
    """Dependency: require a valid Bearer access token and return its principal. Raises 401 otherwise."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Invalid or missing authentication token")
    return _principal_from_token(credentials.credentials, settings)


def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> CurrentUser | None:
    """Dependency: the principal when a valid token is sent, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        return _principal_from_token(credentials.credentials, settings)
    except AuthenticationError:
        return None


def require_roles(*roles: UserRole | str) -> Callable[..., CurrentUser]:
    """Dependency factory: allow only principals whose role is in roles. Raises 403 otherwise."""
    allowed = frozenset(UserRole(r).value for r in roles)

    def dependency(
        current_user: Annotated[CurrentUser, Depends(get_current_user)],
    ) -> CurrentUser:
        if current_user.role not in allowed:
            raise AuthorizationError(
                f"Access denied. Required roles: {', '.join(sorted(allowed))}"
            )
        return current_user

    return dependency


require_admin = require_roles(UserRole.ADMIN)


def require_self_or_admin(
    user_id: Annotated[int, Path(description="Target user id")],
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Dependency: users may only access their own resource; admins may access any."""
    if current_user.is_admin:
        return current_user
    if current_user.id != user_id:
        raise AuthorizationError("Access denied. You can only access your own data.")
    return current_user
