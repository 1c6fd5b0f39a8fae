"""Authentication service: login, registration, token refresh/validation, logout, password change."""

import logging

import jwt

from app.core.config import Settings
from app.core.errors import (
    AppError,
    AuthenticationError,
    RepositoryError,
    ValidationError,
)
from app.core.security import create_token_pair, decode_token, hash_password, verify_password
from app.models.user import User, UserRole
from app.repositories.user import UserRepository
from app.schemas.auth import AuthResult, RegisterRequest, TokenPair, TokenPayload
from app.schemas.user import UserOut
from app.services.validation import (
    normalize_email,
    password_error,
    raise_if_errors,
    validate_new_user,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Stateless auth operations over an injected UserRepository and Settings."""

    def __init__(self, users: UserRepository, settings: Settings) -> None:
        self.users = users
        self.settings = settings

    def login(self, email: str, password: str) -> AuthResult:
        """
        Authenticate by email and password.

        Raises ValidationError when either is blank and AuthenticationError when the
        user is unknown, deactivated, or the password does not match.
        """
        if not (email or "").strip() or not password:
            raise ValidationError("Email and password are required")
        try:
            user = self.users.find_by_email(normalize_email(email))
        except RepositoryError as e:
            logger.exception("Login lookup failed")
            raise AuthenticationError("Login failed") from e
        if user is None:
            raise AuthenticationError("Invalid credentials")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")
        logger.info("User logged in", extra={"user_id": user.id})
        return self._auth_result(user)

    def register(self, data: RegisterRequest) -> AuthResult:
        """Create a regular, active user and sign them in. Duplicate emails are a ValidationError."""
        validate_new_user(data.email, data.password, data.first_name, data.last_name)
        if data.confirm_password is not None and data.confirm_password != data.password:
            raise ValidationError(
                "Passwords do not match",
                details=[{"field": "confirmPassword", "message": "Passwords do not match"}],
            )
        email = normalize_email(data.email)
        try:
            # Soft-deleted rows still hold the unique email.
            if self.users.find_by_email(email, include_deleted=True) is not None:
                raise ValidationError("User with this email already exists")
            user = self.users.create(
                email=email,
                password_hash=hash_password(data.password, self.settings.BCRYPT_ROUNDS),
                first_name=data.first_name.strip(),
                last_name=data.last_name.strip(),
                role=UserRole.USER,
                is_active=True,
            )
        except RepositoryError as e:
            logger.exception("Registration failed")
            raise AppError("Registration failed") from e
        logger.info("User registered", extra={"user_id": user.id})
        return self._auth_result(user)

    def refresh_token(self, token: str) -> TokenPair:
        """Exchange a valid refresh token for a new pair built from the current user row."""
        try:
            payload = decode_token(token, self.settings, expected_type="refresh")
        except jwt.PyJWTError as e:
            raise AuthenticationError("Invalid refresh token") from e
        try:
            user = self.users.find_by_id(_user_id(payload))
        except RepositoryError as e:
            raise AuthenticationError("Token refresh failed") from e
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid refresh token")
        access, refresh = create_token_pair(user.id, user.email, user.role.value, self.settings)
        return TokenPair(access_token=access, refresh_token=refresh)

    def validate_token(self, token: str) -> TokenPayload:
        """Decode an access token and check that its user still exists and is active."""
        try:
            payload = decode_token(token, self.settings, expected_type="access")
        except jwt.PyJWTError as e:
            raise AuthenticationError("Invalid token") from e
        try:
            user = self.users.find_by_id(_user_id(payload))
        except RepositoryError as e:
            raise AuthenticationError("Token validation failed") from e
        if user is None or not user.is_active:
            raise AuthenticationError("Invalid token")
        return TokenPayload.model_validate(payload)

    def get_profile(self, user_id: int) -> User:
        """The row behind an access token; deleted or deactivated users no longer authenticate."""
        user = self.users.find_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user

    def logout(self, user_id: int) -> None:
        # No server-side token state; only confirm the user exists.
        if self.users.find_by_id(user_id) is None:
            raise AuthenticationError("User not found")
        logger.info("User logged out", extra={"user_id": user_id})

    def change_password(
        self,
        user_id: int,
        current_password: str,
        new_password: str,
        confirm_new_password: str,
    ) -> None:
        user = self.users.find_by_id(user_id)
        if user is None:
            raise AuthenticationError("User not found")
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        raise_if_errors([password_error(new_password, field="newPassword")])
        if new_password != confirm_new_password:
            raise ValidationError(
                "New passwords do not match",
                details=[{"field": "confirmNewPassword", "message": "New passwords do not match"}],
            )
        self.users.update(
            user_id,
            password_hash=hash_password(new_password, self.settings.BCRYPT_ROUNDS),
        )
        logger.info("Password changed", extra={"user_id": user_id})

    def _auth_result(self, user: User) -> AuthResult:
        access, refresh = create_token_pair(user.id, user.email, user.role.value, self.settings)
        return AuthResult(
            user=UserOut.model_validate(user),
            access_token=access,
            refresh_token=refresh,
        )


def _user_id(payload: dict) -> int:
    try:
        return int(payload.get("id", payload.get("sub")))
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token payload") from e
