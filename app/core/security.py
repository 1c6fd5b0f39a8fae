"""Password hashing and JWT creation/verification for authentication."""

from datetime import UTC, datetime, timedelta
from typing import Any, Literal

import bcrypt
import jwt

from app.core.config import Settings

TokenType = Literal["access", "refresh"]

# Min/max lengths for registration input validation.
PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128
NAME_MIN_LEN = 2
NAME_MAX_LEN = 100
EMAIL_MAX_LEN = 255


def hash_password(plain_password: str, rounds: int = 12) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def _create_token(
    claims: dict[str, Any],
    token_type: TokenType,
    expires_in: timedelta,
    settings: Settings,
) -> str:
    now = datetime.now(UTC)
    payload: dict[str, Any] = {
        **claims,
        "type": token_type,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(
        payload,
        settings.JWT_SECRET.get_secret_value(),
        algorithm=settings.JWT_ALGORITHM,
    )


def create_token_pair(
    user_id: int, email: str, role: str, settings: Settings
) -> tuple[str, str]:
    """Create (access_token, refresh_token), both carrying sub, id, email and role."""
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "id": user_id,
        "email": email,
        "role": role,
    }
    access = _create_token(
        claims,
        "access",
        timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        settings,
    )
    refresh = _create_token(
        claims,
        "refresh",
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        settings,
    )
    return access, refresh


def decode_token(
    token: str, settings: Settings, expected_type: TokenType = "access"
) -> dict[str, Any]:
    """
    Decode and validate a JWT; return its payload (sub, id, email, role, type, iat, exp).
    Raises jwt.PyJWTError on an invalid or expired token, or when the token type does not match.
    """
    payload = jwt.decode(
        token,
        settings.JWT_SECRET.get_secret_value(),
        algorithms=[settings.JWT_ALGORITHM],
        options={"require": ["exp", "iat", "sub"]},
    )
    if payload.get("type") != expected_type:
        raise jwt.InvalidTokenError(f"Expected a {expected_type} token")
    return payload
