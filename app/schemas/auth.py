"""Request/response schemas for auth endpoints."""

from pydantic import Field

from app.schemas.common import CamelModel
from app.schemas.user import UserOut


class LoginRequest(CamelModel):
    """Credentials for login."""

    email: str = Field(..., max_length=255, description="Email address")
    password: str = Field(..., max_length=128, description="Password")


class RegisterRequest(CamelModel):
    """Public registration payload. Field rules are enforced by AuthService."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    confirm_password: str | None = Field(
        default=None, max_length=128, description="Must equal password when provided"
    )


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class ValidateTokenRequest(CamelModel):
    token: str = Field(..., min_length=1, description="Access token to validate")


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1, max_length=128)
    new_password: str = Field(..., max_length=128)
    confirm_new_password: str = Field(..., min_length=1, max_length=128)


class TokenPair(CamelModel):
    """Access and refresh JWTs."""

    access_token: str = Field(..., description="Short-lived JWT access token")
    refresh_token: str = Field(..., description="Long-lived JWT refresh token")


class AuthResult(TokenPair):
    """User plus token pair returned by login and register."""

    user: UserOut


class TokenPayload(CamelModel):
    """Claims carried by an access or refresh token."""

    id: int
    email: str
    role: str
    type: str | None = None
    iat: int | None = None
    exp: int | None = None


class CurrentUser(CamelModel):
    """Authenticated principal taken from the bearer token (id, email, role)."""

    id: int
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class ValidateTokenResult(CamelModel):
    payload: TokenPayload


class MeResult(CamelModel):
    user: UserOut
