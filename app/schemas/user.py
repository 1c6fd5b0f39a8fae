"""Request/response schemas for user profile and admin user management."""

from datetime import datetime

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.models.user import UserRole
from app.schemas.common import CamelModel, Pagination


class UserOut(CamelModel):
    """User as exposed to clients; the password hash is never included."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )

    id: int
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserCreate(CamelModel):
    """Admin creation payload (role and active flag may be chosen)."""

    email: str = Field(..., max_length=255)
    password: str = Field(..., max_length=128)
    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    role: UserRole = UserRole.USER
    is_active: bool = True


class UserUpdate(CamelModel):
    """Partial profile update; only provided fields are changed."""

    email: str | None = Field(default=None, max_length=255)
    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    is_active: bool | None = None
    role: UserRole | None = None


class UserResult(CamelModel):
    user: UserOut


class UserPage(CamelModel):
    """One page of users plus pagination metadata."""

    data: list[UserOut]
    pagination: Pagination
