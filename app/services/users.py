"""User management service: CRUD, pagination, role filter and search."""

import logging
import math

from app.core.config import Settings
from app.core.errors import NotFoundError, ValidationError
from app.core.security import hash_password
from app.models.user import User, UserRole
from app.repositories.user import UserRepository
from app.schemas.common import Pagination
from app.schemas.user import UserCreate, UserOut, UserPage, UserUpdate
from app.services.validation import (
    email_error,
    name_error,
    normalize_email,
    raise_if_errors,
    validate_new_user,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MIN_SEARCH_LEN = 2


def _check_id(user_id: int) -> None:
    if not user_id or user_id <= 0:
        raise ValidationError("Invalid user ID")


def normalize_pagination(page: int | None, limit: int | None) -> tuple[int, int]:
    """Clamp page below 1 to 1 and limit outside 1-100 to the default page size."""
    page = page if page and page >= 1 else 1
    limit = limit if limit and 1 <= limit <= MAX_PAGE_SIZE else DEFAULT_PAGE_SIZE
    return page, limit


class UserService:
    def __init__(self, users: UserRepository, settings: Settings) -> None:
        self.users = users
        self.settings = settings

    def create_user(self, data: UserCreate) -> User:
        """Admin-side creation: same field rules as registration, any role."""
        validate_new_user(data.email, data.password, data.first_name, data.last_name)
        email = normalize_email(data.email)
        if self.users.find_by_email(email, include_deleted=True) is not None:
            raise ValidationError("User with this email already exists")
        user = self.users.create(
            email=email,
            password_hash=hash_password(data.password, self.settings.BCRYPT_ROUNDS),
            first_name=data.first_name.strip(),
            last_name=data.last_name.strip(),
            role=data.role,
            is_active=data.is_active,
        )
        logger.info("User created", extra={"user_id": user.id, "role": user.role.value})
        return user

    def get_user(self, user_id: int) -> User:
        _check_id(user_id)
        user = self.users.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        return user

    def find_user_by_email(self, email: str) -> User | None:
        raise_if_errors([email_error(email)])
        return self.users.find_by_email(normalize_email(email))

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        """Apply the fields set on data. Changing to an email already in use is a ValidationError."""
        _check_id(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        raise_if_errors(
            [
                email_error(changes["email"]) if "email" in changes else None,
                name_error(changes["first_name"], "firstName", "First name")
                if "first_name" in changes
                else None,
                name_error(changes["last_name"], "lastName", "Last name")
                if "last_name" in changes
                else None,
            ]
        )
        existing = self.users.find_by_id(user_id)
        if existing is None:
            raise NotFoundError("User")

        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
            if changes["email"] != existing.email:
                taken = self.users.find_by_email(changes["email"], include_deleted=True)
                if taken is not None:
                    raise ValidationError("Email is already taken")
        for key in ("first_name", "last_name"):
            if key in changes:
                changes[key] = changes[key].strip()

        if not changes:
            return existing
        user = self.users.update(user_id, **changes)
        logger.info("User updated", extra={"user_id": user_id, "fields": sorted(changes)})
        return user

    def delete_user(self, user_id: int, hard: bool = False) -> None:
        _check_id(user_id)
        if self.users.find_by_id(user_id) is None:
            raise NotFoundError("User")
        self.users.delete(user_id, hard=hard)
        logger.info("User deleted", extra={"user_id": user_id, "hard": hard})

    def list_users(
        self,
        page: int | None = 1,
        limit: int | None = DEFAULT_PAGE_SIZE,
        role: UserRole | None = None,
        search: str | None = None,
    ) -> UserPage:
        page, limit = normalize_pagination(page, limit)
        search = (search or "").strip() or None
        users, total = self.users.find_all(page=page, limit=limit, role=role, search=search)
        return UserPage(
            data=[UserOut.model_validate(u) for u in users],
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
        )

    def get_active_users(self) -> list[User]:
        return self.users.find_active()

    def get_users_by_role(self, role: UserRole | str | None) -> list[User]:
        if not role:
            raise ValidationError("Role is required")
        try:
            role = UserRole(role)
        except ValueError as e:
            raise ValidationError(f"Unknown role: {role}") from e
        return self.users.find_by_role(role)

    def search_users(self, query: str | None) -> list[User]:
        q = (query or "").strip()
        if len(q) < MIN_SEARCH_LEN:
            raise ValidationError(
                f"Search query must be at least {MIN_SEARCH_LEN} characters long"
            )
        return self.users.search(q)
