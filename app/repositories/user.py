"""Repository for users: all SQL for the users table lives here."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.core.errors import NotFoundError, RepositoryError
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

# Columns callers may set through create/update.
WRITABLE_FIELDS = frozenset(
    {"email", "password_hash", "first_name", "last_name", "role", "is_active"}
)


class UserRepository:
    """CRUD, pagination and search over the users table. Soft-deleted rows are excluded."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def _live(self) -> Query:
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def _fail(self, action: str, e: SQLAlchemyError) -> RepositoryError:
        self.db.rollback()
        logger.error("User repository failure", extra={"action": action, "error": str(e)[:500]})
        return RepositoryError(f"Failed to {action}: {e.__class__.__name__}", cause=e)

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self._live().filter(User.id == user_id).first()
        except SQLAlchemyError as e:
            raise self._fail("find user by ID", e) from e

    def find_by_email(self, email: str, include_deleted: bool = False) -> User | None:
        query = self.db.query(User) if include_deleted else self._live()
        try:
            return query.filter(User.email == email).first()
        except SQLAlchemyError as e:
            raise self._fail("find user by email", e) from e

    def create(self, **fields: Any) -> User:
        """Insert a user. fields must already hold a password_hash, never a plain password."""
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)}")
        user = User(**fields)
        try:
            self.db.add(user)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            raise self._fail("create user", e) from e
        self.db.refresh(user)
        return user

    def update(self, user_id: int, **fields: Any) -> User:
        unknown = set(fields) - WRITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {sorted(unknown)}")
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        for key, value in fields.items():
            setattr(user, key, value)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            raise self._fail("update user", e) from e
        self.db.refresh(user)
        return user

    def delete(self, user_id: int, hard: bool = False) -> None:
        """Soft delete by default (sets deleted_at); hard=True removes the row."""
        user = self.find_by_id(user_id)
        if user is None:
            raise NotFoundError("User")
        try:
            if hard:
                self.db.delete(user)
            else:
                user.deleted_at = datetime.now(UTC)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete user", e) from e

    def find_all(
        self,
        page: int = 1,
        limit: int = 10,
        role: UserRole | None = None,
        search: str | None = None,
    ) -> tuple[list[User], int]:
        """Return (users on the requested page, total matching rows), newest first."""
        query = self._live()
        if role is not None:
            query = query.filter(User.role == role)
        if search:
            query = query.filter(_search_clause(search))
        offset = (page - 1) * limit
        try:
            total = query.count()
            users = (
                query.order_by(User.created_at.desc(), User.id.desc())
                .offset(offset)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("find users", e) from e
        return users, total

    def find_active(self) -> list[User]:
        try:
            return (
                self._live()
                .filter(User.is_active.is_(True))
                .order_by(User.created_at.desc(), User.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("find active users", e) from e

    def find_by_role(self, role: UserRole) -> list[User]:
        try:
            return (
                self._live()
                .filter(User.role == role)
                .order_by(User.created_at.desc(), User.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("find users by role", e) from e

    def search(self, text: str) -> list[User]:
        try:
            return (
                self._live()
                .filter(_search_clause(text))
                .order_by(User.created_at.desc(), User.id.desc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("search users", e) from e

    def count(self) -> int:
        try:
            return self._live().count()
        except SQLAlchemyError as e:
            raise self._fail("count users", e) from e


def _search_clause(text: str):
    """Case-insensitive substring match on first name, last name or email (wildcards escaped)."""
    needle = text.strip().lower()
    return or_(
        func.lower(User.first_name).contains(needle, autoescape=True),
        func.lower(User.last_name).contains(needle, autoescape=True),
        func.lower(User.email).contains(needle, autoescape=True),
    )
