"""User management endpoints guarded by role and self-or-admin checks."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_user_service, require_admin, require_self_or_admin
from app.api.responses import created, ok
from app.core.errors import AuthorizationError
from app.models.user import UserRole
from app.schemas.auth import CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.user import UserCreate, UserOut, UserPage, UserResult, UserUpdate
from app.services.users import DEFAULT_PAGE_SIZE, UserService

router = APIRouter()


@router.get("", response_model=ApiResponse[UserPage])
def list_users(
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
    page: Annotated[int, Query(description="1-based page number")] = 1,
    limit: Annotated[int, Query(description="Page size (1-100)")] = DEFAULT_PAGE_SIZE,
    role: Annotated[UserRole | None, Query(description="Filter by role")] = None,
    search: Annotated[
        str | None,
        Query(max_length=255, description="Substring of first name, last name or email"),
    ] = None,
) -> ApiResponse[UserPage]:
    """List users newest first (admin only)."""
    return ok(
        users.list_users(page=page, limit=limit, role=role, search=search),
        "Users retrieved successfully",
    )


@router.post("", response_model=ApiResponse[UserResult], status_code=status.HTTP_201_CREATED)
def create_user(
    body: UserCreate,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse[UserResult]:
    user = users.create_user(body)
    return created(UserResult(user=UserOut.model_validate(user)), "User created successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserResult])
def get_user(
    user_id: int,
    _principal: Annotated[CurrentUser, Depends(require_self_or_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse[UserResult]:
    user = users.get_user(user_id)
    return ok(UserResult(user=UserOut.model_validate(user)), "User retrieved successfully")


@router.patch("/{user_id}", response_model=ApiResponse[UserResult])
def update_user(
    user_id: int,
    body: UserUpdate,
    principal: Annotated[CurrentUser, Depends(require_self_or_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
) -> ApiResponse[UserResult]:
    """Update a profile. Only admins may change isActive or role."""
    if not principal.is_admin and (body.is_active is not None or body.role is not None):
        raise AuthorizationError("Only administrators can change role or active status")
    user = users.update_user(user_id, body)
    return ok(UserResult(user=UserOut.model_validate(user)), "User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[None])
def delete_user(
    user_id: int,
    _admin: Annotated[CurrentUser, Depends(require_admin)],
    users: Annotated[UserService, Depends(get_user_service)],
    hard: Annotated[bool, Query(description="Remove the row instead of soft deleting")] = False,
) -> ApiResponse[None]:
    users.delete_user(user_id, hard=hard)
    return ok(None, "User deleted successfully")
