"""User management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from halosuite.api.deps import CurrentUser, DbSession, check_permission, pagination
from halosuite.models import User
from halosuite.schemas.common import APIResponse, BatchDeleteRequest, DeletedCount, PaginationMeta
from halosuite.schemas.user import (
    RoleBasic,
    TeamBasic,
    UserCreate,
    UserDetailResponse,
    UserResponse,
    UserStatusUpdate,
    UserUpdate,
)
from halosuite.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar=user.avatar,
        username=user.username,
        phone=user.phone,
        status=user.status,
        department=user.department,
        position=user.position,
        bio=user.bio,
        quotaUsed=user.quota_used,
        lastLoginAt=user.last_login_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


@router.get("", response_model=APIResponse[list[UserResponse]])
async def list_users(
    db: DbSession,
    current_user: CurrentUser,
    paging: Annotated[tuple[int, int], Depends(pagination)],
    search: str | None = Query(None, description="Search keyword (name, username, email)"),
    status: str | None = Query(
        None, description="Filter by status (ACTIVE/INACTIVE/SUSPENDED/all)"
    ),
    role: str | None = Query(None, description="Filter by role name (or 'all')"),
) -> APIResponse[list[UserResponse]]:
    """Get user list with pagination, search, and filtering."""
    page, limit = paging
    users, total = UserService(db).get_all(
        page=page, limit=limit, search=search, status=status, role=role
    )
    return APIResponse(
        data=[user_response(user) for user in users],
        meta=PaginationMeta.build(total, page, limit),
    )


@router.get("/{user_id}", response_model=APIResponse[UserDetailResponse])
async def get_user(
    user_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[UserDetailResponse]:
    """Get user by ID with roles and teams.

    Raises:
        NotFoundError: If the user does not exist or was deleted
    """
    user = UserService(db).get(user_id, with_roles=True)

    roles = [RoleBasic(id=ur.role.id, name=ur.role.name, label=ur.role.label) for ur in user.roles]
    teams = [TeamBasic(id=tm.team.id, name=tm.team.name, roleId=tm.role_id) for tm in user.teams]

    detail = UserDetailResponse(
        **user_response(user).model_dump(), roles=roles, teams=teams
    )
    return APIResponse(data=detail)


@router.post(
    "",
    response_model=APIResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    user_data: UserCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("users:create"))],
) -> APIResponse[UserResponse]:
    user = UserService(db).create(user_data)
    return APIResponse(message="User created successfully", data=user_response(user))


@router.patch("/{user_id}", response_model=APIResponse[UserResponse])
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("users:update"))],
) -> APIResponse[UserResponse]:
    user = UserService(db).update(user_id, user_data)
    return APIResponse(message="User updated successfully", data=user_response(user))


@router.patch("/{user_id}/status", response_model=APIResponse[UserResponse])
async def update_user_status(
    user_id: str,
    status_data: UserStatusUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("users:update"))],
) -> APIResponse[UserResponse]:
    user = UserService(db).update_status(user_id, status_data.status)
    return APIResponse(message="User status updated", data=user_response(user))


@router.post("/batch-delete", response_model=APIResponse[DeletedCount])
async def batch_delete_users(
    request: BatchDeleteRequest,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("users:delete"))],
) -> APIResponse[DeletedCount]:
    """Soft-delete several users; the caller is never included."""
    ids = [user_id for user_id in request.ids if user_id != current_user.id]
    deleted = UserService(db).batch_delete(ids) if ids else 0
    return APIResponse(
        message=f"Successfully deleted {deleted} users", data=DeletedCount(deletedCount=deleted)
    )


@router.delete("/{user_id}", response_model=APIResponse[None])
async def delete_user(
    user_id: str,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("users:delete"))],
) -> APIResponse[None]:
    UserService(db).delete(user_id)
    return APIResponse(message="User deleted successfully")
