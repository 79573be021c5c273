"""Permission management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from halosuite.api.deps import CurrentUser, DbSession, check_permission
from halosuite.models import User
from halosuite.schemas.common import APIResponse
from halosuite.schemas.role import PermissionCreate, PermissionResponse, PermissionUpdate
from halosuite.services.role_service import PermissionService

router = APIRouter(prefix="/permissions", tags=["Permissions"])


@router.get("", response_model=APIResponse[list[PermissionResponse]])
async def list_permissions(
    db: DbSession, current_user: CurrentUser
) -> APIResponse[list[PermissionResponse]]:
    permissions = PermissionService(db).get_all()
    return APIResponse(data=[PermissionResponse.model_validate(p) for p in permissions])


@router.get("/{permission_id}", response_model=APIResponse[PermissionResponse])
async def get_permission(
    permission_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[PermissionResponse]:
    permission = PermissionService(db).get(permission_id)
    return APIResponse(data=PermissionResponse.model_validate(permission))


@router.post(
    "",
    response_model=APIResponse[PermissionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_permission(
    permission_data: PermissionCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("permissions:create"))],
) -> APIResponse[PermissionResponse]:
    """Create a permission. ``resource`` defaults to the part of the action before ``:``."""
    permission = PermissionService(db).create(permission_data)
    return APIResponse(
        message="Permission created successfully",
        data=PermissionResponse.model_validate(permission),
    )


@router.patch("/{permission_id}", response_model=APIResponse[PermissionResponse])
async def update_permission(
    permission_id: str,
    permission_data: PermissionUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("permissions:update"))],
) -> APIResponse[PermissionResponse]:
    permission = PermissionService(db).update(permission_id, permission_data)
    return APIResponse(
        message="Permission updated successfully",
        data=PermissionResponse.model_validate(permission),
    )


@router.delete("/{permission_id}", response_model=APIResponse[None])
async def delete_permission(
    permission_id: str,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("permissions:delete"))],
) -> APIResponse[None]:
    PermissionService(db).delete(permission_id)
    return APIResponse(message="Permission deleted successfully")
