"""Role management routes."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from halosuite.api.deps import CurrentUser, DbSession, check_permission
from halosuite.models import Role, User
from halosuite.schemas.common import APIResponse
from halosuite.schemas.role import (
    PermissionResponse,
    RoleCreate,
    RolePermissionAssign,
    RoleResponse,
    RoleUpdate,
)
from halosuite.services.role_service import RoleService

router = APIRouter(prefix="/roles", tags=["Roles"])


def role_response(role: Role, user_count: int) -> RoleResponse:
    return RoleResponse(
        id=role.id,
        name=role.name,
        label=role.label,
        description=role.description,
        permissions=[PermissionResponse.model_validate(rp.permission) for rp in role.permissions],
        userCount=user_count,
        created_at=role.created_at,
    )


@router.get("", response_model=APIResponse[list[RoleResponse]])
async def list_roles(db: DbSession, current_user: CurrentUser) -> APIResponse[list[RoleResponse]]:
    service = RoleService(db)
    return APIResponse(
        data=[role_response(role, service.get_user_count(role.id)) for role in service.get_all()]
    )


@router.get("/{role_id}", response_model=APIResponse[RoleResponse])
async def get_role(
    role_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[RoleResponse]:
    service = RoleService(db)
    return APIResponse(data=role_response(service.get(role_id), service.get_user_count(role_id)))


@router.post(
    "",
    response_model=APIResponse[RoleResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_role(
    role_data: RoleCreate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("roles:create"))],
) -> APIResponse[RoleResponse]:
    role = RoleService(db).create(role_data)
    return APIResponse(message="Role created successfully", data=role_response(role, 0))


@router.patch("/{role_id}", response_model=APIResponse[RoleResponse])
async def update_role(
    role_id: str,
    role_data: RoleUpdate,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("roles:update"))],
) -> APIResponse[RoleResponse]:
    service = RoleService(db)
    role = service.update(role_id, role_data)
    return APIResponse(
        message="Role updated successfully",
        data=role_response(role, service.get_user_count(role_id)),
    )


@router.put("/{role_id}/permissions", response_model=APIResponse[RoleResponse])
async def assign_permissions(
    role_id: str,
    assign_data: RolePermissionAssign,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("roles:update"))],
) -> APIResponse[RoleResponse]:
    """Replace the role's permissions with exactly the given set."""
    service = RoleService(db)
    role = service.assign_permissions(role_id, assign_data.permissionIds)
    return APIResponse(
        message="Permissions assigned successfully",
        data=role_response(role, service.get_user_count(role_id)),
    )


@router.delete("/{role_id}", response_model=APIResponse[None])
async def delete_role(
    role_id: str,
    db: DbSession,
    current_user: Annotated[User, Depends(check_permission("roles:delete"))],
) -> APIResponse[None]:
    RoleService(db).delete(role_id)
    return APIResponse(message="Role deleted successfully")
