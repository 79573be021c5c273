"""RBAC request and response bodies."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

ACTION_PATTERN = r"^(\*|[\w-]+:(\*|[\w-]+))$"


class PermissionCreate(BaseModel):
    action: str = Field(
        ..., pattern=ACTION_PATTERN, description="resource:verb, resource:* or *"
    )
    resource: str | None = Field(None, description="Defaults to the part before ':'")
    description: str | None = None


class PermissionUpdate(BaseModel):
    action: str | None = Field(None, pattern=ACTION_PATTERN)
    resource: str | None = None
    description: str | None = None


class PermissionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    action: str
    resource: str
    description: str | None = None


class RoleCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    label: str | None = Field(None, description="Display name; defaults to name")
    description: str | None = None
    permissionIds: list[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
    name: str | None = Field(None, max_length=50)
    label: str | None = None
    description: str | None = None


class RolePermissionAssign(BaseModel):
    """Full replacement of a role's permission set."""

    permissionIds: list[str]


class RoleResponse(BaseModel):
    id: str
    name: str
    label: str
    description: str | None = None
    permissions: list[PermissionResponse] = Field(default_factory=list)
    userCount: int = 0
    created_at: datetime
