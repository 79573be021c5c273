"""User schemas for request/response validation."""

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, BeforeValidator, EmailStr, Field

from halosuite.core.config import settings
from halosuite.models.enums import UserStatus


def normalize_email(value: str) -> str:
    return value.strip().lower() if isinstance(value, str) else value


NormalizedEmail = Annotated[EmailStr, BeforeValidator(normalize_email)]


class RoleBasic(BaseModel):
    id: str
    name: str
    label: str

    model_config = {"from_attributes": True}


class RoleWithPermissions(RoleBasic):
    """Role with the action strings it grants."""

    permissions: list[str] = Field(default_factory=list)


class TeamBasic(BaseModel):
    id: str
    name: str
    roleId: str | None = None


class UserCreate(BaseModel):
    """Schema for creating a user (admin)."""

    email: NormalizedEmail
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH)
    username: str | None = None  # Derived from the email when omitted
    phone: str | None = None
    avatar: str | None = None
    department: str | None = None
    position: str | None = None
    status: UserStatus = UserStatus.ACTIVE


class UserUpdate(BaseModel):
    """Partial update; ``None`` and empty strings leave fields unchanged."""

    email: NormalizedEmail | None = None
    name: str | None = None
    password: str | None = Field(None, min_length=settings.PASSWORD_MIN_LENGTH)
    phone: str | None = None
    avatar: str | None = None
    department: str | None = None
    position: str | None = None
    bio: str | None = None


class UserStatusUpdate(BaseModel):
    status: UserStatus


class UserBasicResponse(BaseModel):
    """Embedded user reference."""

    id: str
    email: str
    name: str
    avatar: str | None = None

    model_config = {"from_attributes": True}


class UserResponse(UserBasicResponse):
    username: str
    phone: str | None = None
    status: str
    department: str | None = None
    position: str | None = None
    bio: str | None = None
    quotaUsed: int = 0
    lastLoginAt: datetime | None = None
    created_at: datetime
    updated_at: datetime


class UserDetailResponse(UserResponse):
    roles: list[RoleBasic] = Field(default_factory=list)
    teams: list[TeamBasic] = Field(default_factory=list)
