"""Authentication request and response schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from halosuite.core.config import settings
from halosuite.schemas.user import NormalizedEmail, RoleWithPermissions


class LoginRequest(BaseModel):
    email: NormalizedEmail
    password: str = Field(..., min_length=1)


class RegisterRequest(BaseModel):
    email: NormalizedEmail
    name: str = Field(..., min_length=1)
    password: str = Field(
        ...,
        min_length=settings.PASSWORD_MIN_LENGTH,
        description="Password must be at least 8 characters",
    )
    username: str | None = None
    phone: str | None = None


class RefreshTokenRequest(BaseModel):
    refreshToken: str


class LogoutRequest(BaseModel):
    """Refresh token to revoke; when omitted every token of the user is revoked."""

    refreshToken: str | None = None


class ForgotPasswordRequest(BaseModel):
    email: NormalizedEmail


class ResetPasswordRequest(BaseModel):
    token: str
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH)


class AuthUserResponse(BaseModel):
    id: str
    email: str
    name: str
    avatar: str | None = None
    phone: str | None = None
    status: str

    model_config = {"from_attributes": True}


class AuthResponse(BaseModel):
    """Tokens plus the authenticated user (login/register)."""

    accessToken: str
    refreshToken: str
    user: AuthUserResponse


class TokenRefreshResponse(BaseModel):
    accessToken: str
    refreshToken: str


class MeResponse(BaseModel):
    """Current user with roles and their permission actions."""

    id: str
    email: str
    name: str
    avatar: str | None = None
    phone: str | None = None
    status: str
    roles: list[RoleWithPermissions] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
