"""Authentication routes."""

import logging

from fastapi import APIRouter, status
from sqlalchemy.orm import Session

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import AuthenticationError
from halosuite.core.security import decode_refresh_token, generate_tokens
from halosuite.models import User, UserStatus
from halosuite.schemas.auth import (
    AuthResponse,
    AuthUserResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutRequest,
    MeResponse,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenRefreshResponse,
)
from halosuite.schemas.common import APIResponse
from halosuite.schemas.user import RoleWithPermissions
from halosuite.services.password_reset_service import PasswordResetService
from halosuite.services.user_service import RefreshTokenService, UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_tokens(db: Session, user: User) -> AuthResponse:
    access_token, refresh_token, expires_at = generate_tokens(user.id, user.email)
    RefreshTokenService(db).create(user.id, refresh_token, expires_at)
    return AuthResponse(
        accessToken=access_token,
        refreshToken=refresh_token,
        user=AuthUserResponse.model_validate(user),
    )


@router.post(
    "/register",
    response_model=APIResponse[AuthResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(user_data: RegisterRequest, db: DbSession) -> APIResponse[AuthResponse]:
    """Register a new user and sign them in.

    Raises:
        ConflictError: If the email or username is taken
    """
    user = UserService(db).create(user_data)
    logger.info("User %s registered", user.id)
    return APIResponse(message="Registration successful", data=_issue_tokens(db, user))


@router.post("/login", response_model=APIResponse[AuthResponse])
async def login(credentials: LoginRequest, db: DbSession) -> APIResponse[AuthResponse]:
    """Login user.

    Raises:
        AuthenticationError: If credentials are invalid or user is not active
    """
    user_service = UserService(db)

    user = user_service.get_by_email(credentials.email)
    if not user or not user_service.verify_password(user, credentials.password):
        raise AuthenticationError("Invalid credentials")
    if user.status != UserStatus.ACTIVE.value:
        raise AuthenticationError("User account is not active")

    tokens = _issue_tokens(db, user)
    user_service.update_last_login(user.id)
    return APIResponse(message="Login successful", data=tokens)


@router.post("/refresh", response_model=APIResponse[TokenRefreshResponse])
async def refresh_token(
    request: RefreshTokenRequest, db: DbSession
) -> APIResponse[TokenRefreshResponse]:
    """Exchange a refresh token for a new token pair; the old refresh token is revoked.

    Raises:
        AuthenticationError: If refresh token is invalid, revoked or expired
    """
    refresh_token_service = RefreshTokenService(db)

    payload = decode_refresh_token(request.refreshToken)
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Invalid refresh token")

    stored_token = refresh_token_service.get_by_token(request.refreshToken)
    if not stored_token:
        raise AuthenticationError("Refresh token has been revoked")
    if not refresh_token_service.is_valid(stored_token):
        refresh_token_service.delete(request.refreshToken)
        raise AuthenticationError("Refresh token has expired")

    user = UserService(db).get_by_id(payload["sub"])
    if not user:
        raise AuthenticationError("User not found")
    if user.status != UserStatus.ACTIVE.value:
        refresh_token_service.delete(request.refreshToken)
        raise AuthenticationError("User account is not active")

    access_token, new_refresh_token, expires_at = generate_tokens(user.id, user.email)
    rotated = refresh_token_service.rotate(
        request.refreshToken, user.id, new_refresh_token, expires_at
    )
    if rotated is None:
        raise AuthenticationError("Refresh token has been revoked")

    return APIResponse(
        data=TokenRefreshResponse(accessToken=access_token, refreshToken=new_refresh_token)
    )


@router.get("/me", response_model=APIResponse[MeResponse])
async def get_current_user_info(
    current_user: CurrentUser, db: DbSession
) -> APIResponse[MeResponse]:
    """Current user with roles and the permission actions they grant."""
    user = UserService(db).get(current_user.id, with_roles=True)

    roles = [
        RoleWithPermissions(
            id=user_role.role.id,
            name=user_role.role.name,
            label=user_role.role.label,
            permissions=user_role.role.actions,
        )
        for user_role in user.roles
    ]
    permissions = sorted({action for role in roles for action in role.permissions})

    return APIResponse(
        data=MeResponse(
            id=user.id,
            email=user.email,
            name=user.name,
            avatar=user.avatar,
            phone=user.phone,
            status=user.status,
            roles=roles,
            permissions=permissions,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
    )


@router.post("/logout", response_model=APIResponse[None])
async def logout(
    current_user: CurrentUser,
    db: DbSession,
    request: LogoutRequest | None = None,
) -> APIResponse[None]:
    """Revoke the given refresh token, or every refresh token of the user when none is given."""
    refresh_token_service = RefreshTokenService(db)

    if request and request.refreshToken:
        stored = refresh_token_service.get_by_token(request.refreshToken)
        if stored and stored.user_id == current_user.id:
            refresh_token_service.delete(request.refreshToken)
    else:
        refresh_token_service.delete_all_for_user(current_user.id)

    return APIResponse(message="Successfully logged out")


@router.post("/forgot-password", response_model=APIResponse[None])
async def forgot_password(request: ForgotPasswordRequest, db: DbSession) -> APIResponse[None]:
    """Request a password reset.

    Always succeeds so the response does not reveal which emails exist.
    """
    user = UserService(db).get_by_email(request.email)
    if user:
        PasswordResetService(db).create_token(user)
        logger.info("Password reset token generated for user %s", user.id)

    return APIResponse(message="If the email exists, a password reset link has been sent")


@router.post("/reset-password", response_model=APIResponse[None])
async def reset_password(request: ResetPasswordRequest, db: DbSession) -> APIResponse[None]:
    """Reset a password with a reset token and revoke all refresh tokens.

    Raises:
        PasswordResetError: If the token is invalid, expired or already used
    """
    user = PasswordResetService(db).reset_password(request.token, request.password)
    RefreshTokenService(db).delete_all_for_user(user.id)
    return APIResponse(message="Password has been reset successfully")
