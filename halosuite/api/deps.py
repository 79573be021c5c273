"""API dependencies for authentication and authorization."""

from collections.abc import Callable, Iterable
from typing import Annotated

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from halosuite.core.database import get_db
from halosuite.core.exceptions import AuthenticationError, ForbiddenError
from halosuite.core.security import decode_access_token
from halosuite.models import User, UserStatus
from halosuite.services.user_service import UserService

# Missing credentials are reported by get_current_user as 401
security = HTTPBearer(auto_error=False)

DbSession = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: DbSession,
) -> User:
    """Get current authenticated user from JWT token.

    Args:
        credentials: HTTP bearer token credentials
        db: Database session

    Returns:
        Current authenticated user

    Raises:
        AuthenticationError: If the token is missing or invalid, or the user
            no longer exists
    """
    if credentials is None:
        raise AuthenticationError("Not authenticated")

    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        raise AuthenticationError("Invalid authentication credentials")

    user = UserService(db).get_by_id(payload["sub"])
    if user is None:
        raise AuthenticationError("User not found")
    return user


def get_current_active_user(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current active user.

    Raises:
        ForbiddenError: If user is inactive or suspended
    """
    if current_user.status != UserStatus.ACTIVE.value:
        raise ForbiddenError("User account is not active")
    return current_user


CurrentUser = Annotated[User, Depends(get_current_active_user)]


def pagination(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> tuple[int, int]:
    return page, limit


def has_permission(user_permissions: Iterable[str], required: str) -> bool:
    """Check a permission using wildcard matching.

    ``*`` grants everything, ``users:*`` grants every ``users:`` action,
    anything else must match exactly.

    Args:
        user_permissions: The user's permission actions
        required: Required permission action

    Returns:
        True if user has permission, False otherwise
    """
    granted = set(user_permissions)
    if required in granted or "*" in granted:
        return True
    if ":" in required:
        resource = required.split(":", 1)[0]
        return f"{resource}:*" in granted
    return False


def user_permissions(user: User) -> set[str]:
    """Collect permission actions from every role of a user loaded with roles."""
    return {action for user_role in user.roles for action in user_role.role.actions}


def check_permission(required_permission: str) -> Callable[..., User]:
    """Create a dependency requiring ``required_permission``.

    Args:
        required_permission: Required permission action (e.g., "users:create")

    Returns:
        Dependency returning the current user when the check passes
    """

    def permission_checker(current_user: CurrentUser, db: DbSession) -> User:
        user = UserService(db).get(current_user.id, with_roles=True)
        if has_permission(user_permissions(user), required_permission):
            return current_user
        raise ForbiddenError(f"Permission denied: requires '{required_permission}'")

    return permission_checker
