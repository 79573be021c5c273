"""User and refresh token services."""

import logging
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, selectinload

from halosuite.core.exceptions import ConflictError, NotFoundError
from halosuite.core.security import hash_password, verify_password
from halosuite.models import RefreshToken, Role, RolePermission, User, UserRole, UserStatus
from halosuite.models.base import utcnow
from halosuite.schemas.auth import RegisterRequest
from halosuite.schemas.common import page_offset
from halosuite.schemas.user import UserCreate, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """User service for managing user operations.

    Deleted users are kept with ``deleted_at`` set and are invisible to every
    lookup here.
    """

    def __init__(self, db: Session) -> None:
        """Initialize user service.

        Args:
            db: Database session
        """
        self.db = db

    def _live(self):
        return self.db.query(User).filter(User.deleted_at.is_(None))

    def get_by_id(self, user_id: str, with_roles: bool = False) -> User | None:
        """Get user by ID.

        Args:
            user_id: User ID
            with_roles: Whether to eager load roles and their permissions

        Returns:
            User or None if not found or deleted
        """
        query = self._live().filter(User.id == user_id)
        if with_roles:
            query = query.options(
                selectinload(User.roles)
                .joinedload(UserRole.role)
                .selectinload(Role.permissions)
                .joinedload(RolePermission.permission)
            )
        return query.first()

    def get(self, user_id: str, with_roles: bool = False) -> User:
        user = self.get_by_id(user_id, with_roles=with_roles)
        if not user:
            raise NotFoundError("User not found")
        return user

    def get_by_email(self, email: str) -> User | None:
        return self._live().filter(User.email == email.strip().lower()).first()

    def get_by_username(self, username: str) -> User | None:
        return self.db.query(User).filter(User.username == username).first()

    def get_all(
        self,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        status: str | None = None,
        role: str | None = None,
    ) -> tuple[list[User], int]:
        """Get users with pagination and filtering.

        Args:
            page: Page number (1-indexed)
            limit: Number of records per page
            search: Search keyword for name, username, or email
            status: Filter by status (ACTIVE, INACTIVE, SUSPENDED, or 'all')
            role: Filter by role name (or 'all')

        Returns:
            Tuple of (list of users, total count)
        """
        query = self._live()

        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    User.name.ilike(pattern),
                    User.username.ilike(pattern),
                    User.email.ilike(pattern),
                )
            )
        if status and status.lower() != "all":
            query = query.filter(User.status == status.upper())
        if role and role.lower() != "all":
            query = query.join(User.roles).join(UserRole.role).filter(Role.name == role)

        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return users, total

    def _unique_username(self, email: str) -> str:
        base = email.split("@")[0]
        username = base
        counter = 1
        while self.get_by_username(username):
            username = f"{base}{counter}"
            counter += 1
        return username

    def create(
        self,
        user_data: UserCreate | RegisterRequest,
        default_role_id: str | None = None,
    ) -> User:
        """Create a new user.

        Args:
            user_data: User creation data
            default_role_id: Role to assign, if any

        Returns:
            Created user

        Raises:
            ConflictError: If the email or username is already taken
        """
        email = user_data.email.strip().lower()
        if self.db.query(User.id).filter(User.email == email).first():
            raise ConflictError("User with this email already exists")

        username = user_data.username or self._unique_username(email)
        if self.get_by_username(username):
            raise ConflictError("User with this username already exists")

        user = User(
            email=email,
            username=username,
            name=user_data.name,
            password=hash_password(user_data.password),
            phone=user_data.phone,
            avatar=getattr(user_data, "avatar", None),
            department=getattr(user_data, "department", None),
            position=getattr(user_data, "position", None),
            status=UserStatus(getattr(user_data, "status", UserStatus.ACTIVE)).value,
        )
        self.db.add(user)
        self.db.flush()

        if default_role_id:
            self.db.add(UserRole(user_id=user.id, role_id=default_role_id))

        self.db.commit()
        self.db.refresh(user)
        logger.info("User %s created", user.id)
        return user

    def update(self, user_id: str, user_data: UserUpdate) -> User:
        """Apply a partial update; unset, None and empty fields are kept.

        Raises:
            NotFoundError: If the user does not exist
            ConflictError: If the new email belongs to another user
        """
        user = self.get(user_id)

        changes = {
            key: value
            for key, value in user_data.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        email = changes.get("email")
        if email and email != user.email:
            taken = self.db.query(User.id).filter(User.email == email, User.id != user_id).first()
            if taken:
                raise ConflictError("User with this email already exists")
        if "password" in changes:
            changes["password"] = hash_password(changes["password"])

        for key, value in changes.items():
            setattr(user, key, value)

        self.db.commit()
        self.db.refresh(user)
        return user

    def update_status(self, user_id: str, status: UserStatus | str) -> User:
        user = self.get(user_id)
        user.status = UserStatus(status).value
        self.db.commit()
        self.db.refresh(user)
        return user

    def update_last_login(self, user_id: str) -> None:
        self.db.execute(
            update(User)
            .where(User.id == user_id)
            .values(last_login_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def _soft_delete(self, user_ids: list[str]) -> int:
        now = utcnow()
        result = self.db.execute(
            update(User)
            .where(User.id.in_(user_ids), User.deleted_at.is_(None))
            .values(deleted_at=now, status=UserStatus.INACTIVE.value)
            .execution_options(synchronize_session=False)
        )
        self.db.query(RefreshToken).filter(RefreshToken.user_id.in_(user_ids)).delete(
            synchronize_session=False
        )
        self.db.commit()
        return result.rowcount

    def delete(self, user_id: str) -> None:
        """Soft-delete a user and revoke their refresh tokens."""
        if not self._soft_delete([user_id]):
            raise NotFoundError("User not found")
        logger.info("User %s deleted", user_id)

    def batch_delete(self, user_ids: list[str]) -> int:
        """Soft-delete several users.

        Returns:
            Number of users deleted
        """
        count = self._soft_delete(user_ids)
        logger.info("Batch deleted %d users", count)
        return count

    def verify_password(self, user: User, password: str) -> bool:
        return verify_password(password, user.password)


class RefreshTokenService:
    """Service for managing refresh tokens."""

    def __init__(self, db: Session) -> None:
        """Initialize refresh token service.

        Args:
            db: Database session
        """
        self.db = db

    def create(self, user_id: str, token: str, expires_at: datetime) -> RefreshToken:
        refresh_token = RefreshToken(user_id=user_id, token=token, expires_at=expires_at)
        self.db.add(refresh_token)
        self.db.commit()
        self.db.refresh(refresh_token)
        return refresh_token

    def get_by_token(self, token: str) -> RefreshToken | None:
        return self.db.query(RefreshToken).filter(RefreshToken.token == token).first()

    def delete(self, token: str) -> bool:
        """Revoke one refresh token.

        Returns:
            True if deleted, False if not found
        """
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.token == token)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted > 0

    def delete_all_for_user(self, user_id: str) -> int:
        deleted = (
            self.db.query(RefreshToken)
            .filter(RefreshToken.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def is_valid(self, refresh_token: RefreshToken) -> bool:
        return not refresh_token.is_expired(utcnow())

    def rotate(
        self, old_token: str, user_id: str, new_token: str, expires_at: datetime
    ) -> RefreshToken | None:
        """Replace a refresh token with a new one.

        Args:
            old_token: Token being redeemed
            user_id: Owner of both tokens
            new_token: Replacement token
            expires_at: Replacement expiry

        Returns:
            The new token, or None if the old one was already revoked
        """
        if not self.delete(old_token):
            return None
        return self.create(user_id, new_token, expires_at)
