"""Role and Permission services for business logic."""

import logging

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from halosuite.core.database import transaction
from halosuite.core.exceptions import ConflictError, NotFoundError
from halosuite.models import Permission, Role, RolePermission, UserRole
from halosuite.schemas.role import PermissionCreate, PermissionUpdate, RoleCreate, RoleUpdate

logger = logging.getLogger(__name__)


def resource_of(action: str) -> str:
    """Resource part of an action: ``documents:edit`` -> ``documents``."""
    return action.split(":", 1)[0]


class PermissionService:
    """Permission service for managing permission operations."""

    def __init__(self, db: Session) -> None:
        """Initialize permission service.

        Args:
            db: Database session
        """
        self.db = db

    def get_by_id(self, permission_id: str) -> Permission | None:
        return self.db.get(Permission, permission_id)

    def get(self, permission_id: str) -> Permission:
        permission = self.get_by_id(permission_id)
        if not permission:
            raise NotFoundError("Permission not found")
        return permission

    def get_by_action(self, action: str) -> Permission | None:
        return self.db.query(Permission).filter(Permission.action == action).first()

    def get_all(self) -> list[Permission]:
        return self.db.query(Permission).order_by(Permission.resource, Permission.action).all()

    def create(self, permission_data: PermissionCreate) -> Permission:
        """Create a new permission.

        Args:
            permission_data: Permission creation data

        Returns:
            Created permission

        Raises:
            ConflictError: If a permission with the action already exists
        """
        if self.get_by_action(permission_data.action):
            raise ConflictError(f"Permission '{permission_data.action}' already exists")

        permission = Permission(
            action=permission_data.action,
            resource=permission_data.resource or resource_of(permission_data.action),
            description=permission_data.description,
        )
        self.db.add(permission)
        self.db.commit()
        self.db.refresh(permission)
        return permission

    def update(self, permission_id: str, permission_data: PermissionUpdate) -> Permission:
        permission = self.get(permission_id)

        changes = {
            key: value
            for key, value in permission_data.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        action = changes.get("action")
        if action and action != permission.action and self.get_by_action(action):
            raise ConflictError(f"Permission '{action}' already exists")

        for key, value in changes.items():
            setattr(permission, key, value)
        self.db.commit()
        self.db.refresh(permission)
        return permission

    def delete(self, permission_id: str) -> None:
        permission = self.get(permission_id)
        self.db.delete(permission)
        self.db.commit()


class RoleService:
    """Role service for managing role operations."""

    def __init__(self, db: Session) -> None:
        """Initialize role service.

        Args:
            db: Database session
        """
        self.db = db

    def get_by_id(self, role_id: str, with_permissions: bool = False) -> Role | None:
        """Get role by ID.

        Args:
            role_id: Role ID
            with_permissions: Whether to eager load permissions

        Returns:
            Role or None if not found
        """
        query = self.db.query(Role).filter(Role.id == role_id)
        if with_permissions:
            query = query.options(
                selectinload(Role.permissions).joinedload(RolePermission.permission)
            )
        return query.first()

    def get(self, role_id: str) -> Role:
        role = self.get_by_id(role_id, with_permissions=True)
        if not role:
            raise NotFoundError("Role not found")
        return role

    def get_by_name(self, name: str) -> Role | None:
        return self.db.query(Role).filter(Role.name == name).first()

    def get_all(self, with_permissions: bool = True) -> list[Role]:
        query = self.db.query(Role)
        if with_permissions:
            query = query.options(
                selectinload(Role.permissions).joinedload(RolePermission.permission)
            )
        return query.order_by(Role.name).all()

    def get_user_count(self, role_id: str) -> int:
        return (
            self.db.query(func.count(UserRole.user_id)).filter(UserRole.role_id == role_id).scalar()
            or 0
        )

    def _require_permissions(self, permission_ids: list[str]) -> list[str]:
        unique_ids = list(dict.fromkeys(permission_ids))
        if not unique_ids:
            return unique_ids
        found = (
            self.db.query(func.count(Permission.id)).filter(Permission.id.in_(unique_ids)).scalar()
        )
        if found != len(unique_ids):
            raise NotFoundError("One or more permissions not found")
        return unique_ids

    def create(self, role_data: RoleCreate) -> Role:
        """Create a new role, optionally with an initial permission set.

        Raises:
            ConflictError: If a role with the name already exists
            NotFoundError: If a permission id is unknown
        """
        if self.get_by_name(role_data.name):
            raise ConflictError(f"Role '{role_data.name}' already exists")
        permission_ids = self._require_permissions(role_data.permissionIds)

        with transaction(self.db):
            role = Role(
                name=role_data.name,
                label=role_data.label or role_data.name,
                description=role_data.description,
            )
            self.db.add(role)
            self.db.flush()
            for permission_id in permission_ids:
                self.db.add(RolePermission(role_id=role.id, permission_id=permission_id))

        logger.info("Role %s created", role.name)
        return self.get(role.id)

    def update(self, role_id: str, role_data: RoleUpdate) -> Role:
        role = self.get(role_id)

        changes = {
            key: value
            for key, value in role_data.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        name = changes.get("name")
        if name and name != role.name and self.get_by_name(name):
            raise ConflictError(f"Role '{name}' already exists")

        for key, value in changes.items():
            setattr(role, key, value)
        self.db.commit()
        return self.get(role_id)

    def delete(self, role_id: str) -> None:
        role = self.get(role_id)
        self.db.delete(role)
        self.db.commit()
        logger.info("Role %s deleted", role_id)

    def assign_permissions(self, role_id: str, permission_ids: list[str]) -> Role:
        """Replace the role's permission set.

        Args:
            role_id: Role ID
            permission_ids: The complete new set of permission IDs

        Returns:
            Updated role with permissions

        Raises:
            NotFoundError: If the role or any permission does not exist
        """
        if self.get_by_id(role_id) is None:
            raise NotFoundError("Role not found")
        permission_ids = self._require_permissions(permission_ids)

        with transaction(self.db):
            current = {
                link.permission_id: link
                for link in self.db.query(RolePermission).filter(RolePermission.role_id == role_id)
            }
            for permission_id, link in current.items():
                if permission_id not in permission_ids:
                    self.db.delete(link)
            for permission_id in permission_ids:
                if permission_id not in current:
                    self.db.add(RolePermission(role_id=role_id, permission_id=permission_id))

        return self.get(role_id)
