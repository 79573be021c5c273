"""RBAC tables: roles grant permission actions, users hold roles."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, Timestamps, UlidPrimaryKey

if TYPE_CHECKING:
    from halosuite.models.team import TeamMember
    from halosuite.models.user import User


class Role(UlidPrimaryKey, Timestamps, Base):
    """Named bundle of permissions, e.g. ``admin`` or ``editor``."""

    __tablename__ = "roles"

    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    label: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String)

    permissions: Mapped[list[RolePermission]] = relationship(
        back_populates="role", cascade="all, delete-orphan"
    )
    users: Mapped[list[UserRole]] = relationship(
        back_populates="role", cascade="all, delete-orphan"
    )
    # Team memberships may carry a role label; deleting the role clears it
    team_members: Mapped[list[TeamMember]] = relationship(back_populates="role")

    @property
    def actions(self) -> list[str]:
        """Granted permission actions, sorted."""
        return sorted(link.permission.action for link in self.permissions)

    def __repr__(self) -> str:
        return f"<Role {self.name!r}>"


class Permission(UlidPrimaryKey, Timestamps, Base):
    """Permission identified by a unique action string.

    Actions look like ``documents:edit``; ``documents:*`` and ``*`` are
    wildcards matched by ``has_permission``. ``resource`` is the part of the
    action before the colon and is indexed for grouped listings.
    """

    __tablename__ = "permissions"
    __table_args__ = (Index("idx_permissions_resource", "resource"),)

    action: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    resource: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(String)

    roles: Mapped[list[RolePermission]] = relationship(
        back_populates="permission", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Permission {self.action!r}>"


class RolePermission(Base):
    """Grant of one permission to one role."""

    __tablename__ = "role_permissions"

    role_id: Mapped[str] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    )
    permission_id: Mapped[str] = mapped_column(
        ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True
    )

    role: Mapped[Role] = relationship(back_populates="permissions")
    permission: Mapped[Permission] = relationship(back_populates="roles")


class UserRole(Base):
    """Assignment of a role to a user."""

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[str] = mapped_column(
        ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True
    )

    user: Mapped[User] = relationship(back_populates="roles")
    role: Mapped[Role] = relationship(back_populates="users")
