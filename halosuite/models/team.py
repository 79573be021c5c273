"""Teams and their member roster."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, Timestamps, UlidPrimaryKey, utcnow

if TYPE_CHECKING:
    from halosuite.models.document import Document, DocumentShare
    from halosuite.models.file import File, Folder
    from halosuite.models.role import Role
    from halosuite.models.user import User


class Team(UlidPrimaryKey, Timestamps, Base):
    """Group of users. The creator owns it and is always on the roster.

    Documents, files and folders may point at a team; removing the team
    detaches them (``team_id`` set to NULL) instead of deleting them. Shares
    granted to the team go away with it.
    """

    __tablename__ = "teams"
    __table_args__ = (Index("idx_teams_owner_id", "owner_id"),)

    name: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(String)
    avatar: Mapped[str | None] = mapped_column(String)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))

    owner: Mapped[User] = relationship(back_populates="owned_teams", foreign_keys=[owner_id])
    members: Mapped[list[TeamMember]] = relationship(
        back_populates="team", cascade="all, delete-orphan"
    )
    shares: Mapped[list[DocumentShare]] = relationship(
        back_populates="team", cascade="all, delete-orphan", foreign_keys="DocumentShare.team_id"
    )
    documents: Mapped[list[Document]] = relationship(back_populates="team")
    files: Mapped[list[File]] = relationship(back_populates="team")
    folders: Mapped[list[Folder]] = relationship(back_populates="team")

    def __repr__(self) -> str:
        return f"<Team {self.id} {self.name!r}>"


class TeamMember(Base):
    """Roster entry; ``role_id`` is an optional label for the member's role."""

    __tablename__ = "team_members"
    __table_args__ = (Index("idx_team_members_user_id", "user_id"),)

    team_id: Mapped[str] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role_id: Mapped[str | None] = mapped_column(ForeignKey("roles.id", ondelete="SET NULL"))
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    team: Mapped[Team] = relationship(back_populates="members")
    user: Mapped[User] = relationship(back_populates="teams")
    role: Mapped[Role | None] = relationship(back_populates="team_members")
