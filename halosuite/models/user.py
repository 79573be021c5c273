"""User accounts."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, Timestamps, UlidPrimaryKey
from halosuite.models.enums import UserStatus, user_status_enum

if TYPE_CHECKING:
    from halosuite.models.auth_token import PasswordResetToken, RefreshToken
    from halosuite.models.calendar import CalendarEvent, EventAttendee
    from halosuite.models.conversation import ConversationParticipant, Message
    from halosuite.models.document import Document, DocumentShare
    from halosuite.models.file import File, Folder
    from halosuite.models.notification import Notification
    from halosuite.models.role import UserRole
    from halosuite.models.team import Team, TeamMember


_OWNED = "all, delete-orphan"


class User(UlidPrimaryKey, Timestamps, Base):
    """Account that owns content and authenticates with email and password.

    Deleting a user is soft: ``deleted_at`` is stamped and the row is hidden
    from lookups while owned data stays in place.
    """

    __tablename__ = "users"
    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_username", "username"),
    )

    email: Mapped[str] = mapped_column(String, unique=True)
    username: Mapped[str] = mapped_column(String, unique=True)
    # bcrypt hash
    password: Mapped[str] = mapped_column(String)
    name: Mapped[str] = mapped_column(String)
    phone: Mapped[str | None] = mapped_column(String, unique=True)
    avatar: Mapped[str | None] = mapped_column(String)
    department: Mapped[str | None] = mapped_column(String)
    position: Mapped[str | None] = mapped_column(String)
    bio: Mapped[str | None] = mapped_column(String)
    status: Mapped[str] = mapped_column(
        user_status_enum,
        default=UserStatus.ACTIVE.value,
        server_default=UserStatus.ACTIVE.value,
    )
    # Bytes held by owned files; written only through QuotaLedger
    quota_used: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    # Everything below is owned by the account and goes with a hard delete
    roles: Mapped[list[UserRole]] = relationship(back_populates="user", cascade=_OWNED)
    teams: Mapped[list[TeamMember]] = relationship(back_populates="user", cascade=_OWNED)
    owned_teams: Mapped[list[Team]] = relationship(
        back_populates="owner", cascade=_OWNED, foreign_keys="Team.owner_id"
    )
    documents: Mapped[list[Document]] = relationship(
        back_populates="owner", cascade=_OWNED, foreign_keys="Document.owner_id"
    )
    shared_documents: Mapped[list[DocumentShare]] = relationship(
        back_populates="shared_with", cascade=_OWNED, foreign_keys="DocumentShare.shared_with_id"
    )
    files: Mapped[list[File]] = relationship(
        back_populates="owner", cascade=_OWNED, foreign_keys="File.owner_id"
    )
    folders: Mapped[list[Folder]] = relationship(
        back_populates="owner", cascade=_OWNED, foreign_keys="Folder.owner_id"
    )
    owned_events: Mapped[list[CalendarEvent]] = relationship(
        back_populates="owner", cascade=_OWNED, foreign_keys="CalendarEvent.owner_id"
    )
    event_attendances: Mapped[list[EventAttendee]] = relationship(
        back_populates="user", cascade=_OWNED
    )
    notifications: Mapped[list[Notification]] = relationship(back_populates="user", cascade=_OWNED)
    conversations: Mapped[list[ConversationParticipant]] = relationship(
        back_populates="user", cascade=_OWNED
    )
    messages: Mapped[list[Message]] = relationship(
        back_populates="sender", cascade=_OWNED, foreign_keys="Message.sender_id"
    )
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user", cascade=_OWNED
    )
    password_reset_tokens: Mapped[list[PasswordResetToken]] = relationship(
        back_populates="user", cascade=_OWNED
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"
