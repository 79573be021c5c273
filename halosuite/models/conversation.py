"""Conversations, their participants and messages."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, false, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, CreatedAt, Timestamps, UlidPrimaryKey, utcnow
from halosuite.models.enums import ParticipantRole

if TYPE_CHECKING:
    from halosuite.models.user import User


class Conversation(UlidPrimaryKey, Timestamps, Base):
    """Direct (two people) or group conversation.

    ``updated_at`` is bumped by every new message, so listings sort by it.
    """

    __tablename__ = "conversations"
    __table_args__ = (Index("idx_conversations_updated_at", "updated_at"),)

    name: Mapped[str | None] = mapped_column(String)
    is_group: Mapped[bool] = mapped_column(default=False, server_default=false())
    avatar: Mapped[str | None] = mapped_column(String)

    participants: Mapped[list[ConversationParticipant]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan"
    )
    messages: Mapped[list[Message]] = relationship(
        back_populates="conversation", cascade="all, delete-orphan"
    )


class ConversationParticipant(Base):
    """Membership row that also holds this participant's read state."""

    __tablename__ = "conversation_participants"
    __table_args__ = (Index("idx_conversation_participants_user_id", "user_id"),)

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[str] = mapped_column(
        String,
        default=ParticipantRole.MEMBER.value,
        server_default=ParticipantRole.MEMBER.value,
    )
    # Only ever changed with relative UPDATEs
    unread_count: Mapped[int] = mapped_column(default=0, server_default="0")
    last_read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )

    conversation: Mapped[Conversation] = relationship(back_populates="participants")
    user: Mapped[User] = relationship(back_populates="conversations")

    def __repr__(self) -> str:
        return f"<ConversationParticipant {self.conversation_id}/{self.user_id}>"


class Message(UlidPrimaryKey, CreatedAt, Base):
    __tablename__ = "messages"
    __table_args__ = (
        Index("idx_messages_conversation_id_created_at", "conversation_id", "created_at"),
        Index("idx_messages_sender_id", "sender_id"),
    )

    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id", ondelete="CASCADE")
    )
    sender_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    # text, image, file or system
    type: Mapped[str] = mapped_column(String, default="text", server_default="text")
    content: Mapped[str] = mapped_column(Text)

    conversation: Mapped[Conversation] = relationship(back_populates="messages")
    sender: Mapped[User] = relationship(back_populates="messages", foreign_keys=[sender_id])
