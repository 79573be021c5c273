"""In-app notifications."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import JSON, DateTime, ForeignKey, Index, String, Text, false
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, CreatedAt, UlidPrimaryKey

if TYPE_CHECKING:
    from halosuite.models.user import User


class Notification(UlidPrimaryKey, CreatedAt, Base):
    """Message for one recipient.

    ``type`` is free text such as ``system`` or ``document_shared``; ``payload``
    carries structured details for the client (JSONB on PostgreSQL).
    """

    __tablename__ = "notifications"
    __table_args__ = (Index("idx_notifications_user_id_read", "user_id", "read"),)

    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    type: Mapped[str] = mapped_column(String)
    title: Mapped[str] = mapped_column(String)
    content: Mapped[str] = mapped_column(Text)
    link: Mapped[str | None] = mapped_column(String)
    payload: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql")
    )
    read: Mapped[bool] = mapped_column(default=False, server_default=false())
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user: Mapped[User] = relationship(back_populates="notifications")
