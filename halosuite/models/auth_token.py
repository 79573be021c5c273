"""Tokens stored for the auth flows: refresh sessions and password resets."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, CreatedAt, UlidPrimaryKey, as_utc

if TYPE_CHECKING:
    from halosuite.models.user import User


class _Expiring(UlidPrimaryKey, CreatedAt):
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def is_expired(self, now: datetime) -> bool:
        # SQLite hands back naive datetimes
        return as_utc(now) >= as_utc(self.expires_at)


class RefreshToken(_Expiring, Base):
    """Issued refresh token. Deleting the row revokes it."""

    __tablename__ = "refresh_tokens"
    __table_args__ = (Index("idx_refresh_tokens_user_id", "user_id"),)

    token: Mapped[str] = mapped_column(String, unique=True)

    user: Mapped[User] = relationship(back_populates="refresh_tokens")


class PasswordResetToken(_Expiring, Base):
    """Single-use reset token. Only the SHA-256 of the raw value is stored."""

    __tablename__ = "password_reset_tokens"
    __table_args__ = (Index("idx_password_reset_tokens_user_id", "user_id"),)

    token_hash: Mapped[str] = mapped_column(String, unique=True)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    user: Mapped[User] = relationship(back_populates="password_reset_tokens")

    def is_used(self) -> bool:
        return self.used_at is not None
