"""Documents, their share grants and tags."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, CreatedAt, Timestamps, UlidPrimaryKey
from halosuite.models.enums import SharePermission, share_permission_enum

if TYPE_CHECKING:
    from halosuite.models.team import Team
    from halosuite.models.user import User


class Document(UlidPrimaryKey, Timestamps, Base):
    """Text document owned by a user and optionally attached to a team.

    ``size`` is the UTF-8 byte length of ``content`` and is recomputed by the
    service whenever content changes. ``folder`` is a free-form label and has
    no link to the folder tree used by files.
    """

    __tablename__ = "documents"
    __table_args__ = (
        Index("idx_documents_owner_id", "owner_id"),
        Index("idx_documents_team_id", "team_id"),
        Index("idx_documents_folder", "folder"),
    )

    title: Mapped[str] = mapped_column(String)
    content: Mapped[str] = mapped_column(Text, default="")
    folder: Mapped[str | None] = mapped_column(String)
    type: Mapped[str] = mapped_column(String, default="doc")
    size: Mapped[int] = mapped_column(BigInteger, default=0, server_default="0")
    views: Mapped[int] = mapped_column(default=0, server_default="0")
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    team_id: Mapped[str | None] = mapped_column(ForeignKey("teams.id", ondelete="SET NULL"))

    owner: Mapped[User] = relationship(back_populates="documents", foreign_keys=[owner_id])
    team: Mapped[Team | None] = relationship(back_populates="documents")
    shares: Mapped[list[DocumentShare]] = relationship(
        back_populates="document", cascade="all, delete-orphan"
    )
    tags: Mapped[list[DocumentTag]] = relationship(
        back_populates="document", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Document {self.id} {self.title!r}>"


class DocumentShare(UlidPrimaryKey, CreatedAt, Base):
    """Permission on one document granted to exactly one user or one team.

    Each grantee holds at most one grant per document; re-sharing updates it.
    ``expires_at`` is checked when access is evaluated and expired rows are
    left in place.
    """

    __tablename__ = "document_shares"
    __table_args__ = (
        UniqueConstraint("document_id", "shared_with_id", name="uq_document_shares_user"),
        UniqueConstraint("document_id", "team_id", name="uq_document_shares_team"),
        Index("idx_document_shares_shared_with_id", "shared_with_id"),
        Index("idx_document_shares_team_id", "team_id"),
    )

    document_id: Mapped[str] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"))
    shared_with_id: Mapped[str | None] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    team_id: Mapped[str | None] = mapped_column(ForeignKey("teams.id", ondelete="CASCADE"))
    permission: Mapped[str] = mapped_column(
        share_permission_enum,
        default=SharePermission.READ.value,
        server_default=SharePermission.READ.value,
    )
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    document: Mapped[Document] = relationship(back_populates="shares")
    shared_with: Mapped[User | None] = relationship(
        back_populates="shared_documents", foreign_keys=[shared_with_id]
    )
    team: Mapped[Team | None] = relationship(back_populates="shares", foreign_keys=[team_id])

    def __repr__(self) -> str:
        grantee = self.shared_with_id or f"team:{self.team_id}"
        return f"<DocumentShare {self.document_id} -> {grantee} ({self.permission})>"


class Tag(UlidPrimaryKey, CreatedAt, Base):
    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String, unique=True)

    documents: Mapped[list[DocumentTag]] = relationship(
        back_populates="tag", cascade="all, delete-orphan"
    )


class DocumentTag(Base):
    __tablename__ = "document_tags"

    document_id: Mapped[str] = mapped_column(
        ForeignKey("documents.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[str] = mapped_column(ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True)

    document: Mapped[Document] = relationship(back_populates="tags")
    tag: Mapped[Tag] = relationship(back_populates="documents")
