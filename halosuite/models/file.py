"""Folder tree and file metadata."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import BigInteger, ForeignKey, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, Timestamps, UlidPrimaryKey

if TYPE_CHECKING:
    from halosuite.models.team import Team
    from halosuite.models.user import User


class Folder(UlidPrimaryKey, Timestamps, Base):
    """Folder with a materialized path.

    ``path`` always equals ``parent.path + "/" + name``, or ``"/" + name`` at
    the root, and is unique per owner. FolderService rewrites descendant
    paths on rename and move so subtree lookups are a prefix match.
    """

    __tablename__ = "folders"
    __table_args__ = (
        UniqueConstraint("owner_id", "path", name="uq_folders_owner_id_path"),
        Index("idx_folders_path", "path"),
        Index("idx_folders_parent_id", "parent_id"),
    )

    name: Mapped[str] = mapped_column(String)
    path: Mapped[str] = mapped_column(String)
    parent_id: Mapped[str | None] = mapped_column(ForeignKey("folders.id", ondelete="CASCADE"))
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    team_id: Mapped[str | None] = mapped_column(ForeignKey("teams.id", ondelete="SET NULL"))

    owner: Mapped[User] = relationship(back_populates="folders", foreign_keys=[owner_id])
    team: Mapped[Team | None] = relationship(back_populates="folders")
    parent: Mapped[Folder | None] = relationship(
        back_populates="children", remote_side="Folder.id", foreign_keys=[parent_id]
    )
    children: Mapped[list[Folder]] = relationship(back_populates="parent")
    files: Mapped[list[File]] = relationship(back_populates="folder")

    def __repr__(self) -> str:
        return f"<Folder {self.id} {self.path!r}>"


class File(UlidPrimaryKey, Timestamps, Base):
    """Uploaded file metadata. ``size`` is charged once to the owner's quota."""

    __tablename__ = "files"
    __table_args__ = (
        Index("idx_files_owner_id", "owner_id"),
        Index("idx_files_folder_id", "folder_id"),
    )

    name: Mapped[str] = mapped_column(String)
    path: Mapped[str] = mapped_column(String)
    mime_type: Mapped[str] = mapped_column(String)
    size: Mapped[int] = mapped_column(BigInteger)
    thumbnail: Mapped[str | None] = mapped_column(String)
    folder_id: Mapped[str | None] = mapped_column(ForeignKey("folders.id"))
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    team_id: Mapped[str | None] = mapped_column(ForeignKey("teams.id", ondelete="SET NULL"))
    is_favorite: Mapped[bool] = mapped_column(default=False, server_default=false())

    owner: Mapped[User] = relationship(back_populates="files", foreign_keys=[owner_id])
    team: Mapped[Team | None] = relationship(back_populates="files")
    folder: Mapped[Folder | None] = relationship(back_populates="files")

    def __repr__(self) -> str:
        return f"<File {self.id} {self.name!r} {self.size}B>"
