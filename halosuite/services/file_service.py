"""File service: metadata CRUD with quota accounting."""

from __future__ import annotations

import logging
from urllib.parse import quote

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from halosuite.core.config import settings
from halosuite.core.database import transaction
from halosuite.core.exceptions import NotFoundError
from halosuite.models import File, Folder
from halosuite.schemas.common import page_offset
from halosuite.schemas.file import FileCreate, StorageInfo
from halosuite.services.access import OwnershipPolicy
from halosuite.services.quota_service import QuotaLedger

logger = logging.getLogger(__name__)


class FileService:
    """File service.

    Every change to the set of files a user owns goes through ``QuotaLedger``
    in the same transaction, keeping ``quota_used`` equal to the total size
    of the user's files.
    """

    def __init__(self, db: Session) -> None:
        """Initialize file service.

        Args:
            db: Database session
        """
        self.db = db
        self.quota = QuotaLedger(db)
        self.policy = OwnershipPolicy(db, File)

    def get_by_id(self, file_id: str) -> File | None:
        return (
            self.db.query(File)
            .options(joinedload(File.owner))
            .filter(File.id == file_id)
            .first()
        )

    def get(self, file_id: str, owner_id: str) -> File:
        """Get a file visible to its owner only.

        Raises:
            NotFoundError: If the file does not exist or belongs to someone else
        """
        file = self.get_by_id(file_id)
        if not file or file.owner_id != owner_id:
            raise NotFoundError("File not found")
        return file

    def list(
        self,
        owner_id: str,
        page: int = 1,
        limit: int = 20,
        path: str | None = None,
        file_type: str | None = None,
        search: str | None = None,
        folder_id: str | None = None,
    ) -> tuple[list[File], int]:
        """List the owner's files, newest first.

        Args:
            owner_id: Owner user ID
            page: Page number (1-indexed)
            limit: Items per page
            path: Path prefix filter
            file_type: MIME type prefix filter (``image`` matches ``image/png``)
            search: Case-insensitive name search
            folder_id: Restrict to one folder

        Returns:
            Tuple of (files, total_count)
        """
        query = self.db.query(File).filter(File.owner_id == owner_id)

        if folder_id:
            query = query.filter(File.folder_id == folder_id)
        if path:
            query = query.filter(File.path.startswith(path, autoescape=True))
        if file_type:
            query = query.filter(File.mime_type.startswith(file_type, autoescape=True))
        if search:
            query = query.filter(File.name.ilike(f"%{search}%"))

        total = query.count()
        files = (
            query.options(joinedload(File.owner))
            .order_by(File.created_at.desc(), File.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return files, total

    def _require_folder(self, folder_id: str | None, owner_id: str) -> None:
        if not folder_id:
            return
        folder = self.db.get(Folder, folder_id)
        if not folder or folder.owner_id != owner_id:
            raise NotFoundError("Folder not found")

    def create(self, file_data: FileCreate, owner_id: str) -> File:
        """Record an uploaded file and charge its size to the owner.

        Args:
            file_data: File metadata
            owner_id: Uploading user

        Returns:
            Created file

        Raises:
            NotFoundError: If the target folder is not the owner's
        """
        self._require_folder(file_data.folderId, owner_id)

        with transaction(self.db):
            file = File(
                name=file_data.name,
                path=file_data.path,
                mime_type=file_data.mimeType,
                size=file_data.size,
                thumbnail=file_data.thumbnail,
                folder_id=file_data.folderId,
                team_id=file_data.teamId,
                owner_id=owner_id,
            )
            self.db.add(file)
            self.db.flush()
            self.quota.charge(owner_id, file.size)

        logger.info("File %s (%d bytes) created by %s", file.id, file.size, owner_id)
        return self.get_by_id(file.id)

    def rename(self, file_id: str, name: str) -> File:
        file = self.get_by_id(file_id)
        if not file:
            raise NotFoundError("File not found")
        file.name = name
        self.db.commit()
        return self.get_by_id(file_id)

    def move(self, file_id: str, folder_id: str | None, path: str) -> File:
        """Move a file to another folder of the same owner.

        Args:
            file_id: File to move
            folder_id: Target folder, or None for the root
            path: New storage path

        Returns:
            Moved file
        """
        file = self.get_by_id(file_id)
        if not file:
            raise NotFoundError("File not found")
        self._require_folder(folder_id, file.owner_id)

        file.folder_id = folder_id or None
        file.path = path
        self.db.commit()
        return self.get_by_id(file_id)

    def copy(self, file_id: str, owner_id: str) -> File:
        """Duplicate a file for ``owner_id``, charging the copy to their quota.

        Raises:
            NotFoundError: If the source file is not the caller's
        """
        source = self.get(file_id, owner_id)

        with transaction(self.db):
            duplicate = File(
                name=f"{source.name} (copy)",
                path=source.path,
                mime_type=source.mime_type,
                size=source.size,
                thumbnail=source.thumbnail,
                folder_id=source.folder_id,
                team_id=source.team_id,
                owner_id=owner_id,
            )
            self.db.add(duplicate)
            self.db.flush()
            self.quota.charge(owner_id, duplicate.size)

        return self.get_by_id(duplicate.id)

    def toggle_favorite(self, file_id: str) -> File:
        file = self.get_by_id(file_id)
        if not file:
            raise NotFoundError("File not found")
        file.is_favorite = not file.is_favorite
        self.db.commit()
        return self.get_by_id(file_id)

    def delete(self, file_id: str) -> None:
        """Delete a file and release its size from the owner's quota."""
        file = self.db.get(File, file_id)
        if not file:
            raise NotFoundError("File not found")

        with transaction(self.db):
            self.quota.release(file.owner_id, file.size)
            self.db.delete(file)

        logger.info("File %s deleted", file_id)

    def delete_many(self, file_ids: list[str], owner_id: str) -> int:
        """Delete the caller's files among ``file_ids``.

        Ids of files owned by other users are ignored, so a batch request can
        neither delete them nor discharge their owner's quota.

        Returns:
            Number of files deleted
        """
        if not file_ids:
            return 0

        owned = (File.id.in_(file_ids), File.owner_id == owner_id)
        with transaction(self.db):
            total_size = (
                self.db.query(func.coalesce(func.sum(File.size), 0)).filter(*owned).scalar()
            )
            deleted = self.db.query(File).filter(*owned).delete(synchronize_session=False)
            self.quota.release(owner_id, int(total_size))

        logger.info("Batch deleted %d files for user %s", deleted, owner_id)
        return deleted

    def get_download_url(self, file_id: str) -> str:
        file = self.db.get(File, file_id)
        if not file:
            raise NotFoundError("File not found")
        base = settings.FILE_DOWNLOAD_BASE_URL.rstrip("/")
        return f"{base}/{file.id}/{quote(file.name)}"

    def get_storage_info(self, user_id: str) -> StorageInfo:
        return self.quota.get_storage_info(user_id)

    def is_owner(self, file_id: str, user_id: str) -> bool:
        return self.policy.is_owner(file_id, user_id)

