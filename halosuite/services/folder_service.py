"""Folder hierarchy service.

Folders are stored as flat rows with a parent pointer and a materialized
``path``. The path of a folder is always its parent's path plus
``"/" + name``; rename and move rewrite every descendant's path in the same
transaction with one relative UPDATE over the path prefix.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy import func, literal, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from halosuite.core.database import transaction
from halosuite.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from halosuite.models import File, Folder
from halosuite.schemas.folder import FolderTreeNode
from halosuite.services.access import OwnershipPolicy
from halosuite.services.quota_service import QuotaLedger

logger = logging.getLogger(__name__)


def check_folder_name(name: str) -> str:
    """Return the stripped name, which must be a single non-blank path segment."""
    name = (name or "").strip()
    if not name:
        raise ValidationFailedError("Folder name must not be blank")
    if "/" in name:
        raise ValidationFailedError("Folder name must not contain '/'")
    return name


def join_path(parent_path: str | None, name: str) -> str:
    """Build a folder path from the parent's path and a name."""
    return f"{parent_path or ''}/{name}"


def build_folder_tree(folders: Iterable[Folder]) -> list[FolderTreeNode]:
    """Link flat folder records into a forest.

    Every record is indexed by id first, then attached to its parent's
    children. Records without a parent are roots. Records whose parent is
    not among ``folders`` are dropped along with their subtrees.

    Args:
        folders: Folder records, in the order children should be listed

    Returns:
        Root nodes
    """
    nodes: dict[str, FolderTreeNode] = {}
    parents: dict[str, str | None] = {}
    for folder in folders:
        nodes[folder.id] = FolderTreeNode(
            id=folder.id, name=folder.name, path=folder.path, parentId=folder.parent_id
        )
        parents[folder.id] = folder.parent_id

    roots: list[FolderTreeNode] = []
    for folder_id, node in nodes.items():
        parent_id = parents[folder_id]
        if parent_id is None:
            roots.append(node)
        elif parent_id in nodes:
            nodes[parent_id].children.append(node)
        # unresolved parent: orphan, left out of the tree
    return roots


class FolderService:
    """Folder service for managing the folder hierarchy."""

    def __init__(self, db: Session) -> None:
        """Initialize folder service.

        Args:
            db: Database session
        """
        self.db = db
        self.policy = OwnershipPolicy(db, Folder)

    def get_by_id(self, folder_id: str) -> Folder | None:
        return self.db.get(Folder, folder_id)

    def get(self, folder_id: str, owner_id: str) -> Folder:
        """Get a folder visible to its owner only.

        Raises:
            NotFoundError: If the folder does not exist or belongs to someone else
        """
        folder = self.get_by_id(folder_id)
        if not folder or folder.owner_id != owner_id:
            raise NotFoundError("Folder not found")
        return folder

    def list(self, owner_id: str, parent_id: str | None = None) -> list[Folder]:
        """List direct children of ``parent_id``, or root folders when it is None."""
        query = self.db.query(Folder).filter(Folder.owner_id == owner_id)
        if parent_id:
            query = query.filter(Folder.parent_id == parent_id)
        else:
            query = query.filter(Folder.parent_id.is_(None))
        return query.order_by(Folder.name).all()

    def get_tree(self, owner_id: str) -> list[FolderTreeNode]:
        folders = (
            self.db.query(Folder).filter(Folder.owner_id == owner_id).order_by(Folder.path).all()
        )
        return build_folder_tree(folders)

    def _path_taken(self, owner_id: str, path: str) -> bool:
        found = (
            self.db.query(Folder.id)
            .filter(Folder.owner_id == owner_id, Folder.path == path)
            .first()
        )
        return found is not None

    def create(
        self,
        name: str,
        owner_id: str,
        parent_id: str | None = None,
        team_id: str | None = None,
    ) -> Folder:
        """Create a folder.

        Args:
            name: Folder name (single path segment)
            owner_id: Owner user ID
            parent_id: Optional parent folder, which must belong to the owner
            team_id: Optional team

        Returns:
            Created folder

        Raises:
            NotFoundError: If the parent is missing or not the owner's
            ConflictError: If the owner already has a folder at that path
        """
        name = check_folder_name(name)
        parent_path = None
        if parent_id:
            parent = self.get(parent_id, owner_id)
            parent_path = parent.path

        path = join_path(parent_path, name)
        if self._path_taken(owner_id, path):
            raise ConflictError(f"Folder {path} already exists")

        folder = Folder(
            name=name,
            path=path,
            parent_id=parent_id or None,
            owner_id=owner_id,
            team_id=team_id,
        )
        try:
            with transaction(self.db):
                self.db.add(folder)
        except IntegrityError as e:
            raise ConflictError(f"Folder {path} already exists") from e

        self.db.refresh(folder)
        return folder

    def _relocate(self, folder: Folder, new_path: str) -> None:
        """Set ``folder.path`` and rewrite the paths of all its descendants."""
        old_path = folder.path
        if new_path == old_path:
            return
        if self._path_taken(folder.owner_id, new_path):
            self.db.rollback()
            raise ConflictError(f"Folder {new_path} already exists")

        try:
            with transaction(self.db):
                folder.path = new_path
                self.db.flush()
                result = self.db.execute(
                    update(Folder)
                    .where(
                        Folder.owner_id == folder.owner_id,
                        Folder.path.startswith(old_path + "/", autoescape=True),
                    )
                    .values(path=literal(new_path) + func.substr(Folder.path, len(old_path) + 1))
                    .execution_options(synchronize_session=False)
                )
        except IntegrityError as e:
            raise ConflictError("A folder with the resulting path already exists") from e

        logger.info(
            "Folder %s moved from %s to %s (%d descendants updated)",
            folder.id,
            old_path,
            new_path,
            result.rowcount,
        )

    def rename(self, folder_id: str, name: str) -> Folder:
        """Rename a folder; descendants' paths follow.

        Raises:
            NotFoundError: If the folder does not exist
            ConflictError: If a sibling already has that name
        """
        name = check_folder_name(name)
        folder = self.get_by_id(folder_id)
        if not folder:
            raise NotFoundError("Folder not found")

        parent_path = folder.path.rsplit("/", 1)[0]
        folder.name = name
        self._relocate(folder, join_path(parent_path, name))
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def move(self, folder_id: str, new_parent_id: str | None) -> Folder:
        """Reparent a folder; descendants' paths follow.

        Args:
            folder_id: Folder to move
            new_parent_id: New parent, or None to make it a root

        Raises:
            NotFoundError: If the folder or new parent is missing
            ValidationFailedError: If the new parent is the folder or one of its descendants
        """
        folder = self.get_by_id(folder_id)
        if not folder:
            raise NotFoundError("Folder not found")

        parent_path = None
        if new_parent_id:
            parent = self.get(new_parent_id, folder.owner_id)
            if parent.id == folder.id or parent.path.startswith(folder.path + "/"):
                raise ValidationFailedError("Cannot move a folder into itself or its descendant")
            parent_path = parent.path

        folder.parent_id = new_parent_id or None
        self._relocate(folder, join_path(parent_path, folder.name))
        self.db.commit()
        self.db.refresh(folder)
        return folder

    def delete(self, folder_id: str) -> int:
        """Delete a folder with its subtree and the files inside it.

        The size of every removed file is released from its owner's quota in
        the same transaction.

        Returns:
            Number of files removed
        """
        folder = self.get_by_id(folder_id)
        if not folder:
            raise NotFoundError("Folder not found")

        subtree_ids = [
            row.id
            for row in self.db.query(Folder.id).filter(
                Folder.owner_id == folder.owner_id,
                Folder.path.startswith(folder.path + "/", autoescape=True),
            )
        ]
        subtree_ids.append(folder.id)

        quota = QuotaLedger(self.db)
        with transaction(self.db):
            sizes = (
                self.db.query(File.owner_id, func.coalesce(func.sum(File.size), 0))
                .filter(File.folder_id.in_(subtree_ids))
                .group_by(File.owner_id)
                .all()
            )
            for owner_id, size in sizes:
                quota.release(owner_id, int(size))
            removed_files = (
                self.db.query(File)
                .filter(File.folder_id.in_(subtree_ids))
                .delete(synchronize_session=False)
            )
            self.db.query(Folder).filter(Folder.id.in_(subtree_ids)).delete(
                synchronize_session=False
            )

        logger.info(
            "Folder %s deleted with %d subfolders and %d files",
            folder_id,
            len(subtree_ids) - 1,
            removed_files,
        )
        return removed_files

    def is_owner(self, folder_id: str, user_id: str) -> bool:
        return self.policy.is_owner(folder_id, user_id)
