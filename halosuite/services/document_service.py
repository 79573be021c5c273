"""Document service for business logic."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, update
from sqlalchemy.orm import Session, joinedload, selectinload

from halosuite.core.database import transaction
from halosuite.core.exceptions import NotFoundError
from halosuite.models import Document, DocumentShare, DocumentTag, SharePermission, Tag
from halosuite.schemas.common import page_offset
from halosuite.schemas.document import DocumentCreate, DocumentUpdate
from halosuite.services.access import DocumentAccessPolicy
from halosuite.services.notification_service import NotificationService
from halosuite.services.sharing_service import SharingLedger

logger = logging.getLogger(__name__)


def content_size(content: str | None) -> int:
    """Size of a document body in UTF-8 bytes."""
    return len((content or "").encode("utf-8"))


class DocumentService:
    """Document service for managing document operations."""

    def __init__(self, db: Session) -> None:
        """Initialize document service.

        Args:
            db: Database session
        """
        self.db = db
        self.policy = DocumentAccessPolicy(db)
        self.sharing = SharingLedger(db)

    def get_by_id(self, document_id: str, with_relations: bool = True) -> Document | None:
        """Get document by ID.

        Args:
            document_id: Document ID
            with_relations: Whether to eager load owner and tags

        Returns:
            Document or None if not found
        """
        query = self.db.query(Document).filter(Document.id == document_id)
        if with_relations:
            query = query.options(
                joinedload(Document.owner),
                selectinload(Document.tags).joinedload(DocumentTag.tag),
            )
        return query.first()

    def get(self, document_id: str) -> Document:
        document = self.get_by_id(document_id)
        if not document:
            raise NotFoundError("Document not found")
        return document

    def list(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        folder: str | None = None,
        tags: list[str] | None = None,
    ) -> tuple[list[Document], int]:
        """Get the documents a user can see, most recently updated first.

        Args:
            user_id: Caller; sees owned documents plus those reached by an active grant
            page: Page number
            limit: Items per page
            search: Case-insensitive title search
            folder: Folder label filter
            tags: Documents carrying any of these tag names

        Returns:
            Tuple of (documents, total_count)
        """
        query = self.db.query(Document).filter(
            or_(Document.owner_id == user_id, self.sharing.active_grant_clause(user_id))
        )

        if folder:
            query = query.filter(Document.folder == folder)
        if tags:
            tagged = (
                self.db.query(DocumentTag.document_id)
                .join(Tag, Tag.id == DocumentTag.tag_id)
                .filter(Tag.name.in_(tags))
            )
            query = query.filter(Document.id.in_(tagged))
        if search:
            query = query.filter(Document.title.ilike(f"%{search}%"))

        total = query.count()
        documents = (
            query.options(
                joinedload(Document.owner),
                selectinload(Document.tags).joinedload(DocumentTag.tag),
            )
            .order_by(Document.updated_at.desc(), Document.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return documents, total

    def increment_views(self, document_id: str) -> None:
        self.db.execute(
            update(Document)
            .where(Document.id == document_id)
            .values(views=Document.views + 1, updated_at=Document.updated_at)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()

    def create(self, document_data: DocumentCreate, owner_id: str) -> Document:
        """Create a new document.

        Args:
            document_data: Document creation data
            owner_id: Owner user ID

        Returns:
            Created document
        """
        with transaction(self.db):
            document = Document(
                title=document_data.title,
                content=document_data.content,
                folder=document_data.folder or None,
                type=document_data.type or "doc",
                size=content_size(document_data.content),
                team_id=document_data.teamId,
                owner_id=owner_id,
            )
            self.db.add(document)
            self.db.flush()
            if document_data.tags:
                self._replace_tags(document.id, document_data.tags)

        logger.info("Document %s created by %s", document.id, owner_id)
        return self.get(document.id)

    def update(self, document_id: str, document_data: DocumentUpdate) -> Document:
        """Apply a partial update; unset, None and empty fields are kept."""
        document = self.get_by_id(document_id, with_relations=False)
        if not document:
            raise NotFoundError("Document not found")

        changes = document_data.model_dump(exclude_unset=True)
        for key, value in changes.items():
            if value is None or value == "":
                continue
            setattr(document, key, value)
            if key == "content":
                document.size = content_size(value)

        self.db.commit()
        return self.get(document_id)

    def rename(self, document_id: str, title: str) -> Document:
        document = self.get_by_id(document_id, with_relations=False)
        if not document:
            raise NotFoundError("Document not found")

        document.title = title
        self.db.commit()
        return self.get(document_id)

    def move(self, document_id: str, folder: str | None) -> Document:
        """Move a document to another folder label (None for the root)."""
        document = self.get_by_id(document_id, with_relations=False)
        if not document:
            raise NotFoundError("Document not found")

        document.folder = folder or None
        self.db.commit()
        return self.get(document_id)

    def update_tags(self, document_id: str, tags: list[str]) -> Document:
        """Replace the document's tag set."""
        if self.get_by_id(document_id, with_relations=False) is None:
            raise NotFoundError("Document not found")

        with transaction(self.db):
            self._replace_tags(document_id, tags)
        return self.get(document_id)

    def _replace_tags(self, document_id: str, tag_names: list[str]) -> None:
        """Make the document carry exactly ``tag_names``, creating missing tags."""
        wanted: list[str] = []
        names = [name.strip() for name in tag_names if name and name.strip()]
        for tag_name in dict.fromkeys(names):
            tag = self.db.query(Tag).filter(Tag.name == tag_name).first()
            if not tag:
                tag = Tag(name=tag_name)
                self.db.add(tag)
                self.db.flush()
            wanted.append(tag.id)

        current = {
            link.tag_id: link
            for link in self.db.query(DocumentTag).filter(DocumentTag.document_id == document_id)
        }
        for tag_id, link in current.items():
            if tag_id not in wanted:
                self.db.delete(link)
        for tag_id in wanted:
            if tag_id not in current:
                self.db.add(DocumentTag(document_id=document_id, tag_id=tag_id))

    def share(
        self,
        document_id: str,
        sharer_id: str,
        *,
        user_id: str | None = None,
        team_id: str | None = None,
        permission: SharePermission | str = SharePermission.READ,
        expires_at: datetime | None = None,
    ) -> DocumentShare:
        """Share a document and notify a directly named grantee.

        Args:
            document_id: Document ID
            sharer_id: User performing the share
            user_id: User to share with
            team_id: Team to share with
            permission: Permission level
            expires_at: Optional expiry

        Returns:
            The created or updated grant
        """
        document = self.get_by_id(document_id, with_relations=False)
        if not document:
            raise NotFoundError("Document not found")

        def notify(grant: DocumentShare) -> None:
            if not grant.shared_with_id or grant.shared_with_id == sharer_id:
                return
            NotificationService(self.db).create(
                user_id=grant.shared_with_id,
                type="document_shared",
                title="Document shared with you",
                content=f'"{document.title}" was shared with you',
                link=f"/documents/{document_id}",
                payload={"documentId": document_id, "permission": grant.permission},
                commit=False,
            )

        return self.sharing.share(
            document_id,
            user_id=user_id,
            team_id=team_id,
            permission=permission,
            expires_at=expires_at,
            on_granted=notify,
        )

    def unshare(
        self, document_id: str, *, user_id: str | None = None, team_id: str | None = None
    ) -> bool:
        return self.sharing.unshare(document_id, user_id=user_id, team_id=team_id)

    def list_shares(self, document_id: str) -> list[DocumentShare]:
        return self.sharing.list_shares(document_id)

    def delete(self, document_id: str) -> None:
        document = self.get_by_id(document_id, with_relations=False)
        if not document:
            raise NotFoundError("Document not found")

        self.db.delete(document)
        self.db.commit()
        logger.info("Document %s deleted", document_id)

    def batch_delete(self, document_ids: list[str], owner_id: str) -> int:
        """Delete the caller's documents among ``document_ids``; other ids are ignored.

        Returns:
            Number of deleted documents
        """
        deleted = (
            self.db.query(Document)
            .filter(Document.id.in_(document_ids), Document.owner_id == owner_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        logger.info("Batch deleted %d documents for user %s", deleted, owner_id)
        return deleted

    def is_owner(self, document_id: str, user_id: str) -> bool:
        return self.policy.is_owner(document_id, user_id)

    def has_access(self, document_id: str, user_id: str) -> bool:
        return self.policy.has_access(document_id, user_id)
