"""Document sharing ledger.

A grant gives one user or one team a permission level on one document,
optionally until ``expires_at``. There is at most one grant per
(document, grantee); sharing again overwrites it. Expiry is evaluated when
access is checked, expired rows stay in the table.
"""

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy import ColumnElement, and_, exists, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from halosuite.core.exceptions import NotFoundError, ValidationFailedError
from halosuite.models import Document, DocumentShare, SharePermission, Team, TeamMember, User
from halosuite.models.base import as_utc, utcnow

logger = logging.getLogger(__name__)


class SharingLedger:
    """Grants on documents."""

    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def _grantee_filter(user_id: str | None, team_id: str | None) -> ColumnElement[bool]:
        if bool(user_id) == bool(team_id):
            raise ValidationFailedError("Exactly one of userId or teamId is required")
        if user_id:
            return DocumentShare.shared_with_id == user_id
        return DocumentShare.team_id == team_id

    def _user_exists(self, user_id: str) -> bool:
        found = self.db.query(User.id).filter(User.id == user_id, User.deleted_at.is_(None)).first()
        return found is not None

    def _find(
        self, document_id: str, user_id: str | None, team_id: str | None
    ) -> DocumentShare | None:
        grantee_filter = self._grantee_filter(user_id, team_id)
        return (
            self.db.query(DocumentShare)
            .filter(DocumentShare.document_id == document_id, grantee_filter)
            .first()
        )

    def share(
        self,
        document_id: str,
        *,
        user_id: str | None = None,
        team_id: str | None = None,
        permission: SharePermission | str = SharePermission.READ,
        expires_at: datetime | None = None,
        on_granted: Callable[[DocumentShare], None] | None = None,
    ) -> DocumentShare:
        """Grant or update access to a document.

        Args:
            document_id: Document to share
            user_id: Grantee user (exclusive with team_id)
            team_id: Grantee team (exclusive with user_id)
            permission: READ, EDIT or COMMENT; READ when omitted
            expires_at: Optional expiry of the grant
            on_granted: Called with the grant before commit, to join side effects
                to the same transaction

        Returns:
            The created or updated grant

        Raises:
            ValidationFailedError: If not exactly one grantee is given
            NotFoundError: If the document or grantee does not exist
        """
        grantee_filter = self._grantee_filter(user_id, team_id)
        permission = SharePermission(permission or SharePermission.READ).value
        expires_at = as_utc(expires_at) if expires_at else None

        if self.db.get(Document, document_id) is None:
            raise NotFoundError("Document not found")
        if user_id and not self._user_exists(user_id):
            raise NotFoundError("User not found")
        if team_id and self.db.get(Team, team_id) is None:
            raise NotFoundError("Team not found")

        grant = self._find(document_id, user_id, team_id)
        if grant is None:
            grant = DocumentShare(
                document_id=document_id,
                shared_with_id=user_id,
                team_id=team_id,
                permission=permission,
                expires_at=expires_at,
            )
            self.db.add(grant)
            try:
                self.db.flush()
            except IntegrityError:
                # A concurrent share of the same grantee won; update that row instead
                self.db.rollback()
                grant = (
                    self.db.query(DocumentShare)
                    .filter(DocumentShare.document_id == document_id, grantee_filter)
                    .one()
                )
                grant.permission = permission
                grant.expires_at = expires_at
        else:
            grant.permission = permission
            grant.expires_at = expires_at

        if on_granted is not None:
            on_granted(grant)
        self.db.commit()
        self.db.refresh(grant)

        logger.info(
            "Document %s shared with %s as %s",
            document_id,
            f"user {user_id}" if user_id else f"team {team_id}",
            permission,
        )
        return grant

    def unshare(
        self, document_id: str, *, user_id: str | None = None, team_id: str | None = None
    ) -> bool:
        """Remove a grant. Removing a grant that does not exist is not an error.

        Returns:
            True if a grant was removed
        """
        grantee_filter = self._grantee_filter(user_id, team_id)
        deleted = (
            self.db.query(DocumentShare)
            .filter(DocumentShare.document_id == document_id, grantee_filter)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        if deleted:
            logger.info("Document %s unshared from %s", document_id, user_id or f"team {team_id}")
        return deleted > 0

    def list_shares(self, document_id: str) -> list[DocumentShare]:
        return (
            self.db.query(DocumentShare)
            .filter(DocumentShare.document_id == document_id)
            .order_by(DocumentShare.created_at)
            .all()
        )

    def active_grant_clause(self, user_id: str) -> ColumnElement[bool]:
        """SQL predicate: the correlated ``Document`` has an active grant reaching ``user_id``.

        A grant reaches the user directly, or through a team the user is
        currently a member of.
        """
        now = utcnow()
        active = or_(DocumentShare.expires_at.is_(None), DocumentShare.expires_at > now)
        direct = exists().where(
            DocumentShare.document_id == Document.id,
            DocumentShare.shared_with_id == user_id,
            active,
        )
        via_team = exists().where(
            DocumentShare.document_id == Document.id,
            DocumentShare.team_id.is_not(None),
            active,
            exists().where(
                and_(TeamMember.team_id == DocumentShare.team_id, TeamMember.user_id == user_id)
            ),
        )
        return or_(direct, via_team)
