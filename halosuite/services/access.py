"""Ownership and access checks shared by every resource service.

Each resource type gets a policy answering ``is_owner`` and ``has_access``.
All of them reduce to ``owner_of``, the single owner lookup; document access
additionally consults the sharing ledger, events and teams admit their
attendees and members for reads, and conversations use ``is_participant``
against the roster instead of ownership.

Checks fail closed: a resource that cannot be loaded has no owner and grants
no access.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import exists, select
from sqlalchemy.orm import Session

from halosuite.models import (
    CalendarEvent,
    ConversationParticipant,
    Document,
    EventAttendee,
    Message,
    Notification,
    Team,
    TeamMember,
)
from halosuite.models.base import Base
from halosuite.services.sharing_service import SharingLedger


class AccessPolicy(Protocol):
    def is_owner(self, resource_id: str, user_id: str) -> bool: ...

    def has_access(self, resource_id: str, user_id: str) -> bool: ...


def owner_of(
    db: Session, model: type[Base], resource_id: str, owner_column: str = "owner_id"
) -> str | None:
    """Return the owner id of a resource, or None if it does not exist.

    Args:
        db: Database session
        model: Mapped class holding the owner column
        resource_id: Primary key of the resource
        owner_column: Name of the column holding the owner's user id
    """
    column = getattr(model, owner_column)
    return db.execute(select(column).where(model.id == resource_id)).scalar_one_or_none()


class OwnershipPolicy:
    """Access equals ownership (files, folders)."""

    def __init__(self, db: Session, model: type[Base], owner_column: str = "owner_id") -> None:
        self.db = db
        self.model = model
        self.owner_column = owner_column

    def is_owner(self, resource_id: str, user_id: str) -> bool:
        if not resource_id or not user_id:
            return False
        owner_id = owner_of(self.db, self.model, resource_id, self.owner_column)
        return owner_id is not None and owner_id == user_id

    def has_access(self, resource_id: str, user_id: str) -> bool:
        return self.is_owner(resource_id, user_id)


class DocumentAccessPolicy(OwnershipPolicy):
    """Owner, or an active direct grant, or an active grant to a team the user belongs to."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Document)

    def has_access(self, resource_id: str, user_id: str) -> bool:
        if self.is_owner(resource_id, user_id):
            return True

        grant = SharingLedger(self.db).active_grant_clause(user_id)
        found = self.db.query(Document.id).filter(Document.id == resource_id, grant).first()
        return found is not None


class EventAccessPolicy(OwnershipPolicy):
    """Owners mutate; attendees may read."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, CalendarEvent)

    def is_attendee(self, event_id: str, user_id: str) -> bool:
        stmt = select(
            exists().where(EventAttendee.event_id == event_id, EventAttendee.user_id == user_id)
        )
        return bool(self.db.execute(stmt).scalar())

    def has_access(self, resource_id: str, user_id: str) -> bool:
        return self.is_owner(resource_id, user_id) or self.is_attendee(resource_id, user_id)


class TeamAccessPolicy(OwnershipPolicy):
    """Owners mutate; members may read."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Team)

    def is_member(self, team_id: str, user_id: str) -> bool:
        stmt = select(exists().where(TeamMember.team_id == team_id, TeamMember.user_id == user_id))
        return bool(self.db.execute(stmt).scalar())

    def has_access(self, resource_id: str, user_id: str) -> bool:
        return self.is_owner(resource_id, user_id) or self.is_member(resource_id, user_id)


class MessageOwnershipPolicy(OwnershipPolicy):
    """A message is owned by its sender."""

    def __init__(self, db: Session) -> None:
        super().__init__(db, Message, owner_column="sender_id")


class NotificationPolicy(OwnershipPolicy):
    def __init__(self, db: Session) -> None:
        super().__init__(db, Notification, owner_column="user_id")


class ParticipantPolicy:
    """Conversation access is roster membership, not ownership."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def is_participant(self, conversation_id: str, user_id: str) -> bool:
        if not conversation_id or not user_id:
            return False
        stmt = select(
            exists().where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
        )
        return bool(self.db.execute(stmt).scalar())

    def has_access(self, resource_id: str, user_id: str) -> bool:
        return self.is_participant(resource_id, user_id)
