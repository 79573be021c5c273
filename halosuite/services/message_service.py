"""Conversation and message service.

Each participant row carries the participant's own read state. Sending a
message bumps ``unread_count`` of every other participant with a relative
UPDATE, so concurrent senders cannot lose increments.
"""

import logging

from sqlalchemy import and_, case, func, or_, update
from sqlalchemy.orm import Session, joinedload

from halosuite.core.config import settings
from halosuite.core.database import transaction
from halosuite.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from halosuite.models import Conversation, ConversationParticipant, Message, ParticipantRole, User
from halosuite.models.base import utcnow
from halosuite.services.access import MessageOwnershipPolicy, ParticipantPolicy

logger = logging.getLogger(__name__)


class MessageService:
    """Message service for conversations, participants and messages."""

    def __init__(self, db: Session) -> None:
        """Initialize message service.

        Args:
            db: Database session
        """
        self.db = db
        self.participants = ParticipantPolicy(db)
        self.messages = MessageOwnershipPolicy(db)

    def _participant(self, conversation_id: str, user_id: str) -> ConversationParticipant | None:
        return self.db.get(ConversationParticipant, (conversation_id, user_id))

    def get_by_id(self, conversation_id: str) -> Conversation | None:
        return (
            self.db.query(Conversation)
            .options(joinedload(Conversation.participants).joinedload(ConversationParticipant.user))
            .filter(Conversation.id == conversation_id)
            .first()
        )

    def create_conversation(
        self,
        creator_id: str,
        participant_ids: list[str],
        name: str | None = None,
        is_group: bool = False,
    ) -> Conversation:
        """Create a conversation.

        The creator is always a participant. Duplicate ids are collapsed, and a
        conversation with more than two participants is always a group.

        Args:
            creator_id: Creating user, recorded with the ``owner`` role
            participant_ids: Other participants
            name: Optional display name
            is_group: Requested group flag

        Returns:
            Created conversation with its participants

        Raises:
            NotFoundError: If a participant id names no active user
        """
        member_ids = list(dict.fromkeys([creator_id, *participant_ids]))

        known = (
            self.db.query(func.count(User.id))
            .filter(User.id.in_(member_ids), User.deleted_at.is_(None))
            .scalar()
        )
        if known != len(member_ids):
            raise NotFoundError("One or more participants not found")

        with transaction(self.db):
            conversation = Conversation(name=name, is_group=is_group or len(member_ids) > 2)
            self.db.add(conversation)
            self.db.flush()
            for member_id in member_ids:
                role = ParticipantRole.OWNER if member_id == creator_id else ParticipantRole.MEMBER
                self.db.add(
                    ConversationParticipant(
                        conversation_id=conversation.id,
                        user_id=member_id,
                        role=role.value,
                    )
                )

        logger.info(
            "Conversation %s created by %s with %d participants",
            conversation.id,
            creator_id,
            len(member_ids),
        )
        return self.get_by_id(conversation.id)

    def find_direct_conversation(self, user_id: str, other_id: str) -> Conversation | None:
        """Find an existing 1:1 conversation between two users."""
        if user_id == other_id:
            return None
        mine = self.db.query(ConversationParticipant.conversation_id).filter(
            ConversationParticipant.user_id == user_id
        )
        theirs = self.db.query(ConversationParticipant.conversation_id).filter(
            ConversationParticipant.user_id == other_id
        )
        return (
            self.db.query(Conversation)
            .filter(
                Conversation.is_group.is_(False),
                Conversation.id.in_(mine),
                Conversation.id.in_(theirs),
            )
            .order_by(Conversation.updated_at.desc())
            .first()
        )

    def send_message(
        self, conversation_id: str, sender_id: str, content: str, type: str = "text"
    ) -> Message:
        """Append a message in one transaction.

        The message is inserted, the conversation's ``updated_at`` advances and
        every participant other than the sender gets ``unread_count + 1``.

        Raises:
            ValidationFailedError: If the content is empty
            ForbiddenError: If the sender is not a participant
        """
        if not content:
            raise ValidationFailedError("Message content must not be empty")
        if not self.is_participant(conversation_id, sender_id):
            raise ForbiddenError("Not a participant in this conversation")

        now = utcnow()
        with transaction(self.db):
            message = Message(
                conversation_id=conversation_id,
                sender_id=sender_id,
                content=content,
                type=type or "text",
                created_at=now,
            )
            self.db.add(message)
            self.db.flush()
            self.db.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(updated_at=now)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(ConversationParticipant)
                .where(
                    ConversationParticipant.conversation_id == conversation_id,
                    ConversationParticipant.user_id != sender_id,
                )
                .values(unread_count=ConversationParticipant.unread_count + 1)
                .execution_options(synchronize_session=False)
            )

        logger.debug("Message %s sent to conversation %s", message.id, conversation_id)
        return (
            self.db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.id == message.id)
            .one()
        )

    def get_last_message(self, conversation_id: str) -> Message | None:
        return (
            self.db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first()
        )

    def get_conversations(self, user_id: str) -> list[tuple[Conversation, Message | None, int]]:
        """List the user's conversations, most recent activity first.

        Returns:
            Tuples of (conversation, last message, the user's unread count)
        """
        rows = (
            self.db.query(Conversation, ConversationParticipant.unread_count)
            .join(
                ConversationParticipant,
                and_(
                    ConversationParticipant.conversation_id == Conversation.id,
                    ConversationParticipant.user_id == user_id,
                ),
            )
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
            .all()
        )
        return [
            (conversation, self.get_last_message(conversation.id), unread)
            for conversation, unread in rows
        ]

    def get_conversation(
        self, conversation_id: str, user_id: str, limit: int | None = None
    ) -> tuple[Conversation, list[Message]]:
        """Fetch a conversation's latest messages and mark it read for the caller.

        Args:
            conversation_id: Conversation ID
            user_id: Caller, who must be a participant
            limit: Number of most recent messages; defaults to MESSAGE_HISTORY_LIMIT

        Returns:
            The conversation and its messages in chronological order

        Raises:
            NotFoundError: If the conversation does not exist or the caller is not in it
        """
        if not self.is_participant(conversation_id, user_id):
            raise NotFoundError("Conversation not found")

        latest = (
            self.db.query(Message)
            .options(joinedload(Message.sender))
            .filter(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .limit(limit or settings.MESSAGE_HISTORY_LIMIT)
            .all()
        )
        self.mark_as_read(conversation_id, user_id)
        return self.get_by_id(conversation_id), list(reversed(latest))

    def mark_as_read(self, conversation_id: str, user_id: str) -> None:
        """Zero the caller's unread counter and stamp ``last_read_at``.

        Raises:
            NotFoundError: If the caller is not a participant
        """
        result = self.db.execute(
            update(ConversationParticipant)
            .where(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
            .values(unread_count=0, last_read_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            raise NotFoundError("Conversation not found")
        self.db.commit()

    def get_unread_count(self, conversation_id: str, user_id: str) -> int:
        participant = self._participant(conversation_id, user_id)
        return participant.unread_count if participant else 0

    def delete_message(self, message_id: str) -> None:
        """Delete a message and take it back out of the unread counters.

        Participants other than the sender who have not read past the message
        get ``unread_count - 1``, floored at 0, in the same transaction.

        Raises:
            NotFoundError: If the message does not exist
        """
        message = self.db.get(Message, message_id)
        if not message:
            raise NotFoundError("Message not found")

        participant = ConversationParticipant
        with transaction(self.db):
            self.db.execute(
                update(participant)
                .where(
                    participant.conversation_id == message.conversation_id,
                    participant.user_id != message.sender_id,
                    or_(
                        participant.last_read_at.is_(None),
                        participant.last_read_at < message.created_at,
                    ),
                )
                .values(
                    unread_count=case(
                        (participant.unread_count > 0, participant.unread_count - 1),
                        else_=0,
                    )
                )
                .execution_options(synchronize_session=False)
            )
            self.db.delete(message)
        logger.info("Message %s deleted", message_id)

    def leave_conversation(self, conversation_id: str, user_id: str) -> None:
        """Remove the caller from the roster; later messages no longer count for them."""
        deleted = (
            self.db.query(ConversationParticipant)
            .filter(
                ConversationParticipant.conversation_id == conversation_id,
                ConversationParticipant.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        if not deleted:
            self.db.rollback()
            raise NotFoundError("Conversation not found")
        self.db.commit()
        logger.info("User %s left conversation %s", user_id, conversation_id)

    def is_participant(self, conversation_id: str, user_id: str) -> bool:
        return self.participants.is_participant(conversation_id, user_id)

    def is_message_owner(self, message_id: str, user_id: str) -> bool:
        return self.messages.is_owner(message_id, user_id)
