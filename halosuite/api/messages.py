"""Conversation and message routes."""

from datetime import datetime

from fastapi import APIRouter, status
from pydantic import BaseModel, Field, model_validator

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import ForbiddenError, ValidationFailedError
from halosuite.models import Conversation, Message
from halosuite.schemas.common import APIResponse
from halosuite.schemas.user import UserBasicResponse
from halosuite.services.message_service import MessageService

router = APIRouter(prefix="/messages", tags=["Messages"])


# ============== Schemas ==============
class ConversationCreate(BaseModel):
    participantIds: list[str] = Field(..., min_length=1)
    name: str | None = None
    isGroup: bool = False


class MessageCreate(BaseModel):
    """A message for an existing conversation, or for a 1:1 chat with ``recipientId``."""

    content: str = Field(..., min_length=1)
    type: str = "text"
    conversationId: str | None = None
    recipientId: str | None = None

    @model_validator(mode="after")
    def check_target(self) -> "MessageCreate":
        if not self.conversationId and not self.recipientId:
            raise ValueError("conversationId or recipientId is required")
        return self


class MessageResponse(BaseModel):
    id: str
    conversationId: str
    content: str
    type: str
    sender: UserBasicResponse
    created_at: datetime


class ParticipantResponse(UserBasicResponse):
    role: str


class ConversationResponse(BaseModel):
    id: str
    name: str | None = None
    isGroup: bool = False
    participants: list[ParticipantResponse] = Field(default_factory=list)
    lastMessage: MessageResponse | None = None
    unreadCount: int = 0
    created_at: datetime
    updated_at: datetime


class ConversationDetailResponse(ConversationResponse):
    messages: list[MessageResponse] = Field(default_factory=list)


# ============== Helpers ==============
def message_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        conversationId=message.conversation_id,
        content=message.content,
        type=message.type,
        sender=UserBasicResponse.model_validate(message.sender),
        created_at=message.created_at,
    )


def conversation_response(
    conversation: Conversation, last_message: Message | None = None, unread: int = 0
) -> ConversationResponse:
    return ConversationResponse(
        id=conversation.id,
        name=conversation.name,
        isGroup=conversation.is_group,
        participants=[
            ParticipantResponse(
                id=p.user.id,
                email=p.user.email,
                name=p.user.name,
                avatar=p.user.avatar,
                role=p.role,
            )
            for p in conversation.participants
        ],
        lastMessage=message_response(last_message) if last_message else None,
        unreadCount=unread,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
    )


# ============== Routes ==============
@router.get("/conversations", response_model=APIResponse[list[ConversationResponse]])
async def list_conversations(
    db: DbSession, current_user: CurrentUser
) -> APIResponse[list[ConversationResponse]]:
    """List the caller's conversations, most recent activity first."""
    rows = MessageService(db).get_conversations(current_user.id)
    return APIResponse(
        data=[
            conversation_response(conversation, last_message, unread)
            for conversation, last_message, unread in rows
        ]
    )


@router.post(
    "/conversations",
    response_model=APIResponse[ConversationResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_conversation(
    conversation_data: ConversationCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[ConversationResponse]:
    conversation = MessageService(db).create_conversation(
        current_user.id,
        conversation_data.participantIds,
        name=conversation_data.name,
        is_group=conversation_data.isGroup,
    )
    return APIResponse(
        message="Conversation created successfully", data=conversation_response(conversation)
    )


@router.get(
    "/conversations/{conversation_id}", response_model=APIResponse[ConversationDetailResponse]
)
async def get_conversation(
    conversation_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[ConversationDetailResponse]:
    """Get a conversation with its recent messages. Reading it clears the caller's unread count.

    Raises:
        NotFoundError: If the conversation does not exist or the caller is not a participant
    """
    conversation, messages = MessageService(db).get_conversation(conversation_id, current_user.id)
    summary = conversation_response(conversation, messages[-1] if messages else None)
    return APIResponse(
        data=ConversationDetailResponse(
            **summary.model_dump(), messages=[message_response(m) for m in messages]
        )
    )


@router.put("/conversations/{conversation_id}/read", response_model=APIResponse[None])
async def mark_conversation_read(
    conversation_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    MessageService(db).mark_as_read(conversation_id, current_user.id)
    return APIResponse(message="Conversation marked as read")


@router.delete("/conversations/{conversation_id}", response_model=APIResponse[None])
async def leave_conversation(
    conversation_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    """Leave a conversation. Other participants keep it."""
    MessageService(db).leave_conversation(conversation_id, current_user.id)
    return APIResponse(message="Left conversation")


@router.post(
    "/send",
    response_model=APIResponse[MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    message_data: MessageCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[MessageResponse]:
    """Send a message.

    With ``recipientId`` and no ``conversationId`` the existing 1:1 conversation
    with that user is reused, or a new one is started.

    Raises:
        ForbiddenError: If the caller is not a participant of the conversation
        ValidationFailedError: If ``recipientId`` is the caller
    """
    service = MessageService(db)

    conversation_id = message_data.conversationId
    if not conversation_id:
        if message_data.recipientId == current_user.id:
            raise ValidationFailedError("Cannot start a direct conversation with yourself")
        conversation = service.find_direct_conversation(
            current_user.id, message_data.recipientId
        ) or service.create_conversation(current_user.id, [message_data.recipientId])
        conversation_id = conversation.id

    message = service.send_message(
        conversation_id, current_user.id, message_data.content, message_data.type
    )
    return APIResponse(message="Message sent", data=message_response(message))


@router.delete("/{message_id}", response_model=APIResponse[None])
async def delete_message(
    message_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    service = MessageService(db)
    if not service.is_message_owner(message_id, current_user.id):
        raise ForbiddenError("Only the sender can delete a message")
    service.delete_message(message_id)
    return APIResponse(message="Message deleted successfully")
