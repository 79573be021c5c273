"""Notification routes."""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import ForbiddenError
from halosuite.models import Notification
from halosuite.schemas.common import APIResponse, PaginationMeta
from halosuite.services.notification_service import NotificationService

router = APIRouter(prefix="/notifications", tags=["Notifications"])


# ============== Schemas ==============
class NotificationResponse(BaseModel):
    id: str
    type: str
    title: str
    content: str
    link: str | None = None
    isRead: bool = False
    payload: dict[str, Any] | None = None
    readAt: datetime | None = None
    created_at: datetime


class UnreadCount(BaseModel):
    count: int


class UpdatedCount(BaseModel):
    updatedCount: int


# ============== Helpers ==============
def notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        type=notification.type,
        title=notification.title,
        content=notification.content,
        link=notification.link,
        isRead=notification.read,
        payload=notification.payload,
        readAt=notification.read_at,
        created_at=notification.created_at,
    )


def require_recipient(service: NotificationService, notification_id: str, user_id: str) -> None:
    if not service.is_owner(notification_id, user_id):
        raise ForbiddenError("Not your notification")


# ============== Routes ==============
@router.get("", response_model=APIResponse[list[NotificationResponse]])
async def list_notifications(
    db: DbSession,
    current_user: CurrentUser,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    unreadOnly: bool = False,
) -> APIResponse[list[NotificationResponse]]:
    """List the caller's notifications, newest first."""
    items, total, unread = NotificationService(db).list(
        current_user.id, page=page, limit=limit, unread_only=unreadOnly
    )
    return APIResponse(
        data=[notification_response(n) for n in items],
        meta=PaginationMeta.build(total, page, limit, unreadCount=unread),
    )


@router.get("/unread-count", response_model=APIResponse[UnreadCount])
async def get_unread_count(db: DbSession, current_user: CurrentUser) -> APIResponse[UnreadCount]:
    count = NotificationService(db).get_unread_count(current_user.id)
    return APIResponse(data=UnreadCount(count=count))


@router.put("/read-all", response_model=APIResponse[UpdatedCount])
async def mark_all_read(db: DbSession, current_user: CurrentUser) -> APIResponse[UpdatedCount]:
    updated = NotificationService(db).mark_all_as_read(current_user.id)
    return APIResponse(
        message="All notifications marked as read", data=UpdatedCount(updatedCount=updated)
    )


@router.put("/{notification_id}/read", response_model=APIResponse[NotificationResponse])
async def mark_read(
    notification_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[NotificationResponse]:
    service = NotificationService(db)
    require_recipient(service, notification_id, current_user.id)
    return APIResponse(data=notification_response(service.mark_as_read(notification_id)))


@router.delete("/{notification_id}", response_model=APIResponse[None])
async def delete_notification(
    notification_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    service = NotificationService(db)
    require_recipient(service, notification_id, current_user.id)
    service.delete(notification_id)
    return APIResponse(message="Notification deleted successfully")
