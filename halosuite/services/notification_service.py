"""Notification service."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from halosuite.core.exceptions import NotFoundError
from halosuite.models import Notification
from halosuite.models.base import utcnow
from halosuite.schemas.common import page_offset
from halosuite.services.access import NotificationPolicy


class NotificationService:
    """Per-user notification inbox."""

    def __init__(self, db: Session) -> None:
        """Initialize notification service.

        Args:
            db: Database session
        """
        self.db = db
        self.policy = NotificationPolicy(db)

    def list(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 20,
        unread_only: bool = False,
    ) -> tuple[list[Notification], int, int]:
        """List notifications newest first.

        Args:
            user_id: Recipient
            page: Page number (1-indexed)
            limit: Items per page
            unread_only: Only return unread notifications

        Returns:
            Tuple of (notifications, total matching, unread count)
        """
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))

        total = query.count()
        items = (
            query.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(page_offset(page, limit))
            .limit(limit)
            .all()
        )
        return items, total, self.get_unread_count(user_id)

    def get_unread_count(self, user_id: str) -> int:
        return (
            self.db.query(func.count(Notification.id))
            .filter(Notification.user_id == user_id, Notification.read.is_(False))
            .scalar()
            or 0
        )

    def get_by_id(self, notification_id: str) -> Notification | None:
        return self.db.get(Notification, notification_id)

    def create(
        self,
        user_id: str,
        type: str,
        title: str,
        content: str,
        link: str | None = None,
        payload: dict[str, Any] | None = None,
        commit: bool = True,
    ) -> Notification:
        """Create a notification.

        Args:
            user_id: Recipient
            type: Category (system, user, message, task, alert, ...)
            title: Short title
            content: Body text
            link: Optional in-app link
            payload: Optional structured data
            commit: Commit immediately; pass False to join the caller's transaction

        Returns:
            Created notification
        """
        notification = Notification(
            user_id=user_id,
            type=type,
            title=title,
            content=content,
            link=link,
            payload=payload,
        )
        self.db.add(notification)
        if commit:
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_as_read(self, notification_id: str) -> Notification:
        notification = self.get_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")

        if not notification.read:
            notification.read = True
            notification.read_at = utcnow()
            self.db.commit()
            self.db.refresh(notification)
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read.

        Returns:
            Number of notifications updated
        """
        result = self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.read.is_(False))
            .values(read=True, read_at=utcnow())
        )
        self.db.commit()
        return result.rowcount

    def delete(self, notification_id: str) -> None:
        notification = self.get_by_id(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        self.db.delete(notification)
        self.db.commit()

    def is_owner(self, notification_id: str, user_id: str) -> bool:
        return self.policy.is_owner(notification_id, user_id)
