"""Calendar event service."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload, selectinload

from halosuite.core.database import transaction
from halosuite.core.exceptions import ForbiddenError, NotFoundError, ValidationFailedError
from halosuite.models import AttendeeStatus, CalendarEvent, EventAttendee, User
from halosuite.models.base import as_utc
from halosuite.schemas.calendar import EventCreate, EventUpdate
from halosuite.services.access import EventAccessPolicy

logger = logging.getLogger(__name__)

# Request field -> model attribute
_EVENT_FIELDS = {
    "title": "title",
    "description": "description",
    "startTime": "start_at",
    "endTime": "end_at",
    "type": "type",
    "location": "location",
    "isAllDay": "all_day",
    "color": "color",
}


def _check_window(start_at: datetime, end_at: datetime) -> None:
    if as_utc(end_at) < as_utc(start_at):
        raise ValidationFailedError("Event end must not be before its start")


class CalendarService:
    """Calendar service: events, attendees and responses."""

    def __init__(self, db: Session) -> None:
        """Initialize calendar service.

        Args:
            db: Database session
        """
        self.db = db
        self.policy = EventAccessPolicy(db)

    def get_by_id(self, event_id: str) -> CalendarEvent | None:
        return (
            self.db.query(CalendarEvent)
            .options(
                joinedload(CalendarEvent.owner),
                selectinload(CalendarEvent.attendees).joinedload(EventAttendee.user),
            )
            .filter(CalendarEvent.id == event_id)
            .first()
        )

    def get(self, event_id: str) -> CalendarEvent:
        event = self.get_by_id(event_id)
        if not event:
            raise NotFoundError("Event not found")
        return event

    def list(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CalendarEvent]:
        """List events the user owns or attends inside an optional window.

        Args:
            user_id: Caller
            start: Only events starting at or after this instant
            end: Only events ending at or before this instant

        Returns:
            Events ordered by start time
        """
        attending = self.db.query(EventAttendee.event_id).filter(EventAttendee.user_id == user_id)
        query = self.db.query(CalendarEvent).filter(
            or_(CalendarEvent.owner_id == user_id, CalendarEvent.id.in_(attending))
        )
        if start:
            query = query.filter(CalendarEvent.start_at >= as_utc(start))
        if end:
            query = query.filter(CalendarEvent.end_at <= as_utc(end))

        return (
            query.options(
                joinedload(CalendarEvent.owner),
                selectinload(CalendarEvent.attendees).joinedload(EventAttendee.user),
            )
            .order_by(CalendarEvent.start_at, CalendarEvent.id)
            .all()
        )

    def _require_user(self, user_id: str) -> None:
        user = self.db.get(User, user_id)
        if user is None or user.is_deleted:
            raise NotFoundError("User not found")

    def create(self, event_data: EventCreate, owner_id: str) -> CalendarEvent:
        """Create an event; listed attendees start as PENDING.

        Raises:
            ValidationFailedError: If the event ends before it starts
            NotFoundError: If an attendee does not exist
        """
        _check_window(event_data.startTime, event_data.endTime)
        attendee_ids = list(dict.fromkeys(event_data.attendeeIds))
        for attendee_id in attendee_ids:
            self._require_user(attendee_id)

        with transaction(self.db):
            event = CalendarEvent(
                title=event_data.title,
                description=event_data.description,
                start_at=as_utc(event_data.startTime),
                end_at=as_utc(event_data.endTime),
                type=event_data.type or "meeting",
                location=event_data.location,
                all_day=event_data.isAllDay,
                color=event_data.color,
                owner_id=owner_id,
            )
            self.db.add(event)
            self.db.flush()
            for attendee_id in attendee_ids:
                self.db.add(
                    EventAttendee(
                        event_id=event.id,
                        user_id=attendee_id,
                        status=AttendeeStatus.PENDING.value,
                    )
                )

        logger.info("Event %s created by %s", event.id, owner_id)
        return self.get(event.id)

    def update(self, event_id: str, event_data: EventUpdate) -> CalendarEvent:
        event = self.get_by_id(event_id)
        if not event:
            raise NotFoundError("Event not found")

        changes = {
            _EVENT_FIELDS[key]: as_utc(value) if isinstance(value, datetime) else value
            for key, value in event_data.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }
        _check_window(
            changes.get("start_at", event.start_at), changes.get("end_at", event.end_at)
        )

        for attr, value in changes.items():
            setattr(event, attr, value)
        self.db.commit()
        return self.get(event_id)

    def reschedule(self, event_id: str, start_at: datetime, end_at: datetime) -> CalendarEvent:
        _check_window(start_at, end_at)
        event = self.get_by_id(event_id)
        if not event:
            raise NotFoundError("Event not found")

        event.start_at = as_utc(start_at)
        event.end_at = as_utc(end_at)
        self.db.commit()
        return self.get(event_id)

    def add_attendee(self, event_id: str, user_id: str) -> CalendarEvent:
        """Invite a user; inviting an existing attendee changes nothing."""
        if self.db.get(CalendarEvent, event_id) is None:
            raise NotFoundError("Event not found")
        self._require_user(user_id)

        if self.db.get(EventAttendee, (event_id, user_id)) is None:
            self.db.add(EventAttendee(event_id=event_id, user_id=user_id))
            self.db.commit()
        return self.get(event_id)

    def remove_attendee(self, event_id: str, user_id: str) -> None:
        attendee = self.db.get(EventAttendee, (event_id, user_id))
        if not attendee:
            raise NotFoundError("Attendee not found")
        self.db.delete(attendee)
        self.db.commit()

    def respond(self, event_id: str, user_id: str, status: AttendeeStatus | str) -> CalendarEvent:
        """Record an attendee's answer to an invitation.

        Raises:
            ForbiddenError: If the user is not invited to the event
        """
        if self.db.get(CalendarEvent, event_id) is None:
            raise NotFoundError("Event not found")
        attendee = self.db.get(EventAttendee, (event_id, user_id))
        if not attendee:
            raise ForbiddenError("Only attendees can respond to an event")

        attendee.status = AttendeeStatus(status).value
        self.db.commit()
        return self.get(event_id)

    def delete(self, event_id: str) -> None:
        event = self.db.get(CalendarEvent, event_id)
        if not event:
            raise NotFoundError("Event not found")
        self.db.delete(event)
        self.db.commit()
        logger.info("Event %s deleted", event_id)

    def delete_many(self, event_ids: list[str], owner_id: str) -> int:
        """Delete the caller's events among ``event_ids``; other ids are ignored."""
        deleted = (
            self.db.query(CalendarEvent)
            .filter(CalendarEvent.id.in_(event_ids), CalendarEvent.owner_id == owner_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return deleted

    def is_owner(self, event_id: str, user_id: str) -> bool:
        return self.policy.is_owner(event_id, user_id)

    def is_attendee(self, event_id: str, user_id: str) -> bool:
        return self.policy.is_attendee(event_id, user_id)

    def has_access(self, event_id: str, user_id: str) -> bool:
        return self.policy.has_access(event_id, user_id)
