"""Calendar events and their attendee list."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from halosuite.models.base import Base, CreatedAt, Timestamps, UlidPrimaryKey
from halosuite.models.enums import AttendeeStatus, attendee_status_enum

if TYPE_CHECKING:
    from halosuite.models.user import User


class CalendarEvent(UlidPrimaryKey, Timestamps, Base):
    """Event on the owner's calendar. ``end_at`` never precedes ``start_at``."""

    __tablename__ = "calendar_events"
    __table_args__ = (
        Index("idx_calendar_events_owner_id", "owner_id"),
        Index("idx_calendar_events_window", "start_at", "end_at"),
    )

    title: Mapped[str] = mapped_column(String)
    description: Mapped[str | None] = mapped_column(Text)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    type: Mapped[str] = mapped_column(String, default="meeting")
    color: Mapped[str | None] = mapped_column(String)
    all_day: Mapped[bool] = mapped_column(default=False, server_default=false())
    location: Mapped[str | None] = mapped_column(String)
    owner_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))

    owner: Mapped[User] = relationship(back_populates="owned_events", foreign_keys=[owner_id])
    attendees: Mapped[list[EventAttendee]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<CalendarEvent {self.id} {self.title!r}>"


class EventAttendee(CreatedAt, Base):
    """Invitation of one user to one event, with their RSVP."""

    __tablename__ = "event_attendees"
    __table_args__ = (Index("idx_event_attendees_user_id", "user_id"),)

    event_id: Mapped[str] = mapped_column(
        ForeignKey("calendar_events.id", ondelete="CASCADE"), primary_key=True
    )
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    status: Mapped[str] = mapped_column(
        attendee_status_enum,
        default=AttendeeStatus.PENDING.value,
        server_default=AttendeeStatus.PENDING.value,
    )

    event: Mapped[CalendarEvent] = relationship(back_populates="attendees")
    user: Mapped[User] = relationship(back_populates="event_attendances")
