"""Calendar request and response bodies."""

from datetime import datetime

from pydantic import BaseModel, Field

from halosuite.models.enums import AttendeeStatus
from halosuite.schemas.user import UserBasicResponse


class _EventFields(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    startTime: datetime
    endTime: datetime = Field(..., description="Must not be earlier than startTime")
    type: str = "meeting"
    location: str | None = None
    isAllDay: bool = False
    color: str | None = None


class EventCreate(_EventFields):
    """New event. Listed attendees are invited with status PENDING."""

    attendeeIds: list[str] = Field(default_factory=list)


class EventUpdate(BaseModel):
    """Partial update; ``None`` and empty strings leave fields unchanged.

    Attendees are managed through their own endpoints, not here.
    """

    title: str | None = Field(None, max_length=200)
    description: str | None = None
    startTime: datetime | None = None
    endTime: datetime | None = None
    type: str | None = None
    location: str | None = None
    isAllDay: bool | None = None
    color: str | None = None


class EventReschedule(BaseModel):
    startTime: datetime
    endTime: datetime


class AddAttendee(BaseModel):
    userId: str


class AttendeeRespond(BaseModel):
    status: AttendeeStatus


class AttendeeResponse(BaseModel):
    user: UserBasicResponse
    status: AttendeeStatus


class EventResponse(_EventFields):
    id: str
    owner: UserBasicResponse
    attendees: list[AttendeeResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
