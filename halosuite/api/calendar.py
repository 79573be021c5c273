"""Calendar event routes."""

from datetime import datetime

from fastapi import APIRouter, Query, status

from halosuite.api.deps import CurrentUser, DbSession
from halosuite.core.exceptions import ForbiddenError, NotFoundError
from halosuite.models import CalendarEvent
from halosuite.schemas.calendar import (
    AddAttendee,
    AttendeeRespond,
    AttendeeResponse,
    EventCreate,
    EventReschedule,
    EventResponse,
    EventUpdate,
)
from halosuite.schemas.common import APIResponse, BatchDeleteRequest, DeletedCount
from halosuite.schemas.user import UserBasicResponse
from halosuite.services.calendar_service import CalendarService

router = APIRouter(prefix="/calendar", tags=["Calendar"])


def event_response(event: CalendarEvent) -> EventResponse:
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        startTime=event.start_at,
        endTime=event.end_at,
        type=event.type,
        location=event.location,
        isAllDay=event.all_day,
        color=event.color,
        owner=UserBasicResponse.model_validate(event.owner),
        attendees=[
            AttendeeResponse(user=UserBasicResponse.model_validate(a.user), status=a.status)
            for a in event.attendees
        ],
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


def require_owner(service: CalendarService, event_id: str, user_id: str) -> None:
    if not service.is_owner(event_id, user_id):
        raise ForbiddenError("Only the event owner can do this")


@router.get("/events", response_model=APIResponse[list[EventResponse]])
async def list_events(
    db: DbSession,
    current_user: CurrentUser,
    start: datetime | None = Query(None, description="Events starting at or after"),
    end: datetime | None = Query(None, description="Events ending at or before"),
) -> APIResponse[list[EventResponse]]:
    """List events the caller owns or attends."""
    events = CalendarService(db).list(current_user.id, start=start, end=end)
    return APIResponse(data=[event_response(event) for event in events])


@router.get("/events/{event_id}", response_model=APIResponse[EventResponse])
async def get_event(
    event_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    service = CalendarService(db)
    if not service.has_access(event_id, current_user.id):
        raise NotFoundError("Event not found")
    return APIResponse(data=event_response(service.get(event_id)))


@router.post(
    "/events",
    response_model=APIResponse[EventResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_event(
    event_data: EventCreate, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    event = CalendarService(db).create(event_data, current_user.id)
    return APIResponse(message="Event created successfully", data=event_response(event))


@router.put("/events/{event_id}", response_model=APIResponse[EventResponse])
async def update_event(
    event_id: str, event_data: EventUpdate, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    service = CalendarService(db)
    require_owner(service, event_id, current_user.id)
    event = service.update(event_id, event_data)
    return APIResponse(message="Event updated successfully", data=event_response(event))


@router.patch("/events/{event_id}/reschedule", response_model=APIResponse[EventResponse])
async def reschedule_event(
    event_id: str, schedule: EventReschedule, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    service = CalendarService(db)
    require_owner(service, event_id, current_user.id)
    event = service.reschedule(event_id, schedule.startTime, schedule.endTime)
    return APIResponse(message="Event rescheduled successfully", data=event_response(event))


@router.post("/events/{event_id}/attendees", response_model=APIResponse[EventResponse])
async def add_attendee(
    event_id: str, attendee_data: AddAttendee, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    service = CalendarService(db)
    require_owner(service, event_id, current_user.id)
    event = service.add_attendee(event_id, attendee_data.userId)
    return APIResponse(message="Attendee added successfully", data=event_response(event))


@router.delete("/events/{event_id}/attendees/{user_id}", response_model=APIResponse[None])
async def remove_attendee(
    event_id: str, user_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    """Remove an attendee. Attendees may remove themselves."""
    service = CalendarService(db)
    if user_id != current_user.id:
        require_owner(service, event_id, current_user.id)
    service.remove_attendee(event_id, user_id)
    return APIResponse(message="Attendee removed successfully")


@router.post("/events/{event_id}/respond", response_model=APIResponse[EventResponse])
async def respond_to_event(
    event_id: str, response: AttendeeRespond, db: DbSession, current_user: CurrentUser
) -> APIResponse[EventResponse]:
    """Accept or decline an invitation."""
    event = CalendarService(db).respond(event_id, current_user.id, response.status)
    return APIResponse(message="Response recorded", data=event_response(event))


@router.post("/events/batch-delete", response_model=APIResponse[DeletedCount])
async def batch_delete_events(
    delete_data: BatchDeleteRequest, db: DbSession, current_user: CurrentUser
) -> APIResponse[DeletedCount]:
    deleted = CalendarService(db).delete_many(delete_data.ids, current_user.id)
    return APIResponse(
        message=f"Successfully deleted {deleted} events",
        data=DeletedCount(deletedCount=deleted),
    )


@router.delete("/events/{event_id}", response_model=APIResponse[None])
async def delete_event(
    event_id: str, db: DbSession, current_user: CurrentUser
) -> APIResponse[None]:
    service = CalendarService(db)
    require_owner(service, event_id, current_user.id)
    service.delete(event_id)
    return APIResponse(message="Event deleted successfully")
