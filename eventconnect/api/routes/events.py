from fastapi import APIRouter, Depends, Query, Response, status
from eventconnect.schemas import EventCreate, EventUpdate, EventWithOrganizer, UserOut, StatusMessage
from eventconnect.db.models.event import EventCategory
from eventconnect.db.session import get_session
from eventconnect.services.event_service import EventService
from eventconnect.auth import get_current_user, get_optional_user
from eventconnect.core.config import settings
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(session: AsyncSession = Depends(get_session)) -> EventService:
    return EventService(session)


@router.get("", response_model=List[EventWithOrganizer])
async def get_feed(
    category: Optional[EventCategory] = Query(None, description="Filter by event category"),
    limit: Optional[int] = Query(None, ge=1, le=100, description="Page size"),
    offset: int = Query(0, ge=0),
    user=Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    """
    Home feed: upcoming active events, newest first.

    Signed-in viewers get their own RSVP status on each event and do not see
    events they skipped.
    """
    return await event_service.feed(
        viewer_id=user.id if user else None,
        category=category,
        limit=limit or settings.FEED_PAGE_LIMIT,
        offset=offset,
    )


@router.get("/browse", response_model=List[EventWithOrganizer])
async def browse_events(
    category: Optional[EventCategory] = Query(None, description="Filter by event category"),
    limit: Optional[int] = Query(None, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user=Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    """Every active event, past ones included."""
    return await event_service.browse(
        viewer_id=user.id if user else None,
        category=category,
        limit=limit or settings.BROWSE_PAGE_LIMIT,
        offset=offset,
    )


@router.post("/increment-shown", response_model=StatusMessage)
async def increment_events_shown(
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    await event_service.increment_shown(user.id)
    return StatusMessage(message="Events shown counter incremented")


@router.post("", response_model=EventWithOrganizer, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: EventCreate,
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.create_event(payload, user.id)


@router.get("/{event_id}", response_model=EventWithOrganizer)
async def get_event_detail(
    event_id: int,
    user=Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.get_event(event_id, user.id if user else None)


@router.get("/{event_id}/attendees", response_model=List[UserOut])
async def get_event_attendees(
    event_id: int,
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.list_attendees(event_id)


@router.put("/{event_id}", response_model=EventWithOrganizer)
async def update_event_endpoint(
    event_id: int,
    payload: EventUpdate,
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.update_event(event_id, payload, user.id)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event_endpoint(
    event_id: int,
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    await event_service.delete_event(event_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/skip", response_model=StatusMessage)
async def skip_event(
    event_id: int,
    user=Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    await event_service.skip_event(event_id, user.id)
    return StatusMessage(message="Event skipped")
