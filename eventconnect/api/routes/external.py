from fastapi import APIRouter, Depends, Request, status
from eventconnect.schemas import ExternalEventCreate, ExternalEventCreated, EventOut
from eventconnect.db.session import get_session
from eventconnect.services.event_service import EventService
from eventconnect.core.config import settings
from eventconnect.core.rate_limit import limiter
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/external", tags=["external"])


@router.post("/events", response_model=ExternalEventCreated, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.EXTERNAL_EVENTS_RATE_LIMIT)
async def create_external_event(
    request: Request,
    payload: ExternalEventCreate,
    session: AsyncSession = Depends(get_session)
):
    """
    Intake for events found by crawlers and partner feeds.

    No bearer token is required; the organizer is matched or created from
    `organizer_email`.
    """
    ev = await EventService(session).create_external_event(payload)
    return ExternalEventCreated(event_id=ev.id, event=EventOut.model_validate(ev))
