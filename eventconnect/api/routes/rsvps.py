from fastapi import APIRouter, Depends, Response, status
from eventconnect.schemas import RsvpRequest, RsvpOut
from eventconnect.db.session import get_session
from eventconnect.services.rsvp_service import RSVPService
from eventconnect.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/events", tags=["rsvps"])


def get_rsvp_service(session: AsyncSession = Depends(get_session)) -> RSVPService:
    return RSVPService(session)


@router.post("/{event_id}/rsvp", response_model=RsvpOut)
async def rsvp_endpoint(
    event_id: int,
    payload: RsvpRequest,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Create or change the caller's RSVP. Confirmations respect event capacity."""
    return await rsvp_service.rsvp(event_id, user.id, payload.status)


@router.get("/{event_id}/rsvp", response_model=RsvpOut)
async def get_rsvp_endpoint(
    event_id: int,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    return await rsvp_service.get_rsvp(event_id, user.id)


@router.delete("/{event_id}/rsvp", status_code=status.HTTP_204_NO_CONTENT)
async def remove_rsvp_endpoint(
    event_id: int,
    user=Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    await rsvp_service.remove_rsvp(event_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
