from fastapi import APIRouter, Depends
from eventconnect.schemas import UnreadCounts
from eventconnect.db.session import get_session
from eventconnect.services.chat_service import ChatService
from eventconnect.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/unread", response_model=UnreadCounts)
async def unread_counts(
    user=Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Unread chat messages per event the caller organizes or has RSVPed to."""
    return await ChatService(session).unread_counts(user.id)
