from fastapi import APIRouter, Depends, Query, Request, Response, status
from eventconnect.schemas import ChatMessageCreate, ChatMessageOut, StatusMessage
from eventconnect.db.session import get_session
from eventconnect.services.chat_service import ChatService
from eventconnect.auth import get_current_user
from eventconnect.core.config import settings
from eventconnect.core.rate_limit import limiter
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

router = APIRouter(prefix="/events", tags=["chat"])


def get_chat_service(session: AsyncSession = Depends(get_session)) -> ChatService:
    return ChatService(session)


@router.get("/{event_id}/messages", response_model=List[ChatMessageOut])
async def list_messages(
    event_id: int,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    return await chat_service.list_messages(event_id, limit)


@router.post("/{event_id}/messages", response_model=ChatMessageOut, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.CHAT_RATE_LIMIT)
async def post_message(
    request: Request,
    event_id: int,
    payload: ChatMessageCreate,
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Store a message and push it to the event room and the other participants."""
    return await chat_service.post_message(event_id, user.id, payload.message)


@router.delete("/{event_id}/messages/{message_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_message(
    event_id: int,
    message_id: int,
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    await chat_service.delete_message(event_id, message_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/mark-read", response_model=StatusMessage)
async def mark_read(
    event_id: int,
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    await chat_service.mark_read(event_id, user.id)
    return StatusMessage(message="Messages marked as read")


@router.post("/{event_id}/leave-chat", status_code=status.HTTP_204_NO_CONTENT)
async def leave_chat(
    event_id: int,
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    """Leave the event chat; a new RSVP or rejoin-chat brings the user back."""
    await chat_service.leave_chat(event_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{event_id}/rejoin-chat", status_code=status.HTTP_204_NO_CONTENT)
async def rejoin_chat(
    event_id: int,
    user=Depends(get_current_user),
    chat_service: ChatService = Depends(get_chat_service)
):
    await chat_service.rejoin_chat(event_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
