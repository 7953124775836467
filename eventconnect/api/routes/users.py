from fastapi import APIRouter, Depends, HTTPException, Query, status
from eventconnect.schemas import UserOut, ProfileUpdate, EventWithOrganizer
from eventconnect.db.session import get_session
from eventconnect.services.event_service import EventService
from eventconnect.services.user_service import UserService
from eventconnect.auth import get_current_user
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Literal

router = APIRouter(tags=["users"])


def _require_self(user_id: str, user) -> None:
    # Lists carry the owner's own RSVP statuses
    if user_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view these events")


@router.get("/auth/user", response_model=UserOut)
async def current_user(user=Depends(get_current_user)):
    return user


@router.get("/users/{user_id}/events", response_model=List[EventWithOrganizer])
async def user_events(
    user_id: str,
    kind: Literal["organized", "attending"] = Query("organized", alias="type"),
    past_only: bool = Query(False),
    user=Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Events the user organizes, or attends (going, attending or maybe), soonest first."""
    _require_self(user_id, user)
    return await EventService(session).list_user_events(user_id, kind, past_only)


@router.get("/users/{user_id}/group-chats", response_model=List[EventWithOrganizer])
async def user_group_chats(
    user_id: str,
    user=Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Active events whose chat the user is in, latest start first."""
    _require_self(user_id, user)
    return await EventService(session).list_chat_events(user_id)


@router.put("/users/profile", response_model=UserOut)
async def update_profile(
    payload: ProfileUpdate,
    user=Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    return await UserService(session).update_profile(user.id, payload)
