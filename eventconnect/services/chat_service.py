from datetime import datetime
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from eventconnect.core.config import settings
from eventconnect.core.logging import logger
from eventconnect.db.models.event import Event
from eventconnect.db.repositories import (
    get_event_row as db_get_event_row,
    create_chat_message as db_create_chat_message,
    list_chat_messages as db_list_chat_messages,
    delete_chat_message as db_delete_chat_message,
    mark_read as db_mark_read,
    is_participant as db_is_participant,
    set_chat_membership as db_set_chat_membership,
    participant_ids as db_participant_ids,
    get_unread_counts as db_get_unread_counts,
)
from eventconnect.realtime.manager import ConnectionManager, manager
from eventconnect.schemas import ChatMessageOut, UnreadCounts


class ChatService:
    """
    Event chat and unread bookkeeping.

    Messages are stored first; only then are they pushed to the event room
    and to the notification channels of the other participants. A failed
    push never undoes the stored message.
    """

    def __init__(self, session: AsyncSession, relay: ConnectionManager = manager):
        self.session = session
        self.relay = relay

    async def _active_event(self, event_id: int) -> Event:
        ev = await db_get_event_row(self.session, event_id)
        if not ev:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        return ev

    async def list_messages(self, event_id: int, limit: Optional[int] = None) -> List[ChatMessageOut]:
        await self._active_event(event_id)
        return await db_list_chat_messages(self.session, event_id, limit or settings.CHAT_HISTORY_LIMIT)

    async def post_message(self, event_id: int, user_id: str, text: Optional[str]) -> ChatMessageOut:
        text = (text or "").strip()
        if not text:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Message content is required")
        if len(text) > settings.CHAT_MESSAGE_MAX_LENGTH:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Message too long. Maximum {settings.CHAT_MESSAGE_MAX_LENGTH} characters.",
            )
        ev = await self._active_event(event_id)
        event_title = ev.title

        msg = await db_create_chat_message(self.session, event_id, user_id, text)
        await self._fan_out(event_id, event_title, msg)
        return msg

    async def _fan_out(self, event_id: int, event_title: str, msg: ChatMessageOut):
        body = msg.model_dump(mode="json")
        await self.relay.broadcast_to_event(event_id, {
            "type": "newMessage",
            "eventId": event_id,
            "message": body,
        })
        notification = {
            "type": "new_message_notification",
            "eventId": event_id,
            "eventTitle": event_title,
            "message": body,
            "unreadDelta": 1,
        }
        notified = 0
        for participant_id in await db_participant_ids(self.session, event_id):
            if participant_id != msg.user_id:
                notified += await self.relay.send_to_user(participant_id, notification)
        logger.debug(f"Message {msg.id} in event {event_id} pushed to {notified} notification sockets")

    async def delete_message(self, event_id: int, message_id: int, user_id: str) -> None:
        await self._active_event(event_id)
        if not await db_delete_chat_message(self.session, event_id, message_id, user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Message not found")

    async def mark_read(self, event_id: int, user_id: str, read_at: Optional[datetime] = None) -> None:
        await self._active_event(event_id)
        if not await db_is_participant(self.session, user_id, event_id):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant of this event")
        await db_mark_read(self.session, user_id, event_id, read_at)

    async def leave_chat(self, event_id: int, user_id: str) -> None:
        """Stop receiving the event's chat notifications and unread counts."""
        await self._set_membership(event_id, user_id, left=True)

    async def rejoin_chat(self, event_id: int, user_id: str) -> None:
        await self._set_membership(event_id, user_id, left=False)

    async def _set_membership(self, event_id: int, user_id: str, left: bool) -> None:
        await self._active_event(event_id)
        if not await db_set_chat_membership(self.session, event_id, user_id, left):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not a participant of this event")
        logger.info(f"User {user_id} {'left' if left else 'rejoined'} chat of event {event_id}")

    async def unread_counts(self, user_id: str) -> UnreadCounts:
        return await db_get_unread_counts(self.session, user_id)
