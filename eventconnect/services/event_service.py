from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from eventconnect.schemas import EventCreate, EventUpdate, ExternalEventCreate, EventWithOrganizer
from eventconnect.db.models.event import Event
from eventconnect.db.repositories import (
    create_event as db_create_event,
    update_event as db_update_event,
    deactivate_event as db_deactivate_event,
    create_external_event as db_create_external_event,
    get_event_row as db_get_event_row,
    get_event as db_get_event,
    list_events as db_list_events,
    list_user_events as db_list_user_events,
    list_chat_events as db_list_chat_events,
    list_attendees as db_list_attendees,
    add_skipped_event as db_add_skipped_event,
    increment_events_shown as db_increment_events_shown,
)
from eventconnect.core.logging import logger
from typing import List, Optional


class EventService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _owned_event(self, event_id: int, user_id: str) -> Event:
        ev = await db_get_event_row(self.session, event_id)
        if not ev:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        if ev.organizer_id != user_id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only the organizer can modify this event")
        return ev

    async def create_event(self, payload: EventCreate, user_id: str) -> EventWithOrganizer:
        ev = await db_create_event(self.session, payload, user_id)
        logger.info(f"Event {ev.id} created by {user_id}")
        return await db_get_event(self.session, ev.id, user_id)

    async def create_external_event(self, payload: ExternalEventCreate) -> Event:
        ev = await db_create_external_event(self.session, payload)
        logger.info(f"External event {ev.id} created from {payload.source or 'unknown source'}")
        return ev

    async def get_event(self, event_id: int, viewer_id: Optional[str] = None) -> EventWithOrganizer:
        ev = await db_get_event(self.session, event_id, viewer_id)
        if not ev:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        return ev

    async def feed(self, viewer_id: Optional[str], category: Optional[str], limit: int, offset: int) -> List[EventWithOrganizer]:
        """Upcoming events for the home feed, minus the viewer's skipped ones."""
        return await db_list_events(
            self.session,
            viewer_id=viewer_id,
            category=category,
            limit=limit,
            offset=offset,
            upcoming_only=True,
            exclude_skipped=True,
        )

    async def browse(self, viewer_id: Optional[str], category: Optional[str], limit: int, offset: int) -> List[EventWithOrganizer]:
        return await db_list_events(
            self.session,
            viewer_id=viewer_id,
            category=category,
            limit=limit,
            offset=offset,
        )

    async def update_event(self, event_id: int, payload: EventUpdate, user_id: str) -> EventWithOrganizer:
        await self._owned_event(event_id, user_id)
        await db_update_event(self.session, event_id, payload.model_dump(exclude_unset=True))
        return await db_get_event(self.session, event_id, user_id)

    async def delete_event(self, event_id: int, user_id: str) -> None:
        await self._owned_event(event_id, user_id)
        await db_deactivate_event(self.session, event_id)

    async def list_attendees(self, event_id: int):
        attendees = await db_list_attendees(self.session, event_id)
        if attendees is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        return attendees

    async def list_user_events(self, user_id: str, kind: str, past_only: bool) -> List[EventWithOrganizer]:
        return await db_list_user_events(self.session, user_id, kind=kind, past_only=past_only)

    async def list_chat_events(self, user_id: str) -> List[EventWithOrganizer]:
        return await db_list_chat_events(self.session, user_id)

    async def skip_event(self, event_id: int, user_id: str) -> None:
        if not await db_get_event_row(self.session, event_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        await db_add_skipped_event(self.session, user_id, event_id)

    async def increment_shown(self, user_id: str) -> None:
        await db_increment_events_shown(self.session, user_id)
