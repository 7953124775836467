from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status
from eventconnect.db.models.rsvp import EventRsvp, RsvpStatus, CONFIRMED_STATUSES
from eventconnect.db.repositories import (
    get_event_row as db_get_event_row,
    get_user_rsvp as db_get_user_rsvp,
    count_confirmed_rsvps as db_count_confirmed_rsvps,
    upsert_rsvp as db_upsert_rsvp,
    delete_rsvp as db_delete_rsvp,
)
from eventconnect.core.logging import logger


class RSVPService:
    """
    RSVP state machine.

    A user has at most one RSVP per event and may move freely between the
    four statuses. Moving into a confirmed status is the only transition
    that consumes a seat, so only it is checked against capacity.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def rsvp(self, event_id: int, user_id: str, new_status: RsvpStatus) -> EventRsvp:
        # Lock the event row so concurrent confirmations see each other's seats
        ev = await db_get_event_row(self.session, event_id, for_update=True)
        if not ev:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

        if new_status in CONFIRMED_STATUSES and ev.capacity is not None:
            current = await db_get_user_rsvp(self.session, event_id, user_id)
            holds_seat = current is not None and current.status in CONFIRMED_STATUSES
            if not holds_seat:
                taken = await db_count_confirmed_rsvps(self.session, event_id)
                if taken >= ev.capacity:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail=f"Event is at full capacity ({ev.capacity} attendees)",
                    )

        r = await db_upsert_rsvp(self.session, event_id, user_id, new_status)
        logger.info(f"RSVP {user_id} -> event {event_id}: {new_status.value}")
        return r

    async def get_rsvp(self, event_id: int, user_id: str) -> EventRsvp:
        if not await db_get_event_row(self.session, event_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        r = await db_get_user_rsvp(self.session, event_id, user_id)
        if not r:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="RSVP not found")
        return r

    async def remove_rsvp(self, event_id: int, user_id: str) -> None:
        """Withdraw the user's RSVP. Removing a missing RSVP is not an error."""
        if not await db_get_event_row(self.session, event_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
        removed = await db_delete_rsvp(self.session, event_id, user_id)
        if removed:
            logger.info(f"RSVP {user_id} -> event {event_id} removed")
