from typing import Optional
from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.db.models.rsvp import EventRsvp, RsvpStatus, CONFIRMED_STATUSES
from eventconnect.db.repositories.upsert import insert_for
from eventconnect.db.session import utcnow


async def get_user_rsvp(db: AsyncSession, event_id: int, user_id: str) -> Optional[EventRsvp]:
    """
    Get a user's RSVP for a specific event.

    Args:
        db: Database session
        event_id: Event ID
        user_id: User ID

    Returns:
        EventRsvp object if found, None otherwise
    """
    q = select(EventRsvp).where(
        EventRsvp.event_id == event_id,
        EventRsvp.user_id == user_id,
    )
    res = await db.execute(q)
    return res.scalars().first()


async def count_confirmed_rsvps(db: AsyncSession, event_id: int) -> int:
    """Count RSVPs that hold a seat ("going" or "attending")."""
    q = select(func.count(EventRsvp.id)).where(
        EventRsvp.event_id == event_id,
        EventRsvp.status.in_(CONFIRMED_STATUSES),
    )
    res = await db.execute(q)
    return res.scalar() or 0


async def create_rsvp(db: AsyncSession, event_id: int, user_id: str, status: RsvpStatus) -> EventRsvp:
    """Insert a new RSVP. A second row for the same pair violates the unique constraint."""
    r = EventRsvp(event_id=event_id, user_id=user_id, status=status)
    db.add(r)
    await db.commit()
    await db.refresh(r)
    return r


async def update_rsvp(db: AsyncSession, event_id: int, user_id: str, status: RsvpStatus) -> Optional[EventRsvp]:
    r = await get_user_rsvp(db, event_id, user_id)
    if not r:
        return None
    r.status = status
    await db.commit()
    await db.refresh(r)
    return r


async def upsert_rsvp(db: AsyncSession, event_id: int, user_id: str, status: RsvpStatus) -> EventRsvp:
    """
    Record the user's status for an event in one statement.

    INSERT ... ON CONFLICT (event_id, user_id) DO UPDATE: concurrent calls for
    the same pair leave exactly one row holding the last writer's status.
    A fresh RSVP also brings the user back into the event chat.
    """
    now = utcnow()
    stmt = (
        insert_for(db, EventRsvp)
        .values(event_id=event_id, user_id=user_id, status=status, has_left_chat=False, created_at=now, updated_at=now)
        .on_conflict_do_update(
            index_elements=["event_id", "user_id"],
            set_={"status": status, "has_left_chat": False, "updated_at": now},
        )
        .returning(EventRsvp)
    )
    r = await db.scalar(stmt, execution_options={"populate_existing": True})
    await db.commit()
    return r


async def delete_rsvp(db: AsyncSession, event_id: int, user_id: str) -> bool:
    """Remove the user's RSVP. Returns whether a row was deleted."""
    res = await db.execute(
        delete(EventRsvp).where(
            EventRsvp.event_id == event_id,
            EventRsvp.user_id == user_id,
        )
    )
    await db.commit()
    return res.rowcount > 0
