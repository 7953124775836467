import uuid
from typing import Optional, Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.core.logging import logger
from eventconnect.db.models.event import Event, wall_clock_to_utc
from eventconnect.db.models.user import User
from eventconnect.db.repositories.users import get_user_by_email
from eventconnect.schemas import EventCreate, ExternalEventCreate


async def create_event(db: AsyncSession, payload: EventCreate, organizer_id: str) -> Event:
    """
    Create a new event.

    Args:
        db: Database session
        payload: Event creation data
        organizer_id: ID of the user creating the event

    Returns:
        Created Event object
    """
    data = payload.model_dump()
    ev = Event(
        **data,
        organizer_id=organizer_id,
        starts_at=wall_clock_to_utc(data["date"], data["time"], data["timezone"]),
    )
    db.add(ev)
    await db.commit()
    await db.refresh(ev)
    return ev


async def get_event_row(
    db: AsyncSession,
    event_id: int,
    include_inactive: bool = False,
    for_update: bool = False,
) -> Optional[Event]:
    """
    Load the bare event row.

    Deactivated events are invisible unless `include_inactive` is set.
    `for_update` locks the row until the transaction ends; SQLite ignores it
    and serializes writers on its own.
    """
    q = select(Event).where(Event.id == event_id)
    if not include_inactive:
        q = q.where(Event.is_active.is_(True))
    if for_update:
        q = q.with_for_update()
    res = await db.execute(q)
    return res.scalars().first()


async def update_event(db: AsyncSession, event_id: int, changes: Dict) -> Optional[Event]:
    """
    Apply a partial update to an active event.

    The organizer is never changed here; callers check ownership first.
    `starts_at` is recomputed whenever date, time or timezone change.
    """
    ev = await get_event_row(db, event_id)
    if not ev:
        return None
    changes = {k: v for k, v in changes.items() if k not in ("id", "organizer_id", "is_active")}
    for field, value in changes.items():
        setattr(ev, field, value)
    if {"date", "time", "timezone"} & changes.keys():
        ev.starts_at = wall_clock_to_utc(ev.date, ev.time, ev.timezone)
    await db.commit()
    await db.refresh(ev)
    return ev


async def deactivate_event(db: AsyncSession, event_id: int) -> bool:
    """Soft-delete an event. Returns False when no active event matched."""
    ev = await get_event_row(db, event_id)
    if not ev:
        return False
    ev.is_active = False
    await db.commit()
    logger.info(f"Event {event_id} deactivated")
    return True


async def create_external_event(db: AsyncSession, payload: ExternalEventCreate) -> Event:
    """
    Create an event pushed by an external crawler.

    The organizer is looked up by email and created on the fly when unknown;
    without an email the event is attributed to a fresh placeholder user.
    The source is appended to the event's special notes.
    """
    organizer = None
    if payload.organizer_email:
        organizer = await get_user_by_email(db, payload.organizer_email)
    if not organizer:
        external_id = f"external_{uuid.uuid4().hex}"
        source = payload.source or "external source"
        organizer = User(
            id=external_id,
            email=payload.organizer_email,
            first_name=payload.organizer_email.split("@")[0] if payload.organizer_email else source,
            last_name="External",
            avatar_seed=external_id,
            interests=["Events"],
            personality=["Organized"],
        )
        db.add(organizer)
        await db.flush()
        logger.info(f"Created external organizer {external_id} for source {source}")

    data = payload.model_dump(exclude={"organizer_email", "source", "source_url"})
    notes = [data.get("special_notes")] if data.get("special_notes") else []
    if payload.source:
        notes.append(f"Source: {payload.source}")
    if payload.source_url:
        notes.append(f"More info: {payload.source_url}")
    data["special_notes"] = "\n".join(notes) or None

    ev = Event(
        **data,
        organizer_id=organizer.id,
        starts_at=wall_clock_to_utc(data["date"], data["time"], data["timezone"]),
    )
    db.add(ev)
    await db.commit()
    await db.refresh(ev)
    return ev
