"""
Read-side aggregation of events.

Every event read goes through one grouped query that joins the organizer and
the RSVP rows, so counts and the viewer's own status are always computed from
the same snapshot. Deactivated events never appear here.
"""
from typing import Optional, List
from sqlalchemy import select, func, case, null
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.db.models.event import Event
from eventconnect.db.models.rsvp import EventRsvp, RsvpStatus, CONFIRMED_STATUSES, ATTENDING_LIST_STATUSES
from eventconnect.db.models.user import User
from eventconnect.db.repositories.chat import in_chat_clause
from eventconnect.db.session import utcnow
from eventconnect.schemas import EventOut, EventWithOrganizer, UserOut


def _roster_query(viewer_id: Optional[str] = None):
    rsvp_count = func.coalesce(
        func.sum(case((EventRsvp.status.in_(CONFIRMED_STATUSES), 1), else_=0)), 0
    )
    maybe_count = func.coalesce(
        func.sum(case((EventRsvp.status == RsvpStatus.maybe, 1), else_=0)), 0
    )
    if viewer_id:
        viewer_status = func.max(case((EventRsvp.user_id == viewer_id, EventRsvp.status)))
    else:
        viewer_status = null()

    return (
        select(
            Event,
            User,
            rsvp_count.label("rsvp_count"),
            maybe_count.label("maybe_count"),
            viewer_status.label("user_rsvp_status"),
        )
        .select_from(Event)
        .outerjoin(User, User.id == Event.organizer_id)
        .outerjoin(EventRsvp, EventRsvp.event_id == Event.id)
        .where(Event.is_active.is_(True))
        .group_by(Event.id, User.id)
    )


def _to_read_model(row) -> EventWithOrganizer:
    ev, organizer, rsvp_count, maybe_count, viewer_status = row
    rsvp_count = int(rsvp_count or 0)
    spots_left = None
    if ev.capacity is not None:
        spots_left = max(0, ev.capacity - rsvp_count)
    return EventWithOrganizer(
        **EventOut.model_validate(ev).model_dump(),
        organizer=UserOut.model_validate(organizer) if organizer is not None else None,
        rsvp_count=rsvp_count,
        maybe_count=int(maybe_count or 0),
        user_rsvp_status=viewer_status,
        spots_left=spots_left,
    )


async def _skipped_event_ids(db: AsyncSession, user_id: str) -> List[int]:
    res = await db.execute(select(User.skipped_events).where(User.id == user_id))
    return list(res.scalar() or [])


async def list_events(
    db: AsyncSession,
    viewer_id: Optional[str] = None,
    category: Optional[str] = None,
    limit: int = 20,
    offset: int = 0,
    upcoming_only: bool = False,
    exclude_skipped: bool = False,
) -> List[EventWithOrganizer]:
    """
    List active events, newest first.

    Args:
        db: Database session
        viewer_id: User whose own RSVP status is reported, if any
        category: Exact category to match
        limit: Page size
        offset: Rows to skip
        upcoming_only: Drop events that already started
        exclude_skipped: Drop events the viewer skipped in the feed

    Returns:
        List of EventWithOrganizer
    """
    q = _roster_query(viewer_id)
    if category:
        q = q.where(Event.category == category)
    if upcoming_only:
        q = q.where(Event.starts_at > utcnow())
    if exclude_skipped and viewer_id:
        skipped = await _skipped_event_ids(db, viewer_id)
        if skipped:
            q = q.where(Event.id.notin_(skipped))
    q = q.order_by(Event.created_at.desc(), Event.id.desc()).limit(limit).offset(offset)

    res = await db.execute(q)
    return [_to_read_model(row) for row in res.all()]


async def get_event(db: AsyncSession, event_id: int, viewer_id: Optional[str] = None) -> Optional[EventWithOrganizer]:
    q = _roster_query(viewer_id).where(Event.id == event_id)
    res = await db.execute(q)
    row = res.first()
    return _to_read_model(row) if row else None


async def list_user_events(
    db: AsyncSession,
    user_id: str,
    kind: str = "organized",
    past_only: bool = False,
) -> List[EventWithOrganizer]:
    """
    Events a user organizes, or events they plan to attend.

    "attending" covers going, attending and maybe RSVPs on events organized
    by someone else. Results run from the soonest start time.
    """
    q = _roster_query(user_id)
    if kind == "attending":
        attending_ids = select(EventRsvp.event_id).where(
            EventRsvp.user_id == user_id,
            EventRsvp.status.in_(ATTENDING_LIST_STATUSES),
        )
        q = q.where(Event.id.in_(attending_ids), Event.organizer_id != user_id)
    else:
        q = q.where(Event.organizer_id == user_id)
    if past_only:
        q = q.where(Event.starts_at < utcnow())
    q = q.order_by(Event.starts_at.asc(), Event.id.asc())

    res = await db.execute(q)
    return [_to_read_model(row) for row in res.all()]


async def list_chat_events(db: AsyncSession, user_id: str) -> List[EventWithOrganizer]:
    """Active events whose chat the user is in, latest start first."""
    q = (
        _roster_query(user_id)
        .where(in_chat_clause(user_id))
        .order_by(Event.starts_at.desc(), Event.id.desc())
    )
    res = await db.execute(q)
    return [_to_read_model(row) for row in res.all()]


async def list_attendees(db: AsyncSession, event_id: int) -> Optional[List[User]]:
    """
    People attending an active event: the organizer first, then confirmed
    RSVPs in the order they were made. None when the event is not visible.
    """
    res = await db.execute(
        select(Event.organizer_id).where(Event.id == event_id, Event.is_active.is_(True))
    )
    organizer_id = res.scalar()
    if organizer_id is None:
        return None

    attendees: List[User] = []
    organizer = (await db.execute(select(User).where(User.id == organizer_id))).scalars().first()
    if organizer:
        attendees.append(organizer)

    q = (
        select(User)
        .join(EventRsvp, EventRsvp.user_id == User.id)
        .where(
            EventRsvp.event_id == event_id,
            EventRsvp.status.in_(CONFIRMED_STATUSES),
            User.id != organizer_id,
        )
        .order_by(EventRsvp.created_at.asc(), EventRsvp.id.asc())
    )
    res = await db.execute(q)
    attendees.extend(res.scalars().all())
    return attendees
