from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, delete, update, func, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.db.models.chat import ChatMessage, MessageRead
from eventconnect.db.models.event import Event
from eventconnect.db.models.rsvp import EventRsvp
from eventconnect.db.models.user import User
from eventconnect.db.repositories.upsert import insert_for
from eventconnect.db.session import utcnow
from eventconnect.schemas import ChatMessageOut, UnreadCounts, UnreadEventCount, UserOut


def _message_out(message: ChatMessage, user: Optional[User]) -> ChatMessageOut:
    return ChatMessageOut(
        id=message.id,
        event_id=message.event_id,
        user_id=message.user_id,
        message=message.message,
        created_at=message.created_at,
        user=UserOut.model_validate(user) if user is not None else None,
    )


async def create_chat_message(db: AsyncSession, event_id: int, user_id: str, text: str) -> ChatMessageOut:
    """
    Persist a chat message and return it with its author attached.

    Args:
        db: Database session
        event_id: Event whose chat receives the message
        user_id: Author
        text: Message body, already validated

    Returns:
        ChatMessageOut
    """
    msg = ChatMessage(event_id=event_id, user_id=user_id, message=text)
    db.add(msg)
    await db.commit()
    await db.refresh(msg)
    author = (await db.execute(select(User).where(User.id == user_id))).scalars().first()
    return _message_out(msg, author)


async def list_chat_messages(db: AsyncSession, event_id: int, limit: int = 1000) -> List[ChatMessageOut]:
    """The most recent `limit` messages of an event, oldest first."""
    q = (
        select(ChatMessage, User)
        .outerjoin(User, User.id == ChatMessage.user_id)
        .where(ChatMessage.event_id == event_id)
        .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
        .limit(limit)
    )
    res = await db.execute(q)
    rows = res.all()
    return [_message_out(msg, user) for msg, user in reversed(rows)]


async def delete_chat_message(db: AsyncSession, event_id: int, message_id: int, user_id: str) -> bool:
    """Delete a message if `user_id` wrote it. Returns whether a row was removed."""
    res = await db.execute(
        delete(ChatMessage).where(
            ChatMessage.id == message_id,
            ChatMessage.event_id == event_id,
            ChatMessage.user_id == user_id,
        )
    )
    await db.commit()
    return res.rowcount > 0


async def mark_read(db: AsyncSession, user_id: str, event_id: int, read_at: Optional[datetime] = None) -> MessageRead:
    """Move the user's read marker for an event to `read_at` (default: now)."""
    now = utcnow()
    read_at = read_at or now
    stmt = (
        insert_for(db, MessageRead)
        .values(user_id=user_id, event_id=event_id, last_read_at=read_at, updated_at=now)
        .on_conflict_do_update(
            index_elements=["user_id", "event_id"],
            set_={"last_read_at": read_at, "updated_at": now},
        )
        .returning(MessageRead)
    )
    marker = await db.scalar(stmt, execution_options={"populate_existing": True})
    await db.commit()
    return marker


def in_chat_clause(user_id: str):
    """Events whose chat the user is currently in."""
    rsvp_event_ids = select(EventRsvp.event_id).where(
        EventRsvp.user_id == user_id,
        EventRsvp.has_left_chat.is_(False),
    )
    return or_(
        and_(Event.organizer_id == user_id, Event.organizer_left_chat.is_(False)),
        Event.id.in_(rsvp_event_ids),
    )


async def is_participant(db: AsyncSession, user_id: str, event_id: int) -> bool:
    q = select(Event.id).where(Event.id == event_id, in_chat_clause(user_id))
    res = await db.execute(q)
    return res.scalar() is not None


async def participant_ids(db: AsyncSession, event_id: int) -> List[str]:
    """The organizer and RSVP holders still in the event chat, without duplicates."""
    res = await db.execute(
        select(Event.organizer_id, Event.organizer_left_chat).where(Event.id == event_id)
    )
    row = res.first()
    ids = [row.organizer_id] if row and not row.organizer_left_chat else []
    res = await db.execute(
        select(EventRsvp.user_id)
        .where(EventRsvp.event_id == event_id, EventRsvp.has_left_chat.is_(False))
        .order_by(EventRsvp.id)
    )
    for uid in res.scalars().all():
        if uid not in ids:
            ids.append(uid)
    return ids


async def set_chat_membership(db: AsyncSession, event_id: int, user_id: str, left: bool) -> bool:
    """
    Leave (`left=True`) or rejoin an event chat.

    The organizer's flag lives on the event and an attendee's on their RSVP;
    an organizer who also RSVPed gets both updated.

    Returns:
        False when the user neither organizes the event nor holds an RSVP
    """
    res = await db.execute(
        update(EventRsvp)
        .where(EventRsvp.event_id == event_id, EventRsvp.user_id == user_id)
        .values(has_left_chat=left)
    )
    changed = res.rowcount > 0
    res = await db.execute(
        update(Event)
        .where(Event.id == event_id, Event.organizer_id == user_id)
        .values(organizer_left_chat=left)
    )
    changed = changed or res.rowcount > 0
    await db.commit()
    return changed


async def get_unread_counts(db: AsyncSession, user_id: str) -> UnreadCounts:
    """
    Count other people's messages the user has not read yet.

    Covers active events whose chat the user is in; a message is
    unread when it is newer than the user's read marker for that event, or
    when no marker exists.
    """
    unread = func.count(ChatMessage.id)
    q = (
        select(Event.id, Event.title, unread.label("unread_count"))
        .join(
            ChatMessage,
            and_(ChatMessage.event_id == Event.id, ChatMessage.user_id != user_id),
        )
        .outerjoin(
            MessageRead,
            and_(MessageRead.event_id == Event.id, MessageRead.user_id == user_id),
        )
        .where(
            Event.is_active.is_(True),
            in_chat_clause(user_id),
            or_(MessageRead.last_read_at.is_(None), ChatMessage.created_at > MessageRead.last_read_at),
        )
        .group_by(Event.id, Event.title)
        .order_by(Event.id)
    )
    res = await db.execute(q)
    by_event = [
        UnreadEventCount(event_id=event_id, event_title=title, unread_count=count)
        for event_id, title, count in res.all()
        if count
    ]
    return UnreadCounts(
        total_unread=sum(e.unread_count for e in by_event),
        unread_by_event=by_event,
    )
