from typing import Optional, Dict
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.core.config import settings
from eventconnect.core.logging import logger
from eventconnect.db.models.user import User
from eventconnect.db.repositories.upsert import insert_for
from eventconnect.db.session import utcnow


async def get_user(db: AsyncSession, user_id: str) -> Optional[User]:
    """
    Retrieve user by ID.

    Args:
        db: Database session
        user_id: Identity provider subject

    Returns:
        User object if found, None otherwise
    """
    q = select(User).where(User.id == user_id)
    res = await db.execute(q)
    return res.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    q = select(User).where(User.email == email)
    res = await db.execute(q)
    return res.scalars().first()


async def upsert_user(db: AsyncSession, user_data: Dict) -> User:
    """
    Insert a user or merge the supplied fields into the existing row.

    Runs as one INSERT ... ON CONFLICT (id) DO UPDATE, so two first logins of
    the same subject cannot both insert. Only non-None fields are written;
    `updated_at` is always bumped.

    Args:
        db: Database session
        user_data: Column values; must contain "id"

    Returns:
        The stored User
    """
    values = {k: v for k, v in user_data.items() if v is not None}
    user_id = values["id"]
    now = utcnow()

    insert_values = dict(values)
    insert_values.setdefault("avatar_seed", f"seed_{user_id}")
    insert_values.setdefault("created_at", now)
    insert_values["updated_at"] = now

    update_values = {k: v for k, v in values.items() if k not in ("id", "created_at")}
    update_values["updated_at"] = now

    stmt = (
        insert_for(db, User)
        .values(**insert_values)
        .on_conflict_do_update(index_elements=["id"], set_=update_values)
        .returning(User)
    )
    user = await db.scalar(stmt, execution_options={"populate_existing": True})
    await db.commit()
    return user


async def update_profile(db: AsyncSession, user_id: str, changes: Dict) -> Optional[User]:
    """Apply profile fields (location, interests, personality) to a user."""
    user = await get_user(db, user_id)
    if not user:
        return None
    for field, value in changes.items():
        setattr(user, field, value)
    await db.commit()
    await db.refresh(user)
    return user


async def add_skipped_event(db: AsyncSession, user_id: str, event_id: int) -> Optional[User]:
    """Hide an event from the user's feed. Adding the same event twice is a no-op."""
    user = await get_user(db, user_id)
    if not user:
        return None
    skipped = list(user.skipped_events or [])
    if event_id not in skipped:
        # Reassign so the JSON column is flagged dirty
        user.skipped_events = skipped + [event_id]
        await db.commit()
        await db.refresh(user)
        logger.debug(f"User {user_id} skipped event {event_id}")
    return user


async def increment_events_shown(db: AsyncSession, user_id: str) -> Optional[User]:
    """
    Count one more feed card shown to the user.

    Once the counter reaches SKIP_RESET_THRESHOLD while the user has skipped
    events, both the skip list and the counter start over so skipped events
    can resurface.
    """
    user = await get_user(db, user_id)
    if not user:
        return None
    shown = (user.events_shown_since_skip or 0) + 1
    if shown >= settings.SKIP_RESET_THRESHOLD and user.skipped_events:
        logger.info(f"Resetting skipped events for user {user_id} after {shown} events shown")
        user.skipped_events = []
        user.events_shown_since_skip = 0
    else:
        user.events_shown_since_skip = shown
    await db.commit()
    await db.refresh(user)
    return user


async def reset_skipped_events(db: AsyncSession, user_id: str) -> Optional[User]:
    user = await get_user(db, user_id)
    if not user:
        return None
    user.skipped_events = []
    user.events_shown_since_skip = 0
    await db.commit()
    await db.refresh(user)
    return user
