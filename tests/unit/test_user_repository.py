"""
Unit tests for user repository functions.
Tests the claims upsert and feed skip tracking.
"""
import pytest
from sqlalchemy import select, func

from eventconnect.core.config import settings
from eventconnect.db.models import User
from eventconnect.db.repositories import (
    get_user,
    get_user_by_email,
    upsert_user,
    add_skipped_event,
    increment_events_shown,
    reset_skipped_events,
)


@pytest.mark.unit
@pytest.mark.asyncio
class TestUpsertUser:

    async def test_insert_assigns_avatar_seed(self, db_session):
        user = await upsert_user(db_session, {"id": "sub-1", "email": "one@example.com"})

        assert user.id == "sub-1"
        assert user.avatar_seed == "seed_sub-1"
        assert user.interests == []
        assert user.skipped_events == []
        assert user.events_shown_since_skip == 0

    async def test_update_merges_only_supplied_fields(self, db_session):
        await upsert_user(db_session, {"id": "sub-1", "email": "one@example.com", "first_name": "Ada"})
        first = await get_user(db_session, "sub-1")
        first_updated = first.updated_at

        user = await upsert_user(db_session, {"id": "sub-1", "first_name": None, "last_name": "Lovelace"})

        assert user.first_name == "Ada"
        assert user.last_name == "Lovelace"
        assert user.email == "one@example.com"
        assert user.avatar_seed == "seed_sub-1"
        assert user.updated_at >= first_updated

    async def test_explicit_avatar_seed_kept(self, db_session):
        user = await upsert_user(db_session, {"id": "sub-2", "avatar_seed": "fox"})

        assert user.avatar_seed == "fox"

    async def test_repeated_upsert_keeps_one_row(self, db_session):
        for name in ("A", "B", "C"):
            await upsert_user(db_session, {"id": "sub-3", "first_name": name})

        count = await db_session.scalar(select(func.count(User.id)).where(User.id == "sub-3"))
        assert count == 1
        assert (await get_user(db_session, "sub-3")).first_name == "C"

    async def test_get_user_by_email(self, db_session, attendee):
        found = await get_user_by_email(db_session, attendee.email)

        assert found.id == attendee.id
        assert await get_user_by_email(db_session, "nobody@example.com") is None

    async def test_get_user_missing(self, db_session):
        assert await get_user(db_session, "ghost") is None


@pytest.mark.unit
@pytest.mark.asyncio
class TestSkipTracking:

    async def test_skip_is_idempotent(self, db_session, attendee, test_event):
        await add_skipped_event(db_session, attendee.id, test_event.id)
        user = await add_skipped_event(db_session, attendee.id, test_event.id)

        assert user.skipped_events == [test_event.id]

    async def test_skip_unknown_user(self, db_session):
        assert await add_skipped_event(db_session, "ghost", 1) is None

    async def test_counter_increments(self, db_session, attendee):
        await increment_events_shown(db_session, attendee.id)
        user = await increment_events_shown(db_session, attendee.id)

        assert user.events_shown_since_skip == 2

    async def test_threshold_resets_skips(self, db_session, attendee, test_event, monkeypatch):
        monkeypatch.setattr(settings, "SKIP_RESET_THRESHOLD", 3)
        await add_skipped_event(db_session, attendee.id, test_event.id)

        await increment_events_shown(db_session, attendee.id)
        user = await increment_events_shown(db_session, attendee.id)
        assert user.skipped_events == [test_event.id]
        assert user.events_shown_since_skip == 2

        user = await increment_events_shown(db_session, attendee.id)
        assert user.skipped_events == []
        assert user.events_shown_since_skip == 0

    async def test_threshold_without_skips_keeps_counting(self, db_session, attendee, monkeypatch):
        monkeypatch.setattr(settings, "SKIP_RESET_THRESHOLD", 2)

        for _ in range(3):
            user = await increment_events_shown(db_session, attendee.id)

        assert user.events_shown_since_skip == 3

    async def test_reset(self, db_session, attendee, test_event):
        await add_skipped_event(db_session, attendee.id, test_event.id)
        user = await reset_skipped_events(db_session, attendee.id)

        assert user.skipped_events == []
        assert user.events_shown_since_skip == 0
