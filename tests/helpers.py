"""Builders shared by the unit and integration tests."""
import json
from typing import Dict, Optional
from datetime import timedelta
from sqlalchemy.ext.asyncio import AsyncSession

from eventconnect.core.security import create_identity_token
from eventconnect.db.models import User, Event
from eventconnect.db.repositories import upsert_user, create_event
from eventconnect.db.session import utcnow
from eventconnect.schemas import EventCreate


def token_for(user_id: str, email: Optional[str] = None, **claims) -> str:
    """Identity token shaped like the provider's, signed with the test key."""
    payload = {"sub": user_id, "email": email or f"{user_id}@example.com"}
    payload.update(claims)
    return create_identity_token(payload)


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token_for(user.id, user.email)}"}


def event_payload(**overrides) -> Dict:
    """JSON body for a valid event a week from now."""
    starts = utcnow() + timedelta(days=7)
    body = {
        "title": "Rooftop Jazz Night",
        "description": "Live quartet on the roof terrace",
        "category": "Music",
        "date": starts.date().isoformat(),
        "time": "19:30:00",
        "timezone": "UTC",
        "location": "Skyline Terrace",
        "price": "15.00",
        "capacity": 10,
    }
    body.update(overrides)
    return body


async def make_user(session: AsyncSession, user_id: str, **fields) -> User:
    fields.setdefault("email", f"{user_id}@example.com")
    fields.setdefault("first_name", user_id.capitalize())
    return await upsert_user(session, {"id": user_id, **fields})


async def make_event(session: AsyncSession, organizer: User, **overrides) -> Event:
    return await create_event(session, EventCreate(**event_payload(**overrides)), organizer.id)


class FakeWebSocket:
    """Stands in for a Starlette WebSocket: records sent frames, can be told to fail."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.accepted = False
        self.closed_code = None
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def close(self, code: int = 1000):
        self.closed_code = code

    async def send_text(self, data: str):
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(data))
