"""
Inbound frames on /ws.

Each frame is a JSON envelope `{type, eventId?, userId?, message?, content?,
timestamp?}`. Bad frames are answered with an error envelope and the
connection stays open.
"""
from datetime import timezone
from typing import Callable
from fastapi import HTTPException, WebSocket
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from eventconnect.core.logging import logger
from eventconnect.db.repositories import get_event_row
from eventconnect.db.session import AsyncSessionLocal
from eventconnect.realtime.manager import ConnectionManager, manager
from eventconnect.schemas import RealtimeEnvelope
from eventconnect.services.chat_service import ChatService
import json


async def send_error(websocket: WebSocket, message: str):
    await websocket.send_text(json.dumps({"type": "error", "message": message}))


def _require_event_id(envelope: RealtimeEnvelope) -> int:
    if envelope.event_id is None:
        raise HTTPException(status_code=400, detail="eventId is required")
    return envelope.event_id


async def _join(websocket, envelope, user_id, session: AsyncSession, relay: ConnectionManager):
    event_id = _require_event_id(envelope)
    if not await get_event_row(session, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    await relay.join(event_id, websocket)
    await websocket.send_text(json.dumps({"type": "joined", "eventId": event_id}))


async def _subscribe(websocket, envelope, user_id, session: AsyncSession, relay: ConnectionManager):
    # A socket may only listen to its own user's notifications
    if envelope.user_id != user_id:
        raise HTTPException(status_code=403, detail="Cannot subscribe to another user's notifications")
    await relay.subscribe_notifications(user_id, websocket)
    await websocket.send_text(json.dumps({"type": "subscribed_notifications", "userId": user_id}))


async def _message(websocket, envelope, user_id, session: AsyncSession, relay: ConnectionManager):
    event_id = _require_event_id(envelope)
    text = envelope.message if envelope.message is not None else envelope.content
    await ChatService(session, relay).post_message(event_id, user_id, text)


async def _ack_read(websocket, envelope, user_id, session: AsyncSession, relay: ConnectionManager):
    event_id = _require_event_id(envelope)
    read_at = envelope.timestamp
    if read_at is not None and read_at.tzinfo is not None:
        read_at = read_at.astimezone(timezone.utc).replace(tzinfo=None)
    await ChatService(session, relay).mark_read(event_id, user_id, read_at)
    await websocket.send_text(json.dumps({"type": "readAcked", "eventId": event_id}))


_HANDLERS = {
    "join": _join,
    "subscribe_notifications": _subscribe,
    "message": _message,
    "ackRead": _ack_read,
}


async def handle_frame(
    websocket: WebSocket,
    raw: str,
    user_id: str,
    session_factory: Callable = AsyncSessionLocal,
    relay: ConnectionManager = manager,
):
    """
    Dispatch one inbound frame for the authenticated `user_id`.

    Args:
        websocket: Socket the frame arrived on
        raw: Frame text
        user_id: Subject of the token the socket connected with
        session_factory: Opens a database session per frame
        relay: Connection registry used for joins and fan-out
    """
    try:
        envelope = RealtimeEnvelope.model_validate_json(raw)
    except ValidationError:
        logger.warning(f"Malformed frame from {user_id}: {raw[:200]!r}")
        await send_error(websocket, "Malformed message")
        return

    handler = _HANDLERS.get(envelope.type)
    if handler is None:
        logger.warning(f"Unknown frame type {envelope.type!r} from {user_id}")
        await send_error(websocket, f"Unknown message type: {envelope.type}")
        return

    try:
        async with session_factory() as session:
            await handler(websocket, envelope, user_id, session, relay)
    except HTTPException as e:
        await send_error(websocket, str(e.detail))
    except (SQLAlchemyError, OverflowError) as e:
        logger.warning(f"Frame {envelope.type!r} from {user_id} failed in the store: {e}")
        await send_error(websocket, "Could not process message")
