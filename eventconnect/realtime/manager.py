from typing import Dict, Set
from fastapi import WebSocket
from eventconnect.core.logging import logger
import asyncio
import json


class ConnectionManager:
    """
    Process-local registry of live sockets.

    Sockets join event rooms to receive chat traffic and subscribe to their
    user's notification channel. Delivery is best effort: a socket whose send
    fails is dropped and the remaining recipients still get the payload.
    """

    def __init__(self):
        # map event_id -> sockets in that event's room
        self.rooms: Dict[int, Set[WebSocket]] = {}
        # map user_id -> sockets subscribed to that user's notifications
        self.channels: Dict[str, Set[WebSocket]] = {}
        self.lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()

    async def join(self, event_id: int, websocket: WebSocket):
        async with self.lock:
            self.rooms.setdefault(event_id, set()).add(websocket)

    async def subscribe_notifications(self, user_id: str, websocket: WebSocket):
        async with self.lock:
            self.channels.setdefault(user_id, set()).add(websocket)

    async def disconnect(self, websocket: WebSocket):
        """Remove the socket from every room and channel."""
        async with self.lock:
            self._discard(websocket)

    def _discard(self, websocket: WebSocket):
        for registry in (self.rooms, self.channels):
            for key in list(registry):
                registry[key].discard(websocket)
                if not registry[key]:
                    registry.pop(key)

    async def _deliver(self, sockets, payload: dict) -> int:
        data = json.dumps(payload)
        delivered = 0
        dead = []
        for ws in sockets:
            try:
                await ws.send_text(data)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping socket after failed push: {e}")
                dead.append(ws)
        if dead:
            async with self.lock:
                for ws in dead:
                    self._discard(ws)
        return delivered

    async def broadcast_to_event(self, event_id: int, payload: dict) -> int:
        """Push to every socket in the event's room. Returns how many got it."""
        async with self.lock:
            sockets = list(self.rooms.get(event_id, ()))
        return await self._deliver(sockets, payload)

    async def send_to_user(self, user_id: str, payload: dict) -> int:
        """Push to every socket subscribed to the user's notifications."""
        async with self.lock:
            sockets = list(self.channels.get(user_id, ()))
        return await self._deliver(sockets, payload)

    def room_size(self, event_id: int) -> int:
        return len(self.rooms.get(event_id, ()))


manager = ConnectionManager()
