"""Room membership and broadcast fan-out for realtime scene sessions.

In-process only. Rooms are keyed by project id; a connection may sit in any
number of rooms and only leaves them when its channel closes.
"""
from __future__ import annotations
from typing import Any, Dict, List, Protocol, Set
from enum import Enum
import asyncio
import logging
import uuid
from collections import defaultdict
from fastapi import WebSocket
from starlette.websockets import WebSocketState
from services.errors import DeliveryError

logger = logging.getLogger(__name__)


class Connection(Protocol):
    id: str

    async def send(self, message: dict) -> None:
        ...


class WebSocketConnection:
    """Adapts a FastAPI WebSocket to the Connection interface."""

    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self.websocket = websocket
        self.id = connection_id or uuid.uuid4().hex

    async def send(self, message: dict) -> None:
        if self.websocket.application_state != WebSocketState.CONNECTED:
            raise DeliveryError(self.id)
        try:
            await self.websocket.send_json(message)
        except Exception as e:
            raise DeliveryError(self.id) from e

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.id}>"


class RoomRegistry:
    def __init__(self) -> None:
        # project_id -> {connection_id -> connection}
        self._rooms: Dict[int, Dict[str, Connection]] = defaultdict(dict)
        # connection_id -> project ids, for the disconnect hook
        self._memberships: Dict[str, Set[int]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def join(self, connection: Connection, project_id: int) -> None:
        async with self._lock:
            self._rooms[project_id][connection.id] = connection
            self._memberships[connection.id].add(project_id)

    async def members(self, project_id: int) -> List[Connection]:
        async with self._lock:
            return list(self._rooms.get(project_id, {}).values())

    async def rooms_for(self, connection: Connection) -> Set[int]:
        async with self._lock:
            return set(self._memberships.get(connection.id, set()))

    async def discard(self, project_id: int, connection: Connection) -> None:
        async with self._lock:
            self._discard_locked(project_id, connection.id)

    async def leave_all(self, connection: Connection) -> Set[int]:
        """Disconnect hook: drop the connection from every room it joined."""
        async with self._lock:
            rooms = self._memberships.pop(connection.id, set())
            for project_id in rooms:
                self._discard_locked(project_id, connection.id)
        return rooms

    def _discard_locked(self, project_id: int, connection_id: str) -> None:
        room = self._rooms.get(project_id)
        if room is not None:
            room.pop(connection_id, None)
            if not room:
                self._rooms.pop(project_id, None)
        memberships = self._memberships.get(connection_id)
        if memberships is not None:
            memberships.discard(project_id)
            if not memberships:
                self._memberships.pop(connection_id, None)


class DeliveryPolicy(str, Enum):
    EXCLUDE_SENDER = "exclude-sender"
    INCLUDE_SENDER = "include-sender"


def envelope(event: str, data: Any) -> dict:
    return {"event": event, "data": data}


class BroadcastFanout:
    def __init__(self, rooms: RoomRegistry) -> None:
        self.rooms = rooms

    async def deliver(
        self,
        project_id: int,
        sender: Connection,
        event: str,
        data: Any,
        policy: DeliveryPolicy,
    ) -> int:
        # Snapshot membership without holding the lock during sends
        targets = await self.rooms.members(project_id)
        if policy is DeliveryPolicy.EXCLUDE_SENDER:
            targets = [c for c in targets if c.id != sender.id]
        message = envelope(event, data)
        delivered = 0
        dead: list[Connection] = []
        for conn in targets:
            try:
                await conn.send(message)
                delivered += 1
            except DeliveryError:
                dead.append(conn)
        for conn in dead:
            logger.info("Dropping closed connection %s from project %s", conn.id, project_id)
            await self.rooms.discard(project_id, conn)
        return delivered
