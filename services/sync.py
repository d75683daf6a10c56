"""Session synchronizer: inbound scene events -> store write -> room fan-out.

Each event type is one row in ``ROUTES``: the record its payload must match,
the store call that persists it, the outbound event name and who receives
it. A broadcast only happens after the store call returned, so anything a
client receives has already been committed.

Transform and camera updates are high-frequency and the sender already holds
the value locally, so they skip the sender. Everything else echoes back to
the sender as confirmation that the write landed.
"""
from __future__ import annotations
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Set, Type
from pydantic import ValidationError
from realtime import BroadcastFanout, Connection, DeliveryPolicy, RoomRegistry, envelope
from schemas.events import (
    InboundEvent,
    JoinProject,
    UpdateObject,
    UpdateCamera,
    UpdateColor,
    AddAnnotation,
    DeleteAnnotation,
    SendMessage,
    ModelUploaded,
)
from services.errors import DeliveryError, EventValidationError, PersistenceError, SceneNotFound
from services.scene_store import SceneStore

logger = logging.getLogger(__name__)

JOIN_EVENT = "join"
SNAPSHOT_EVENT = "snapshot"
REJECTED_EVENT = "eventRejected"


@dataclass(frozen=True)
class EventRoute:
    record: Type[InboundEvent]
    outbound: str
    policy: DeliveryPolicy
    # Persists the event and returns the outbound payload
    apply: Callable[[SceneStore, Any], Awaitable[dict]]


async def _update_object(store: SceneStore, ev: UpdateObject) -> dict:
    await store.write_object(ev.project_id, ev.transform())
    return ev.wire()


async def _update_camera(store: SceneStore, ev: UpdateCamera) -> dict:
    await store.write_camera(ev.project_id, ev.camera)
    return ev.wire()


async def _update_color(store: SceneStore, ev: UpdateColor) -> dict:
    await store.write_color(ev.project_id, ev.color)
    return ev.wire()


async def _add_annotation(store: SceneStore, ev: AddAnnotation) -> dict:
    await store.append_annotation(ev.project_id, ev.annotation)
    return ev.wire()


async def _delete_annotation(store: SceneStore, ev: DeleteAnnotation) -> dict:
    await store.remove_annotation(ev.project_id, ev.annotation_id)
    return {"projectId": ev.project_id, "annotationId": ev.annotation_id}


async def _send_message(store: SceneStore, ev: SendMessage) -> dict:
    stored = await store.append_chat(ev.project_id, ev.message)
    return {"projectId": ev.project_id, "message": stored.wire()}


async def _model_uploaded(store: SceneStore, ev: ModelUploaded) -> dict:
    # Server side the object is reset and annotations cleared as well
    await store.apply_model_swap(ev.project_id, ev.model_ref)
    return {"projectId": ev.project_id, "modelRef": ev.model_ref}


EXCLUDE = DeliveryPolicy.EXCLUDE_SENDER
INCLUDE = DeliveryPolicy.INCLUDE_SENDER

ROUTES: Dict[str, EventRoute] = {
    "updateObject": EventRoute(UpdateObject, "objectUpdated", EXCLUDE, _update_object),
    "updateCamera": EventRoute(UpdateCamera, "cameraUpdated", EXCLUDE, _update_camera),
    "updateColor": EventRoute(UpdateColor, "colorUpdated", INCLUDE, _update_color),
    "addAnnotation": EventRoute(AddAnnotation, "annotationAdded", INCLUDE, _add_annotation),
    "deleteAnnotation": EventRoute(DeleteAnnotation, "annotationDeleted", INCLUDE, _delete_annotation),
    "sendMessage": EventRoute(SendMessage, "receiveMessage", INCLUDE, _send_message),
    "modelUploaded": EventRoute(ModelUploaded, "modelLoaded", INCLUDE, _model_uploaded),
}


def parse_event(event: str, data: Any) -> InboundEvent:
    route = ROUTES.get(event)
    if route is None:
        raise EventValidationError(event, "unknown event", reason="unknown_event")
    try:
        return route.record.model_validate(data)
    except ValidationError as e:
        raise EventValidationError(event, str(e)) from e


class SessionSynchronizer:
    """Holds no scene state of its own; the store and the registry do."""

    def __init__(self, store: SceneStore, rooms: RoomRegistry, fanout: BroadcastFanout | None = None) -> None:
        self.store = store
        self.rooms = rooms
        self.fanout = fanout or BroadcastFanout(rooms)
        self._in_flight: Set[asyncio.Task] = set()

    # -- scheduling --------------------------------------------------------

    def submit(self, connection: Connection, event: str, data: Any) -> asyncio.Task:
        """Handle an event as its own task. Closing the connection does not cancel it."""
        task = asyncio.create_task(self.handle(connection, event, data))
        self._in_flight.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._in_flight.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled error while processing event", exc_info=exc)

    async def drain(self) -> None:
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)

    # -- dispatch ------------------------------------------------------------

    async def handle(self, connection: Connection, event: str, data: Any) -> bool:
        """Process one inbound event. Returns True when a broadcast went out."""
        if event == JOIN_EVENT:
            return await self.join(connection, data)

        try:
            record = parse_event(event, data)
        except EventValidationError as e:
            logger.warning("Rejected %s from %s: %s", event, connection.id, e.detail)
            await self._reject(connection, event, e.reason, e.detail)
            return False

        route = ROUTES[event]
        try:
            payload = await route.apply(self.store, record)
        except SceneNotFound as e:
            logger.warning("Rejected %s from %s: %s", event, connection.id, e)
            await self._reject(connection, event, "not_found", str(e), record.project_id)
            return False
        except PersistenceError as e:
            logger.warning("Persisting %s for project %s failed: %s", event, record.project_id, e)
            await self._reject(connection, event, "persistence_error", str(e), record.project_id)
            return False

        await self.fanout.deliver(record.project_id, connection, route.outbound, payload, route.policy)
        return True

    async def join(self, connection: Connection, data: Any) -> bool:
        """Record membership then push the snapshot to the caller only.

        An unknown project (or a malformed request, or a failed read) yields
        no snapshot and no error event.
        """
        if not isinstance(data, dict):
            data = {"projectId": data}
        try:
            request = JoinProject.model_validate(data)
        except ValidationError as e:
            logger.warning("Ignoring malformed join from %s: %s", connection.id, e)
            return False

        await self.rooms.join(connection, request.project_id)
        logger.info("%s joined project %s", connection.id, request.project_id)
        try:
            scene = await self.store.load(request.project_id)
        except SceneNotFound:
            logger.info("Join for unknown project %s from %s", request.project_id, connection.id)
            return False
        except PersistenceError as e:
            logger.warning("Loading project %s for join failed: %s", request.project_id, e)
            return False

        await self._send(connection, SNAPSHOT_EVENT, {"projectId": request.project_id, "scene": scene.wire()})
        return False

    async def _reject(self, connection: Connection, event: str, reason: str, detail: str, project_id: int | None = None) -> None:
        await self._send(connection, REJECTED_EVENT, {
            "event": event,
            "projectId": project_id,
            "reason": reason,
            "detail": detail,
        })

    async def _send(self, connection: Connection, event: str, data: dict) -> None:
        try:
            await connection.send(envelope(event, data))
        except DeliveryError:
            logger.info("Connection %s closed before %s could be sent", connection.id, event)
