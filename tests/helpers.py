"""Fakes shared by the realtime tests."""
import asyncio
from collections import defaultdict
from typing import Dict, List

from schemas.scene import SceneState
from services.errors import DeliveryError, PersistenceError, SceneNotFound


class FakeConnection:
    def __init__(self, connection_id: str, closed: bool = False):
        self.id = connection_id
        self.closed = closed
        self.sent: List[dict] = []

    async def send(self, message: dict) -> None:
        if self.closed:
            raise DeliveryError(self.id)
        self.sent.append(message)

    def events(self) -> List[str]:
        return [m["event"] for m in self.sent]

    def received(self, event: str) -> List[dict]:
        return [m["data"] for m in self.sent if m["event"] == event]


class GatedStore:
    """Store double whose writes complete only when the test releases them.

    Lets a test decide the order in which concurrent writes land, instead of
    relying on wall-clock timing.
    """

    def __init__(self, project_ids=(1,), fail_writes: bool = False):
        self.project_ids = set(project_ids)
        self.fail_writes = fail_writes
        self.objects: Dict[int, object] = {}
        self.colors: Dict[int, str] = {}
        self.gates: Dict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self.started: Dict[str, asyncio.Event] = defaultdict(asyncio.Event)
        self.completed: List[str] = []

    def release(self, key: str) -> None:
        self.gates[key].set()

    async def _gate(self, project_id: int, key: str) -> None:
        self.started[key].set()
        await self.gates[key].wait()
        if self.fail_writes:
            raise PersistenceError("store unavailable")
        if project_id not in self.project_ids:
            raise SceneNotFound(project_id)

    async def write_object(self, project_id, transform):
        key = f"object:{transform.position.x:g}"
        await self._gate(project_id, key)
        self.objects[project_id] = transform
        self.completed.append(key)

    async def write_color(self, project_id, color):
        key = f"color:{color}"
        await self._gate(project_id, key)
        self.colors[project_id] = color
        self.completed.append(key)

    async def load(self, project_id) -> SceneState:
        raise SceneNotFound(project_id)


def object_event(project_id: int, x: float) -> dict:
    return {
        "projectId": project_id,
        "position": {"x": x, "y": 0, "z": 0},
        "rotation": {"x": 0, "y": 0, "z": 0},
        "scale": {"x": 1, "y": 1, "z": 1},
    }
