from __future__ import annotations
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_COLOR = "#ffffff"


class WireModel(BaseModel):
    """camelCase on the wire, snake_case in Python.

    Unknown keys are rejected at every nesting level, and `wire()` only
    emits fields that were actually set, so a relayed record carries the
    same fields the sender supplied.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        coerce_numbers_to_str=True,
        from_attributes=True,
    )

    def wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class Vector3(WireModel):
    x: float
    y: float
    z: float

    @model_validator(mode="before")
    @classmethod
    def from_sequence(cls, v):
        # three.js clients may send [x, y, z] arrays as well as {x, y, z}
        if isinstance(v, (list, tuple)):
            if len(v) != 3:
                raise ValueError("vector must have exactly 3 components")
            return {"x": v[0], "y": v[1], "z": v[2]}
        return v


class Transform(WireModel):
    position: Vector3
    rotation: Vector3
    scale: Vector3


def default_transform() -> Transform:
    return Transform(
        position=Vector3(x=0, y=0, z=0),
        rotation=Vector3(x=0, y=0, z=0),
        scale=Vector3(x=1, y=1, z=1),
    )


class SceneObject(Transform):
    color: Optional[str] = None
    model_ref: Optional[str] = None


class CameraPose(WireModel):
    position: Vector3
    target: Optional[Vector3] = None
    rotation: Optional[Vector3] = None
    fov: Optional[float] = None
    zoom: Optional[float] = None


class Annotation(WireModel):
    id: str = Field(min_length=1)
    payload: dict[str, Any] = Field(default_factory=dict)


class ChatMessageIn(WireModel):
    author: str = Field(min_length=1)
    text: str = Field(min_length=1)


class ChatMessage(ChatMessageIn):
    sent_at: Optional[datetime] = None


class SceneState(WireModel):
    object: SceneObject
    camera: Optional[CameraPose] = None
    annotations: list[Annotation] = Field(default_factory=list)
    chat: list[ChatMessage] = Field(default_factory=list)
