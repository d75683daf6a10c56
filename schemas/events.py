"""Inbound realtime event records.

One model per event type. Required fields are declared here and anything
else (unknown keys, missing fields, wrong types) is rejected at the
boundary, before a handler ever touches the payload.
"""
from __future__ import annotations
from typing import Optional
from pydantic import Field
from schemas.scene import (
    WireModel,
    Vector3,
    Transform,
    CameraPose,
    Annotation,
    ChatMessageIn,
)


class InboundEvent(WireModel):
    project_id: int


class JoinProject(InboundEvent):
    pass


class UpdateObject(InboundEvent):
    position: Vector3
    rotation: Vector3
    scale: Vector3

    def transform(self) -> Transform:
        return Transform(position=self.position, rotation=self.rotation, scale=self.scale)


class UpdateCamera(InboundEvent):
    camera: CameraPose
    caller_connection_hint: Optional[str] = None


class UpdateColor(InboundEvent):
    color: str = Field(min_length=1, max_length=32)


class AddAnnotation(InboundEvent):
    annotation: Annotation


class DeleteAnnotation(InboundEvent):
    annotation_id: str = Field(min_length=1)


class SendMessage(InboundEvent):
    message: ChatMessageIn


class ModelUploaded(InboundEvent):
    model_ref: str = Field(min_length=1, max_length=500)
