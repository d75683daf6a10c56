"""Canonical per-project scene state.

Every public method is a coroutine wrapping one short synchronous SQLAlchemy
unit of work that runs in the threadpool. Each call touches a single field
group and commits on its own; there is no cross-event transaction and no
version check, so the write that completes last wins.
"""
from __future__ import annotations
import asyncio
import logging
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
import anyio.to_thread
from models.project import Project
from models.annotation import AnnotationRecord
from models.chat_message import ChatMessageRecord
from schemas.scene import (
    DEFAULT_COLOR,
    Annotation,
    CameraPose,
    ChatMessage,
    ChatMessageIn,
    SceneObject,
    SceneState,
    Transform,
    default_transform,
)
from services.errors import PersistenceError, SceneNotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


def scene_from_project(project: Project) -> SceneState:
    transform = Transform.model_validate(project.transform)
    return SceneState(
        object=SceneObject(
            position=transform.position,
            rotation=transform.rotation,
            scale=transform.scale,
            color=project.color,
            model_ref=project.model_ref,
        ),
        camera=CameraPose.model_validate(project.camera) if project.camera else None,
        annotations=[
            Annotation(id=a.annotation_id, payload=a.payload or {}) for a in project.annotations
        ],
        chat=[
            ChatMessage(author=m.author, text=m.text, sent_at=m.sent_at) for m in project.messages
        ],
    )


class SceneStore:
    def __init__(self, session_factory: Callable[[], Session], timeout: float = 5.0) -> None:
        self._session_factory = session_factory
        self._timeout = timeout

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(str(e)) from e
        finally:
            db.close()

    async def _run(self, fn: Callable[..., T], *args) -> T:
        try:
            return await asyncio.wait_for(
                anyio.to_thread.run_sync(fn, *args, abandon_on_cancel=True),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as e:
            logger.warning("Store operation %s timed out after %ss", fn.__name__, self._timeout)
            raise PersistenceError(f"{fn.__name__} timed out") from e

    @staticmethod
    def _require_project(db: Session, project_id: int) -> None:
        if db.query(Project.id).filter(Project.id == project_id).first() is None:
            raise SceneNotFound(project_id)

    def _set_columns(self, project_id: int, values: dict) -> None:
        with self._session() as db:
            updated = (
                db.query(Project)
                .filter(Project.id == project_id)
                .update(values, synchronize_session=False)
            )
            if not updated:
                db.rollback()
                raise SceneNotFound(project_id)
            db.commit()

    # -- reads -------------------------------------------------------------

    def _load(self, project_id: int) -> SceneState:
        with self._session() as db:
            project = (
                db.query(Project)
                .options(selectinload(Project.annotations), selectinload(Project.messages))
                .filter(Project.id == project_id)
                .first()
            )
            if project is None:
                raise SceneNotFound(project_id)
            return scene_from_project(project)

    async def load(self, project_id: int) -> SceneState:
        return await self._run(self._load, project_id)

    # -- field-group sets --------------------------------------------------

    def _write_object(self, project_id: int, transform: Transform) -> None:
        self._set_columns(project_id, {Project.transform: transform.model_dump(mode="json")})

    async def write_object(self, project_id: int, transform: Transform) -> None:
        await self._run(self._write_object, project_id, transform)

    def _write_camera(self, project_id: int, camera: CameraPose) -> None:
        self._set_columns(project_id, {Project.camera: camera.model_dump(mode="json", exclude_none=True)})

    async def write_camera(self, project_id: int, camera: CameraPose) -> None:
        await self._run(self._write_camera, project_id, camera)

    def _write_color(self, project_id: int, color: str) -> None:
        self._set_columns(project_id, {Project.color: color})

    async def write_color(self, project_id: int, color: str) -> None:
        await self._run(self._write_color, project_id, color)

    # -- list appends / removals -------------------------------------------

    def _append_annotation(self, project_id: int, annotation: Annotation) -> Annotation:
        with self._session() as db:
            self._require_project(db, project_id)
            db.add(AnnotationRecord(
                project_id=project_id,
                annotation_id=annotation.id,
                payload=annotation.payload,
            ))
            db.commit()
        return annotation

    async def append_annotation(self, project_id: int, annotation: Annotation) -> Annotation:
        return await self._run(self._append_annotation, project_id, annotation)

    def _remove_annotation(self, project_id: int, annotation_id: str) -> int:
        with self._session() as db:
            self._require_project(db, project_id)
            removed = (
                db.query(AnnotationRecord)
                .filter(
                    AnnotationRecord.project_id == project_id,
                    AnnotationRecord.annotation_id == annotation_id,
                )
                .delete(synchronize_session=False)
            )
            db.commit()
            return removed

    async def remove_annotation(self, project_id: int, annotation_id: str) -> int:
        """Remove every annotation carrying ``annotation_id``. Absent ids remove nothing."""
        return await self._run(self._remove_annotation, project_id, annotation_id)

    def _append_chat(self, project_id: int, message: ChatMessageIn) -> ChatMessage:
        with self._session() as db:
            self._require_project(db, project_id)
            row = ChatMessageRecord(project_id=project_id, author=message.author, text=message.text)
            db.add(row)
            db.commit()
            db.refresh(row)
            return ChatMessage(author=row.author, text=row.text, sent_at=row.sent_at)

    async def append_chat(self, project_id: int, message: ChatMessageIn) -> ChatMessage:
        return await self._run(self._append_chat, project_id, message)

    # -- model swap ----------------------------------------------------------

    def _apply_model_swap(self, project_id: int, model_ref: str) -> None:
        with self._session() as db:
            updated = (
                db.query(Project)
                .filter(Project.id == project_id)
                .update(
                    {
                        Project.model_ref: model_ref,
                        Project.transform: default_transform().model_dump(mode="json"),
                        Project.color: DEFAULT_COLOR,
                    },
                    synchronize_session=False,
                )
            )
            if not updated:
                db.rollback()
                raise SceneNotFound(project_id)
            # Annotations were anchored to the old geometry
            db.query(AnnotationRecord).filter(
                AnnotationRecord.project_id == project_id
            ).delete(synchronize_session=False)
            db.commit()

    async def apply_model_swap(self, project_id: int, model_ref: str) -> None:
        await self._run(self._apply_model_swap, project_id, model_ref)
