from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship
from database import Base


class Project(Base):
    """A collaborative session owning exactly one scene.

    The scene is split across columns so each event type writes its own
    field group: transform, color, camera and model reference are set
    atomically and independently. Annotations and chat are child rows so
    appends never overwrite each other.
    """
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    transform = Column(JSON, nullable=False)  # {position, rotation, scale}, each {x, y, z}
    color = Column(String(32), nullable=True)
    model_ref = Column(String(500), nullable=True)
    camera = Column(JSON, nullable=True)

    annotations = relationship(
        "AnnotationRecord",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="AnnotationRecord.id",
    )
    messages = relationship(
        "ChatMessageRecord",
        back_populates="project",
        cascade="all, delete-orphan",
        order_by="ChatMessageRecord.id",
    )
