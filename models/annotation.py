from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from database import Base


class AnnotationRecord(Base):
    __tablename__ = "annotations"
    __table_args__ = (
        Index("ix_annotations_project_annotation", "project_id", "annotation_id"),
    )

    id = Column(Integer, primary_key=True)  # insertion order == list order
    project_id = Column(Integer, ForeignKey('projects.id', ondelete='CASCADE'), index=True, nullable=False)
    annotation_id = Column(String(100), nullable=False)  # caller supplied, not unique
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    project = relationship("Project", back_populates="annotations")
