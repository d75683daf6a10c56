from __future__ import annotations
import logging
from sqlalchemy.orm import Session
from models.project import Project
from schemas.scene import DEFAULT_COLOR, default_transform

logger = logging.getLogger(__name__)

def list_projects(db: Session) -> list[Project]:
    return db.query(Project).order_by(Project.id.asc()).all()

def get_project(db: Session, project_id: int) -> Project | None:
    return db.get(Project, project_id)

def create_project(db: Session, title: str) -> Project:
    """New project with the default scene: default transform and color, no model,
    no camera, no annotations, no chat."""
    project = Project(
        title=title,
        transform=default_transform().model_dump(mode="json"),
        color=DEFAULT_COLOR,
        model_ref=None,
        camera=None,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Created project %s (%s)", project.id, title)
    return project

def delete_project(db: Session, project_id: int) -> bool:
    # Realtime room membership for the project is left as is
    project = db.get(Project, project_id)
    if not project:
        return False
    db.delete(project)
    db.commit()
    logger.info("Deleted project %s", project_id)
    return True
