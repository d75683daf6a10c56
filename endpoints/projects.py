from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List
from database import get_db
from schemas.project import ProjectCreate, ProjectOut
from schemas.scene import SceneState
from services.projects import list_projects, get_project, create_project, delete_project
from services.scene_store import scene_from_project

router = APIRouter(prefix="/projects", tags=["projects"])

@router.get("/", response_model=List[ProjectOut])
def get_projects(db: Session = Depends(get_db)):
    return list_projects(db)

@router.post("/", response_model=ProjectOut, status_code=201)
def new_project(body: ProjectCreate, db: Session = Depends(get_db)):
    return create_project(db, body.title)

@router.get("/{project_id}", response_model=ProjectOut)
def read_project(project_id: int, db: Session = Depends(get_db)):
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project

@router.get("/{project_id}/scene")
def read_scene(project_id: int, db: Session = Depends(get_db)):
    """Current scene state, same shape as the realtime snapshot."""
    project = get_project(db, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    scene: SceneState = scene_from_project(project)
    return scene.wire()

@router.delete("/{project_id}")
def remove_project(project_id: int, db: Session = Depends(get_db)):
    if not delete_project(db, project_id):
        raise HTTPException(status_code=404, detail="Project not found")
    return {"message": f"Project {project_id} deleted"}
