from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.project import ProjectCreate, ProjectResponse, ProjectDetailResponse, ProgressResponse
from projecthub.services import project_service, stats_service

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return project_service.create_project(db, current_user, project_data.title, project_data.description)


@router.get("", response_model=List[ProjectResponse])
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return project_service.list_projects(db, current_user)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return project_service.get_project(db, current_user, project_id)


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    project_service.delete_project(db, current_user, project_id)


@router.get("/{project_id}/progress", response_model=ProgressResponse)
def get_progress(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return stats_service.project_progress(db, project_id, current_user)
