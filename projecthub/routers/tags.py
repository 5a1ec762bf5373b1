from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.tag import TagCreate, TagResponse
from projecthub.services import tag_service

router = APIRouter(prefix="/projects/{project_id}/tags", tags=["tags"])


@router.get("", response_model=List[TagResponse])
def list_tags(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return tag_service.list_tags(db, project_id, current_user)


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(
    project_id: int,
    tag_data: TagCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return tag_service.create_tag(db, project_id, current_user, tag_data.name, tag_data.color)


@router.delete("/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_tag(
    project_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    tag_service.delete_tag(db, project_id, tag_id, current_user)
