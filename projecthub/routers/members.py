from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.member import AddMemberRequest, MemberResponse, UpdateRoleRequest
from projecthub.services import member_service

router = APIRouter(prefix="/projects/{project_id}", tags=["members"])


@router.get("/members", response_model=List[MemberResponse])
def list_members(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return member_service.list_members(db, current_user, project_id)


@router.post("/members", response_model=MemberResponse, status_code=status.HTTP_201_CREATED)
def add_member(
    project_id: int,
    request: AddMemberRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Add a registered user directly, without an invitation"""
    return member_service.add_member(db, current_user, project_id, request.user_email, request.role)


@router.delete("/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_member(
    project_id: int,
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    member_service.remove_member(db, current_user, project_id, user_id)


@router.put("/members/{user_id}/role", response_model=MemberResponse)
def update_member_role(
    project_id: int,
    user_id: int,
    request: UpdateRoleRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return member_service.update_member_role(db, current_user, project_id, user_id, request.role)


@router.post("/leave", status_code=status.HTTP_204_NO_CONTENT)
def leave_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    member_service.leave_project(db, current_user, project_id)
