from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List

from projecthub.core.database import get_db
from projecthub.core.deps import get_current_user
from projecthub.models.user import User
from projecthub.schemas.invitation import (
    InvitationResponse,
    InviteCodeResponse,
    InviteUserRequest,
    JoinProjectRequest,
)
from projecthub.schemas.member import MemberResponse
from projecthub.services import invitation_service

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("/pending", response_model=List[InvitationResponse])
def pending_invitations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return invitation_service.list_pending_invitations(db, current_user)


@router.post("/projects/{project_id}/invite", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
def invite_user(
    project_id: int,
    request: InviteUserRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return invitation_service.invite_user(db, project_id, current_user, request.user_email, request.role)


@router.get("/projects/{project_id}", response_model=List[InvitationResponse])
def project_invitations(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return invitation_service.list_project_invitations(db, project_id, current_user)


@router.post("/{invitation_id}/accept", response_model=MemberResponse)
def accept_invitation(
    invitation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return invitation_service.accept_invitation(db, invitation_id, current_user)


@router.post("/{invitation_id}/decline", status_code=status.HTTP_204_NO_CONTENT)
def decline_invitation(
    invitation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    invitation_service.decline_invitation(db, invitation_id, current_user)


@router.delete("/projects/{project_id}/invitations/{invitation_id}", status_code=status.HTTP_204_NO_CONTENT)
def cancel_invitation(
    project_id: int,
    invitation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    invitation_service.cancel_invitation(db, project_id, invitation_id, current_user)


# ========== INVITE CODES ==========

@router.post("/projects/{project_id}/code", response_model=InviteCodeResponse)
def generate_invite_code(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    invite_code = invitation_service.generate_invite_code(db, project_id, current_user)
    return {"invite_code": invite_code.code}


@router.post("/join", response_model=MemberResponse)
def join_project(
    request: JoinProjectRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return invitation_service.join_project_by_code(db, request.invite_code, current_user)
