"""
Invitation workflow - direct invitations and invite codes.

Invitation lifecycle::

    PENDING -> ACCEPTED | DECLINED | CANCELLED   (terminal)

Responding to an invitation is a compare-and-set on ``status``: the UPDATE
only matches while the row is still PENDING, so of two concurrent accepts
exactly one wins and the loser gets INVALID_STATE. The status change and the
new membership are committed in the same transaction.
"""

import logging
import secrets
import string
from datetime import datetime
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.core.config import settings
from projecthub.core.errors import AlreadyMember, DuplicateInvitation, InvalidCode, InvalidState, NotFound
from projecthub.models.enums import InvitationStatus, ProjectRole
from projecthub.models.invitation import Invitation, InviteCode
from projecthub.models.project import ProjectMember
from projecthub.models.user import User
from projecthub.services.authorization import AuthorizationGate

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_uppercase + string.digits


# ============ DIRECT INVITATIONS ============

def invite_user(db: Session, project_id: int, inviter: User, invitee_email: str, role: ProjectRole) -> Invitation:
    gate = AuthorizationGate(db)
    gate.check(inviter.id, project_id, ProjectRole.ADMIN)

    invitee_email = invitee_email.lower()
    invitee = db.query(User).filter(User.email == invitee_email).first()
    if not invitee:
        raise NotFound("User not found")

    if gate.is_member(invitee.id, project_id):
        raise AlreadyMember("User is already a member of this project")

    pending = db.query(Invitation).filter(
        Invitation.project_id == project_id,
        Invitation.invitee_email == invitee_email,
        Invitation.status == InvitationStatus.PENDING.value
    ).first()
    if pending:
        raise DuplicateInvitation("User already has a pending invitation")

    invitation = Invitation(
        project_id=project_id,
        invitee_email=invitee_email,
        inviter_id=inviter.id,
        role=role.value,
        status=InvitationStatus.PENDING.value
    )
    db.add(invitation)
    try:
        db.commit()
    except IntegrityError:
        # partial unique index: a concurrent invite for the same pair won
        db.rollback()
        raise DuplicateInvitation("User already has a pending invitation")

    db.refresh(invitation)
    logger.info("Invitation %s sent to %s for project %s", invitation.id, invitee_email, project_id)
    return invitation


def _invitation_for(db: Session, invitation_id: int, user: User) -> Invitation:
    invitation = db.query(Invitation).filter(Invitation.id == invitation_id).first()
    # someone else's invitation is reported as missing
    if not invitation or invitation.invitee_email != user.email.lower():
        raise NotFound("Invitation not found")
    if invitation.status != InvitationStatus.PENDING:
        raise InvalidState("This invitation is no longer valid")
    return invitation


def _close_pending(db: Session, invitation_id: int, new_status: InvitationStatus) -> bool:
    """Move a PENDING invitation to ``new_status``; False when it was no longer PENDING."""
    updated = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.status == InvitationStatus.PENDING.value
    ).update(
        {Invitation.status: new_status.value, Invitation.responded_at: datetime.utcnow()},
        synchronize_session=False
    )
    return updated == 1


def close_pending_for(db: Session, project_id: int, email: str) -> int:
    """Cancel the PENDING invitations of an e-mail that joined the project another way.

    Not committed; runs in the caller's transaction.
    """
    return db.query(Invitation).filter(
        Invitation.project_id == project_id,
        Invitation.invitee_email == email.lower(),
        Invitation.status == InvitationStatus.PENDING.value
    ).update(
        {Invitation.status: InvitationStatus.CANCELLED.value, Invitation.responded_at: datetime.utcnow()},
        synchronize_session=False
    )


def accept_invitation(db: Session, invitation_id: int, user: User) -> ProjectMember:
    invitation = _invitation_for(db, invitation_id, user)
    project_id = invitation.project_id

    if AuthorizationGate(db).is_member(user.id, project_id):
        # joined meanwhile (code or direct add): the invitation is moot
        _close_pending(db, invitation.id, InvitationStatus.CANCELLED)
        db.commit()
        raise AlreadyMember("You are already a member of this project")

    if not _close_pending(db, invitation.id, InvitationStatus.ACCEPTED):
        db.rollback()
        raise InvalidState("This invitation is no longer valid")

    member = ProjectMember(project_id=project_id, user_id=user.id, role=invitation.role)
    db.add(member)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent join won; the invitation is closed as superseded
        db.rollback()
        _close_pending(db, invitation_id, InvitationStatus.CANCELLED)
        db.commit()
        raise AlreadyMember("You are already a member of this project")

    db.refresh(member)
    logger.info("User %s accepted invitation %s and joined project %s", user.id, invitation_id, project_id)
    return member


def decline_invitation(db: Session, invitation_id: int, user: User) -> None:
    invitation = _invitation_for(db, invitation_id, user)

    if not _close_pending(db, invitation.id, InvitationStatus.DECLINED):
        db.rollback()
        raise InvalidState("This invitation is no longer valid")

    db.commit()
    logger.info("User %s declined invitation %s", user.id, invitation_id)


def cancel_invitation(db: Session, project_id: int, invitation_id: int, actor: User) -> None:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.ADMIN)

    invitation = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.project_id == project_id
    ).first()
    if not invitation:
        raise NotFound("Invitation not found")
    if invitation.status != InvitationStatus.PENDING:
        raise InvalidState("Can only cancel pending invitations")

    if not _close_pending(db, invitation.id, InvitationStatus.CANCELLED):
        db.rollback()
        raise InvalidState("Can only cancel pending invitations")

    db.commit()
    logger.info("Invitation %s cancelled by %s", invitation_id, actor.id)


def list_pending_invitations(db: Session, user: User) -> List[Invitation]:
    return db.query(Invitation).filter(
        Invitation.invitee_email == user.email.lower(),
        Invitation.status == InvitationStatus.PENDING.value
    ).order_by(Invitation.invited_at.desc(), Invitation.id.desc()).all()


def list_project_invitations(db: Session, project_id: int, actor: User) -> List[Invitation]:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.ADMIN)
    return db.query(Invitation).filter(
        Invitation.project_id == project_id
    ).order_by(Invitation.invited_at.desc(), Invitation.id.desc()).all()


# ============ INVITE CODES ============

def new_code(length: int = None) -> str:
    length = length or settings.INVITE_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_invite_code(db: Session, project_id: int, actor: User) -> InviteCode:
    """Create a fresh code; codes generated earlier for the project stay valid."""
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.ADMIN)

    code = new_code()
    while db.query(InviteCode.id).filter(InviteCode.code == code).first():
        code = new_code()

    invite_code = InviteCode(code=code, project_id=project_id, created_by=actor.id)
    db.add(invite_code)
    db.commit()
    db.refresh(invite_code)
    logger.info("Generated invite code for project %s by %s", project_id, actor.id)
    return invite_code


def join_project_by_code(db: Session, code: str, user: User) -> ProjectMember:
    invite_code = db.query(InviteCode).filter(InviteCode.code == code.strip().upper()).first()
    if not invite_code:
        raise InvalidCode("Invalid invite code")

    project_id = invite_code.project_id
    if AuthorizationGate(db).is_member(user.id, project_id):
        raise AlreadyMember("You are already a member of this project")

    # code joins always land as MEMBER
    member = ProjectMember(project_id=project_id, user_id=user.id, role=ProjectRole.MEMBER.value)
    db.add(member)
    close_pending_for(db, project_id, user.email)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyMember("You are already a member of this project")

    db.refresh(member)
    logger.info("User %s joined project %s via invite code", user.id, project_id)
    return member
