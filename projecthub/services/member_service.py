"""Membership management: listing, direct add, removal, role changes"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.core.errors import AlreadyMember, Forbidden, NotFound
from projecthub.models.enums import ProjectRole
from projecthub.models.project import ProjectMember
from projecthub.models.task import Task
from projecthub.models.user import User
from projecthub.services.authorization import AuthorizationGate
from projecthub.services import invitation_service

logger = logging.getLogger(__name__)


def list_members(db: Session, actor: User, project_id: int) -> List[ProjectMember]:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)
    return db.query(ProjectMember).filter(
        ProjectMember.project_id == project_id
    ).order_by(ProjectMember.joined_at, ProjectMember.id).all()


def add_member(db: Session, actor: User, project_id: int, email: str, role: ProjectRole) -> ProjectMember:
    gate = AuthorizationGate(db)
    gate.check(actor.id, project_id, ProjectRole.ADMIN)

    user = db.query(User).filter(User.email == email.lower()).first()
    if not user:
        raise NotFound("User not found")
    if gate.is_member(user.id, project_id):
        raise AlreadyMember("User is already a member of this project")

    member = ProjectMember(project_id=project_id, user_id=user.id, role=role.value)
    db.add(member)
    invitation_service.close_pending_for(db, project_id, user.email)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyMember("User is already a member of this project")
    db.refresh(member)
    logger.info("User %s added to project %s as %s by %s", user.id, project_id, role.value, actor.id)
    return member


def _get_member(db: Session, project_id: int, user_id: int) -> ProjectMember:
    member = AuthorizationGate(db).membership(user_id, project_id)
    if not member:
        raise NotFound("Member not found in project")
    return member


def _release_assignments(db: Session, project_id: int, user_id: int) -> None:
    # tasks of a departing member go back to the pool
    db.query(Task).filter(
        Task.project_id == project_id,
        Task.assigned_to_id == user_id
    ).update({Task.assigned_to_id: None}, synchronize_session=False)


def remove_member(db: Session, actor: User, project_id: int, user_id: int) -> None:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.ADMIN)
    member = _get_member(db, project_id, user_id)
    if member.role == ProjectRole.OWNER:
        raise Forbidden("Cannot remove the project owner")

    _release_assignments(db, project_id, user_id)
    db.delete(member)
    db.commit()
    logger.info("User %s removed from project %s by %s", user_id, project_id, actor.id)


def update_member_role(db: Session, actor: User, project_id: int, user_id: int, role: ProjectRole) -> ProjectMember:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.ADMIN)
    member = _get_member(db, project_id, user_id)
    if member.role == ProjectRole.OWNER:
        raise Forbidden("Cannot change the owner's role")

    member.role = role.value
    db.commit()
    db.refresh(member)
    logger.info("User %s role in project %s set to %s by %s", user_id, project_id, role.value, actor.id)
    return member


def leave_project(db: Session, actor: User, project_id: int) -> None:
    member = AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)
    if member.role == ProjectRole.OWNER:
        raise Forbidden("The project owner cannot leave the project")

    _release_assignments(db, project_id, actor.id)
    db.delete(member)
    db.commit()
    logger.info("User %s left project %s", actor.id, project_id)
