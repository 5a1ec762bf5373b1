"""Project service"""

import logging
from typing import List

from sqlalchemy.orm import Session

from projecthub.models.enums import ProjectRole
from projecthub.models.project import Project, ProjectMember
from projecthub.models.user import User
from projecthub.services.authorization import AuthorizationGate

logger = logging.getLogger(__name__)


def create_project(db: Session, owner: User, title: str, description: str = None) -> Project:
    # project and OWNER membership are committed together
    project = Project(owner_id=owner.id, title=title, description=description)
    project.members.append(ProjectMember(user_id=owner.id, role=ProjectRole.OWNER.value))
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("Project %s created by user %s", project.id, owner.id)
    return project


def list_projects(db: Session, user: User) -> List[Project]:
    return db.query(Project).join(
        ProjectMember, ProjectMember.project_id == Project.id
    ).filter(
        ProjectMember.user_id == user.id
    ).order_by(Project.created_at.desc(), Project.id.desc()).all()


def get_project(db: Session, user: User, project_id: int) -> Project:
    AuthorizationGate(db).check(user.id, project_id, ProjectRole.MEMBER)
    return db.query(Project).filter(Project.id == project_id).first()


def delete_project(db: Session, user: User, project_id: int) -> None:
    AuthorizationGate(db).check(user.id, project_id, ProjectRole.OWNER)
    project = db.query(Project).filter(Project.id == project_id).first()
    db.delete(project)
    db.commit()
    logger.info("Project %s deleted by owner %s", project_id, user.id)
