"""Tag service"""

import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from projecthub.core.errors import NotFound, ValidationFailed
from projecthub.models.enums import ProjectRole
from projecthub.models.tag import Tag
from projecthub.models.user import User
from projecthub.services.authorization import AuthorizationGate

logger = logging.getLogger(__name__)

DUPLICATE_NAME = "Tag with this name already exists in this project"


def list_tags(db: Session, project_id: int, actor: User) -> List[Tag]:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)
    return db.query(Tag).filter(Tag.project_id == project_id).order_by(Tag.name).all()


def create_tag(db: Session, project_id: int, actor: User, name: str, color: str) -> Tag:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)

    existing = db.query(Tag).filter(Tag.project_id == project_id, Tag.name == name).first()
    if existing:
        raise ValidationFailed(DUPLICATE_NAME)

    tag = Tag(project_id=project_id, name=name, color=color)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationFailed(DUPLICATE_NAME)
    db.refresh(tag)
    logger.info("Tag %s (%s) created in project %s", tag.id, name, project_id)
    return tag


def delete_tag(db: Session, project_id: int, tag_id: int, actor: User) -> None:
    AuthorizationGate(db).check(actor.id, project_id, ProjectRole.MEMBER)

    tag = db.query(Tag).filter(Tag.id == tag_id, Tag.project_id == project_id).first()
    if not tag:
        raise NotFound("Tag not found")

    # detaches the tag from every task that carries it
    tag.tasks = []
    db.delete(tag)
    db.commit()
    logger.info("Tag %s deleted from project %s", tag_id, project_id)
