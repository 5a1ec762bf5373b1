"""
Authorization gate - role checks over project memberships.

Every mutating service goes through ``AuthorizationGate.check`` before
touching a project. Roles are ordered OWNER > ADMIN > MEMBER: a check for
ADMIN lets OWNER and ADMIN members through and denies plain MEMBERs.
"""

from typing import Optional

from sqlalchemy.orm import Session

from projecthub.core.errors import Forbidden, NotFound
from projecthub.models.enums import ProjectRole
from projecthub.models.project import Project, ProjectMember


class AuthorizationGate:

    def __init__(self, db: Session):
        self.db = db

    def membership(self, user_id: int, project_id: int) -> Optional[ProjectMember]:
        return self.db.query(ProjectMember).filter(
            ProjectMember.project_id == project_id,
            ProjectMember.user_id == user_id
        ).first()

    def role_of(self, user_id: int, project_id: int) -> Optional[ProjectRole]:
        member = self.membership(user_id, project_id)
        return ProjectRole(member.role) if member else None

    def is_member(self, user_id: int, project_id: int) -> bool:
        return self.membership(user_id, project_id) is not None

    def allows(self, user_id: int, project_id: int, required_role: ProjectRole) -> bool:
        role = self.role_of(user_id, project_id)
        return role is not None and role.rank >= required_role.rank

    def check(self, user_id: int, project_id: int, required_role: ProjectRole = ProjectRole.MEMBER) -> ProjectMember:
        """Return the actor's membership or raise NotFound / Forbidden."""
        exists = self.db.query(Project.id).filter(Project.id == project_id).first()
        if not exists:
            raise NotFound("Project not found")

        member = self.membership(user_id, project_id)
        if member is None:
            raise Forbidden("You are not a member of this project")

        if ProjectRole(member.role).rank < required_role.rank:
            if required_role == ProjectRole.OWNER:
                raise Forbidden("Only the project owner can perform this action")
            raise Forbidden("Only project owners and admins can perform this action")

        return member
