from pydantic import EmailStr, field_validator
from datetime import datetime
from projecthub.models.enums import ProjectRole
from projecthub.schemas.common import CamelModel


def reject_owner_role(role: ProjectRole) -> ProjectRole:
    # ownership is never granted through the API
    if role == ProjectRole.OWNER:
        raise ValueError("Cannot assign OWNER role. Each project can only have one owner.")
    return role


class MemberResponse(CamelModel):
    id: int
    user_id: int
    user_email: str
    role: ProjectRole
    joined_at: datetime


class AddMemberRequest(CamelModel):
    user_email: EmailStr
    role: ProjectRole = ProjectRole.MEMBER

    @field_validator("role")
    @classmethod
    def role_not_owner(cls, role: ProjectRole) -> ProjectRole:
        return reject_owner_role(role)


class UpdateRoleRequest(CamelModel):
    role: ProjectRole

    @field_validator("role")
    @classmethod
    def role_not_owner(cls, role: ProjectRole) -> ProjectRole:
        return reject_owner_role(role)
