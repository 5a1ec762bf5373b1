from pydantic import EmailStr, field_validator
from datetime import datetime
from typing import Optional
from projecthub.models.enums import ProjectRole, InvitationStatus
from projecthub.schemas.common import CamelModel
from projecthub.schemas.member import reject_owner_role


class InviteUserRequest(CamelModel):
    user_email: EmailStr
    role: ProjectRole = ProjectRole.MEMBER

    @field_validator("role")
    @classmethod
    def role_not_owner(cls, role: ProjectRole) -> ProjectRole:
        return reject_owner_role(role)


class InvitationResponse(CamelModel):
    id: int
    project_id: int
    project_title: str
    invitee_id: Optional[int]
    invitee_email: str
    inviter_id: int
    inviter_email: str
    role: ProjectRole
    status: InvitationStatus
    invited_at: datetime
    responded_at: Optional[datetime]


class InviteCodeResponse(CamelModel):
    invite_code: str


class JoinProjectRequest(CamelModel):
    invite_code: str

    @field_validator("invite_code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        value = value.strip().upper()
        if not value:
            raise ValueError("Invite code is required")
        return value
