"""Invitation and invite code models"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
from projecthub.core.database import Base
from projecthub.models.enums import InvitationStatus, ProjectRole

PENDING_ONLY = text("status = 'PENDING'")


class Invitation(Base):
    __tablename__ = "invitations"
    __table_args__ = (
        # at most one PENDING invitation per (project, invitee)
        Index(
            "uq_invitations_pending",
            "project_id", "invitee_email",
            unique=True,
            sqlite_where=PENDING_ONLY,
            postgresql_where=PENDING_ONLY,
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    invitee_email = Column(String, nullable=False, index=True)
    inviter_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    role = Column(String, nullable=False, default=ProjectRole.MEMBER.value)
    status = Column(String, nullable=False, default=InvitationStatus.PENDING.value)
    invited_at = Column(DateTime, default=datetime.utcnow)
    responded_at = Column(DateTime, nullable=True)

    project = relationship("Project", back_populates="invitations")
    inviter = relationship("User", foreign_keys=[inviter_id])
    invitee = relationship(
        "User",
        primaryjoin="foreign(Invitation.invitee_email) == User.email",
        viewonly=True,
        uselist=False,
    )

    @property
    def project_title(self) -> str:
        return self.project.title

    @property
    def invitee_id(self):
        return self.invitee.id if self.invitee else None

    @property
    def inviter_email(self) -> str:
        return self.inviter.email


class InviteCode(Base):
    __tablename__ = "invite_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    project = relationship("Project", back_populates="invite_codes")
