import pytest

from projecthub.core.database import SessionLocal
from projecthub.core.errors import AlreadyMember, InvalidState
from projecthub.models.enums import ProjectRole
from projecthub.models.invitation import Invitation
from projecthub.models.project import ProjectMember
from projecthub.models.user import User
from projecthub.services import invitation_service
from projecthub.services.authorization import AuthorizationGate


@pytest.fixture
def invitee(register):
    return register("invitee@example.com")


@pytest.fixture
def invite(client, owner, project):
    """Factory: owner invites an e-mail to the project"""
    def _invite(email: str, role: str = "MEMBER", headers: dict = None):
        return client.post(
            f"/invitations/projects/{project['id']}/invite",
            headers=headers or owner["headers"],
            json={"userEmail": email, "role": role}
        )
    return _invite


# ========== TEST INVITE ==========
def test_invite_user(owner, project, invitee, invite):
    response = invite("Invitee@Example.com", "ADMIN")
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "PENDING"
    assert data["role"] == "ADMIN"
    assert data["inviteeEmail"] == "invitee@example.com"
    assert data["inviteeId"] == invitee["id"]
    assert data["inviterEmail"] == owner["email"]
    assert data["projectTitle"] == project["title"]
    assert data["respondedAt"] is None


def test_duplicate_pending_invitation(invitee, invite):
    """Test : one PENDING invitation per (project, invitee)"""
    assert invite(invitee["email"]).status_code == 201
    response = invite(invitee["email"])
    assert response.status_code == 409
    assert response.json()["error"] == "DUPLICATE_INVITATION"


def test_invite_existing_member(project, invitee, invite, add_member):
    add_member(project["id"], invitee)
    response = invite(invitee["email"])
    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_MEMBER"


def test_invite_unknown_user(invite):
    response = invite("nobody@example.com")
    assert response.status_code == 404


def test_invite_by_member_forbidden(project, invitee, invite, register, add_member):
    member = register("member@example.com")
    add_member(project["id"], member)
    response = invite(invitee["email"], headers=member["headers"])
    assert response.status_code == 403


def test_invite_as_owner_rejected(invitee, invite):
    response = invite(invitee["email"], "OWNER")
    assert response.status_code == 400


# ========== TEST ACCEPT / DECLINE ==========
def test_accept_invitation(client, project, invitee, invite):
    """Test : accepting creates the membership with the invited role"""
    invitation = invite(invitee["email"], "ADMIN").json()

    pending = client.get("/invitations/pending", headers=invitee["headers"]).json()
    assert [i["id"] for i in pending] == [invitation["id"]]

    response = client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])
    assert response.status_code == 200
    assert response.json()["role"] == "ADMIN"
    assert response.json()["userId"] == invitee["id"]

    assert client.get("/invitations/pending", headers=invitee["headers"]).json() == []
    assert client.get(f"/projects/{project['id']}", headers=invitee["headers"]).status_code == 200


def test_accept_twice(client, invitee, invite):
    """Test : an accepted invitation is terminal"""
    invitation = invite(invitee["email"]).json()
    client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])

    response = client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])
    assert response.status_code == 409
    assert response.json()["error"] == "INVALID_STATE"


def test_accept_someone_elses_invitation(client, invitee, invite, register):
    other = register("other@example.com")
    invitation = invite(invitee["email"]).json()

    response = client.post(f"/invitations/{invitation['id']}/accept", headers=other["headers"])
    assert response.status_code == 404


def test_decline_invitation(client, owner, project, invitee, invite):
    invitation = invite(invitee["email"]).json()

    response = client.post(f"/invitations/{invitation['id']}/decline", headers=invitee["headers"])
    assert response.status_code == 204

    listed = client.get(f"/invitations/projects/{project['id']}", headers=owner["headers"]).json()
    assert listed[0]["status"] == "DECLINED"
    assert listed[0]["respondedAt"] is not None
    assert client.get(f"/projects/{project['id']}", headers=invitee["headers"]).status_code == 403


def test_reinvite_after_decline(client, invitee, invite):
    """Test : only PENDING invitations count towards uniqueness"""
    invitation = invite(invitee["email"]).json()
    client.post(f"/invitations/{invitation['id']}/decline", headers=invitee["headers"])

    response = invite(invitee["email"])
    assert response.status_code == 201
    assert response.json()["id"] != invitation["id"]


# ========== TEST CANCEL ==========
def test_cancel_invitation(client, owner, project, invitee, invite):
    invitation = invite(invitee["email"]).json()

    response = client.delete(
        f"/invitations/projects/{project['id']}/invitations/{invitation['id']}",
        headers=owner["headers"]
    )
    assert response.status_code == 204

    accept = client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])
    assert accept.status_code == 409
    assert accept.json()["error"] == "INVALID_STATE"


def test_cancel_accepted_invitation(client, owner, project, invitee, invite):
    invitation = invite(invitee["email"]).json()
    client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])

    response = client.delete(
        f"/invitations/projects/{project['id']}/invitations/{invitation['id']}",
        headers=owner["headers"]
    )
    assert response.status_code == 409


def test_project_invitations_admin_only(client, project, invitee, invite, register, add_member):
    invite(invitee["email"])
    member = register("member@example.com")
    add_member(project["id"], member)

    response = client.get(f"/invitations/projects/{project['id']}", headers=member["headers"])
    assert response.status_code == 403


# ========== TEST CONCURRENT ACCEPT ==========
def test_concurrent_accept_single_winner(owner, project, invitee):
    """Test : two sessions racing on one invitation, exactly one membership"""
    setup = SessionLocal()
    inviter = setup.query(User).filter(User.id == owner["id"]).first()
    invitation = invitation_service.invite_user(setup, project["id"], inviter, invitee["email"], ProjectRole.MEMBER)
    invitation_id = invitation.id
    setup.close()

    first, second = SessionLocal(), SessionLocal()
    try:
        user_a = first.query(User).filter(User.id == invitee["id"]).first()
        user_b = second.query(User).filter(User.id == invitee["id"]).first()
        # both sessions have seen the invitation as PENDING
        assert first.query(Invitation).filter(Invitation.id == invitation_id).first().status == "PENDING"
        assert second.query(Invitation).filter(Invitation.id == invitation_id).first().status == "PENDING"

        invitation_service.accept_invitation(first, invitation_id, user_a)
        with pytest.raises(InvalidState):
            invitation_service.accept_invitation(second, invitation_id, user_b)
    finally:
        first.close()
        second.close()

    check = SessionLocal()
    try:
        members = check.query(ProjectMember).filter(
            ProjectMember.project_id == project["id"],
            ProjectMember.user_id == invitee["id"]
        ).all()
        assert len(members) == 1
        assert check.query(Invitation).filter(Invitation.id == invitation_id).first().status == "ACCEPTED"
    finally:
        check.close()


# ========== TEST INVITE CODES ==========
def test_join_with_code(client, owner, project, invitee):
    code = client.post(f"/invitations/projects/{project['id']}/code", headers=owner["headers"]).json()["inviteCode"]
    assert len(code) == 8
    assert all(c in invitation_service.CODE_ALPHABET for c in code)

    response = client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": code.lower()})
    assert response.status_code == 200
    assert response.json()["role"] == "MEMBER"


def test_join_twice_with_code(client, owner, project, invitee):
    """Test : reusing a code after joining is ALREADY_MEMBER"""
    code = client.post(f"/invitations/projects/{project['id']}/code", headers=owner["headers"]).json()["inviteCode"]
    client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": code})

    response = client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": code})
    assert response.status_code == 409
    assert response.json()["error"] == "ALREADY_MEMBER"


def test_join_unknown_code(client, invitee):
    response = client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": "NOPE1234"})
    assert response.status_code == 400
    assert response.json()["error"] == "INVALID_CODE"


def test_older_codes_stay_valid(client, owner, project, invitee, register):
    first = client.post(f"/invitations/projects/{project['id']}/code", headers=owner["headers"]).json()["inviteCode"]
    second = client.post(f"/invitations/projects/{project['id']}/code", headers=owner["headers"]).json()["inviteCode"]
    assert first != second

    other = register("other@example.com")
    assert client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": first}).status_code == 200
    assert client.post("/invitations/join", headers=other["headers"], json={"inviteCode": second}).status_code == 200


def test_generate_code_member_forbidden(client, project, invitee, add_member):
    add_member(project["id"], invitee)
    response = client.post(f"/invitations/projects/{project['id']}/code", headers=invitee["headers"])
    assert response.status_code == 403


def test_new_code_alphabet():
    code = invitation_service.new_code(12)
    assert len(code) == 12
    assert all(c in invitation_service.CODE_ALPHABET for c in code)


# ========== TEST JOINING ANOTHER WAY WHILE INVITED ==========
def test_code_join_closes_pending_invitation(client, owner, project, invitee, invite):
    """Test : joining by code supersedes a PENDING invitation"""
    invitation = invite(invitee["email"]).json()
    code = client.post(f"/invitations/projects/{project['id']}/code", headers=owner["headers"]).json()["inviteCode"]

    assert client.post("/invitations/join", headers=invitee["headers"], json={"inviteCode": code}).status_code == 200

    assert client.get("/invitations/pending", headers=invitee["headers"]).json() == []
    listed = client.get(f"/invitations/projects/{project['id']}", headers=owner["headers"]).json()
    assert [(i["id"], i["status"]) for i in listed] == [(invitation["id"], "CANCELLED")]

    accept = client.post(f"/invitations/{invitation['id']}/accept", headers=invitee["headers"])
    assert accept.status_code == 409
    assert accept.json()["error"] == "INVALID_STATE"


def test_direct_add_closes_pending_invitation(client, owner, project, invitee, invite, add_member):
    invite(invitee["email"])
    add_member(project["id"], invitee)

    assert client.get("/invitations/pending", headers=invitee["headers"]).json() == []


def test_accept_when_already_member_closes_invitation(db, owner, project, invitee):
    """Test : a member left over with a PENDING invitation gets ALREADY_MEMBER once"""
    inviter = db.query(User).filter(User.id == owner["id"]).first()
    invitation = invitation_service.invite_user(db, project["id"], inviter, invitee["email"], ProjectRole.ADMIN)
    invitation_id = invitation.id
    # membership created behind the invitation's back
    db.add(ProjectMember(project_id=project["id"], user_id=invitee["id"], role=ProjectRole.MEMBER.value))
    db.commit()

    user = db.query(User).filter(User.id == invitee["id"]).first()
    with pytest.raises(AlreadyMember):
        invitation_service.accept_invitation(db, invitation_id, user)

    db.expire_all()
    assert db.query(Invitation).filter(Invitation.id == invitation_id).first().status == "CANCELLED"
    assert invitation_service.list_pending_invitations(db, user) == []


# ========== TEST CONCURRENT CODE REDEMPTION ==========
def test_concurrent_code_join_single_membership(owner, project, invitee, monkeypatch):
    """Test : two sessions redeeming the same code for one user, one membership"""
    setup = SessionLocal()
    creator = setup.query(User).filter(User.id == owner["id"]).first()
    code = invitation_service.generate_invite_code(setup, project["id"], creator).code
    setup.close()

    first, second = SessionLocal(), SessionLocal()
    try:
        user_a = first.query(User).filter(User.id == invitee["id"]).first()
        user_b = second.query(User).filter(User.id == invitee["id"]).first()

        invitation_service.join_project_by_code(first, code, user_a)

        # the second session read the membership before the first one committed
        monkeypatch.setattr(AuthorizationGate, "is_member", lambda self, user_id, project_id: False)
        with pytest.raises(AlreadyMember):
            invitation_service.join_project_by_code(second, code, user_b)
    finally:
        first.close()
        second.close()

    check = SessionLocal()
    try:
        members = check.query(ProjectMember).filter(
            ProjectMember.project_id == project["id"],
            ProjectMember.user_id == invitee["id"]
        ).all()
        assert len(members) == 1
        assert members[0].role == "MEMBER"
    finally:
        check.close()
