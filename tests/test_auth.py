from projecthub.core.security import create_access_token, decode_token, verify_token


# ========== TEST REGISTER ==========
def test_register_returns_token(client):
    """Test : register logs the user in straight away"""
    response = client.post("/auth/register", json={"email": "Alice@Example.com", "password": "secret123"})
    assert response.status_code == 201
    data = response.json()
    assert data["type"] == "Bearer"
    assert data["email"] == "alice@example.com"
    assert decode_token(data["token"]) == data["userId"]


def test_register_duplicate_email(client, register):
    """Test : an e-mail can only be registered once (case-insensitive)"""
    register("bob@example.com")
    response = client.post("/auth/register", json={"email": "BOB@example.com", "password": "secret123"})
    assert response.status_code == 400
    assert response.json()["error"] == "VALIDATION"
    assert response.json()["message"] == "Email is already registered"


def test_register_invalid_payload(client):
    """Test : malformed e-mail and short password are reported per field"""
    response = client.post("/auth/register", json={"email": "not-an-email", "password": "123"})
    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION"
    assert body["status"] == 400
    assert "email" in body["fieldErrors"]
    assert "password" in body["fieldErrors"]


# ========== TEST LOGIN ==========
def test_login_success(client, register):
    """Test : login with the right password"""
    user = register("carol@example.com", "password123")
    response = client.post("/auth/login", json={"email": "carol@example.com", "password": "password123"})
    assert response.status_code == 200
    assert response.json()["userId"] == user["id"]


def test_login_wrong_password(client, register):
    """Test : wrong password and unknown e-mail share one message"""
    register("dave@example.com", "password123")

    wrong = client.post("/auth/login", json={"email": "dave@example.com", "password": "nope-nope"})
    unknown = client.post("/auth/login", json={"email": "nobody@example.com", "password": "password123"})

    assert wrong.status_code == 401
    assert unknown.status_code == 401
    assert wrong.json()["error"] == "UNAUTHENTICATED"
    assert wrong.json()["message"] == unknown.json()["message"]


# ========== TEST PROTECTED ROUTES ==========
def test_missing_token(client):
    """Test : protected route without Authorization header"""
    response = client.get("/projects")
    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "UNAUTHENTICATED"
    assert isinstance(body["timestamp"], int)


def test_invalid_token(client):
    response = client.get("/projects", headers={"Authorization": "Bearer not.a.jwt"})
    assert response.status_code == 401


def test_wrong_scheme(client, register):
    user = register("erin@example.com")
    token = user["headers"]["Authorization"].split(" ", 1)[1]
    response = client.get("/projects", headers={"Authorization": f"Token {token}"})
    assert response.status_code == 401


def test_token_for_deleted_user(client):
    """Test : a valid signature for an unknown user id is rejected"""
    token = create_access_token(9999, "ghost@example.com")
    response = client.get("/projects", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["message"] == "User not found"


def test_token_claims():
    token = create_access_token(7, "frank@example.com")
    payload = verify_token(token)
    assert payload["user_id"] == 7
    assert payload["email"] == "frank@example.com"
    assert payload["type"] == "access"


# ========== TEST USER SEARCH ==========
def test_user_search(client, register):
    """Test : substring search on e-mail, case-insensitive"""
    me = register("searcher@example.com")
    register("grace.hopper@example.com")
    register("grace.kelly@example.com")

    response = client.get("/users/search", params={"email": "GRACE"}, headers=me["headers"])
    assert response.status_code == 200
    emails = [u["email"] for u in response.json()]
    assert emails == ["grace.hopper@example.com", "grace.kelly@example.com"]


def test_user_search_empty_query(client, register):
    me = register("searcher@example.com")
    response = client.get("/users/search", params={"email": "  "}, headers=me["headers"])
    assert response.status_code == 200
    assert response.json() == []


def test_health(client):
    response = client.get("/health/z")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readiness(client):
    response = client.get("/health/ready")
    assert response.status_code == 200
    assert response.json()["database"] == "ok"
