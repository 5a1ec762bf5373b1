import os
import sys
from pathlib import Path

# project root first on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

# SQLite for tests, set BEFORE projecthub.core.database builds its engine
os.environ["DATABASE_URL"] = "sqlite:///./test.db"

import pytest
from fastapi.testclient import TestClient

from projecthub.core.database import Base, SessionLocal, engine
from projecthub.main import app


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(autouse=True)
def setup_teardown():
    """Fresh schema for every test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client"""
    return TestClient(app)


@pytest.fixture
def db():
    """DB session for service-level tests"""
    db = SessionLocal()
    yield db
    db.close()


@pytest.fixture
def register(client):
    """Factory: register a user through the API and return id, email and auth headers"""
    def _register(email: str, password: str = "password123") -> dict:
        response = client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        data = response.json()
        return {"id": data["userId"], "email": data["email"], "headers": auth_headers(data["token"])}
    return _register


@pytest.fixture
def owner(register):
    return register("owner@example.com")


@pytest.fixture
def project(client, owner):
    response = client.post(
        "/projects",
        headers=owner["headers"],
        json={"title": "Website relaunch", "description": "Q4 work"}
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def add_member(client, owner):
    """Factory: add a user to a project directly (owner acts)"""
    def _add(project_id: int, user: dict, role: str = "MEMBER") -> dict:
        response = client.post(
            f"/projects/{project_id}/members",
            headers=owner["headers"],
            json={"userEmail": user["email"], "role": role}
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _add


@pytest.fixture
def create_task(client, owner):
    """Factory: create a task in a project (owner acts unless headers are given)"""
    def _create(project_id: int, title: str, headers: dict = None, **fields) -> dict:
        payload = {"title": title, **fields}
        response = client.post(
            f"/projects/{project_id}/tasks",
            headers=headers or owner["headers"],
            json=payload
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _create
