import os
import tempfile

# Settings and the engine are built at import time, so the environment has to
# be in place before anything from app is imported.
_TMP_DIR = tempfile.mkdtemp(prefix="timesheet-dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["LOGS_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["RECORD_SOURCE"] = "fixture"
os.environ["SESSION_SECRET_KEY"] = "test-secret-key-32-chars-aaaaaaaa"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "password123"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["AUTO_SYNC_ENABLED"] = "false"
os.environ["APP_TIMEZONE"] = "UTC"

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.main import app
from app.models.user import UserRole
from app.services.user_service import UserService

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


def login(client: TestClient, username: str, password: str) -> dict:
    res = client.post("/api/login", json={"username": username, "password": password})
    assert res.status_code == 200, res.text
    return res.json()["user"]


@pytest.fixture
def admin_client(client):
    login(client, ADMIN_USERNAME, ADMIN_PASSWORD)
    return client


@pytest.fixture
def member(db):
    return UserService.create_user(db, "alice", "alice-pass", display_name="Alice", role=UserRole.MEMBER)


@pytest.fixture
def member_client(client, member):
    login(client, "alice", "alice-pass")
    return client


@pytest.fixture
def linked_client(member_client):
    res = member_client.post(
        "/api/zoho/connect",
        json={"clientId": "1000.ABC", "clientSecret": "s3cret", "organization": "acme"},
    )
    assert res.status_code == 200, res.text
    return member_client
