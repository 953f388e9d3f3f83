"""
Pytest configuration for booking_auth tests.

Settings are read when booking_auth is first imported, so the environment
is prepared here before any app module loads.
"""

import os
import tempfile

os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENABLE_SCHEDULER"] = "false"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="booking-auth-uploads-")
os.environ["MEDIA_BASE_URL"] = "http://testserver/media"

import pytest
from fastapi.testclient import TestClient

from booking_auth.main import app
from booking_auth.core.database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def reset_database():
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
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def signed_up(client):
    """A registered user: returns (token, user) from the signup response"""
    response = client.post("/api/auth/signup", json={
        "fullName": "Jane Doe",
        "email": "jane@x.com",
        "password": "secret1",
    })
    assert response.status_code == 200
    data = response.json()
    return data["token"], data["user"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
