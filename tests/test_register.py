import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.organization import Organization
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def employer_payload(email: str) -> dict:
    return {
        "email": email,
        "password": "secret-pass",
        "first_name": "Erin",
        "last_name": "Boss",
        "organization_name": "Acme Staffing",
        "industry": "Logistics",
    }


def test_successful_registration_returns_employer():
    client = TestClient(app)
    payload = employer_payload("user@example.com")
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == payload["email"]
    assert data["role"] == "employer"
    assert isinstance(data["organization_id"], int)
    assert "password" not in data
    assert "hashed_password" not in data
    assert isinstance(data.get("id"), int)


def test_duplicate_email_returns_400():
    client = TestClient(app)
    payload = employer_payload("dup@example.com")
    first = client.post("/auth/register", json=payload)
    assert first.status_code == 201
    second = client.post("/auth/register", json=payload)
    assert second.status_code == 400


def test_missing_organization_name_returns_422():
    client = TestClient(app)
    payload = employer_payload("noorg@example.com")
    del payload["organization_name"]
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 422


def test_short_password_returns_422():
    client = TestClient(app)
    payload = employer_payload("short@example.com")
    payload["password"] = "abc"
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 422


def test_user_and_organization_persisted_in_db():
    client = TestClient(app)
    payload = employer_payload("persist@example.com")
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 201

    with SessionLocal() as db:
        user = db.query(User).filter(User.email == payload["email"]).first()
        assert user is not None
        assert user.hashed_password and user.hashed_password != payload["password"]
        organization = db.query(Organization).filter(Organization.id == user.organization_id).first()
        assert organization.name == "Acme Staffing"
        assert organization.industry == "Logistics"
