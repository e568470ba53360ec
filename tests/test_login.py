import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.organization import Organization
from backend.app.models.timesheet import Timesheet
from backend.app.models.user import User


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_user(client: TestClient, email: str, password: str):
    return client.post(
        "/auth/register",
        json={"email": email, "password": password, "organization_name": "Acme"},
    )


def test_successful_login_returns_token_and_role():
    client = TestClient(app)
    register_user(client, "login@example.com", "secret-pass")
    response = client.post("/auth/login", json={"email": "login@example.com", "password": "secret-pass"})
    assert response.status_code == 200
    data = response.json()
    assert data.get("token_type") == "bearer"
    assert data.get("role") == "employer"
    assert isinstance(data.get("access_token"), str) and data["access_token"]


def test_login_records_last_login():
    client = TestClient(app)
    register_user(client, "last@example.com", "secret-pass")
    client.post("/auth/login", json={"email": "last@example.com", "password": "secret-pass"})
    with SessionLocal() as db:
        user = db.query(User).filter(User.email == "last@example.com").first()
        assert user.last_login is not None


def test_wrong_password_returns_400():
    client = TestClient(app)
    register_user(client, "wrongpw@example.com", "secret-pass")
    response = client.post("/auth/login", json={"email": "wrongpw@example.com", "password": "bad-password"})
    assert response.status_code == 400


def test_missing_hash_returns_400_not_500():
    client = TestClient(app)
    register_user(client, "badhash@example.com", "secret-pass")
    db = SessionLocal()
    user = db.query(User).filter(User.email == "badhash@example.com").first()
    user.hashed_password = None
    db.add(user)
    db.commit()
    db.close()
    response = client.post("/auth/login", json={"email": "badhash@example.com", "password": "secret-pass"})
    assert response.status_code == 400


def test_inactive_user_cannot_log_in():
    client = TestClient(app)
    register_user(client, "inactive@example.com", "secret-pass")
    with SessionLocal() as db:
        user = db.query(User).filter(User.email == "inactive@example.com").first()
        user.is_active = False
        db.commit()
    response = client.post("/auth/login", json={"email": "inactive@example.com", "password": "secret-pass"})
    assert response.status_code == 400


def test_user_timesheets_relationship_has_no_ambiguous_fk():
    db = SessionLocal()
    organization = Organization(name="Acme")
    db.add(organization)
    db.commit()
    user = User(email="query@example.com", hashed_password="dummy", organization_id=organization.id)
    db.add(user)
    db.commit()
    users = db.query(User).all()
    assert len(users) == 1
    assert users[0].timesheets == []
    assert db.query(Timesheet).count() == 0
    db.close()


def test_nonexistent_user_returns_400():
    client = TestClient(app)
    response = client.post("/auth/login", json={"email": "nosuch@example.com", "password": "secret-pass"})
    assert response.status_code == 400
