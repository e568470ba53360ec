import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import SessionLocal, engine
from backend.app.main import app
from backend.app.models.user import User
from backend.app.services.notifications import get_dispatcher

PASSWORD = "secret-pass"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


class RecordingDispatcher:
    def __init__(self):
        self.welcomes = []

    def send_welcome(self, **kwargs):
        self.welcomes.append(kwargs)


class FailingDispatcher:
    def send_welcome(self, **kwargs):
        raise RuntimeError("mail relay down")


def register_and_login(client: TestClient, email: str, organization: str = "Acme") -> str:
    client.post("/auth/register", json={"email": email, "password": PASSWORD, "organization_name": organization})
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_clients_are_organization_scoped():
    client = TestClient(app)
    acme = register_and_login(client, "boss@example.com")
    rival = register_and_login(client, "rival@example.com", organization="Rival")

    resp = client.post("/clients", json={"name": "Globex", "email": "ap@globex.example.com"}, headers=auth(acme))
    assert resp.status_code == 201
    client.post("/clients", json={"name": "Initech"}, headers=auth(acme))

    assert [c["name"] for c in client.get("/clients", headers=auth(acme)).json()] == ["Globex", "Initech"]
    assert client.get("/clients", headers=auth(rival)).json() == []
    searched = client.get("/clients", params={"search": "glob"}, headers=auth(acme)).json()
    assert [c["name"] for c in searched] == ["Globex"]


def test_create_employee_sends_welcome():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    client_id = client.post("/clients", json={"name": "Globex"}, headers=auth(token)).json()["id"]

    dispatcher = RecordingDispatcher()
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    resp = client.post(
        "/employees",
        json={"email": "worker@example.com", "password": PASSWORD, "first_name": "Wendy", "client_id": client_id},
        headers=auth(token),
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["role"] == "employee"
    assert data["client_id"] == client_id
    assert dispatcher.welcomes[0]["email"] == "worker@example.com"
    assert dispatcher.welcomes[0]["organization_name"] == "Acme"

    listing = client.get("/employees", headers=auth(token)).json()
    assert [e["email"] for e in listing] == ["worker@example.com"]


def test_welcome_failure_still_creates_employee():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    app.dependency_overrides[get_dispatcher] = lambda: FailingDispatcher()

    resp = client.post("/employees", json={"email": "worker@example.com", "password": PASSWORD}, headers=auth(token))
    assert resp.status_code == 201
    with SessionLocal() as db:
        assert db.query(User).filter(User.email == "worker@example.com").count() == 1


def test_employee_with_foreign_client_returns_404():
    client = TestClient(app)
    acme = register_and_login(client, "boss@example.com")
    rival = register_and_login(client, "rival@example.com", organization="Rival")
    rival_client = client.post("/clients", json={"name": "Hooli"}, headers=auth(rival)).json()["id"]

    resp = client.post(
        "/employees",
        json={"email": "worker@example.com", "password": PASSWORD, "client_id": rival_client},
        headers=auth(acme),
    )
    assert resp.status_code == 404


def test_duplicate_employee_email_returns_400():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    resp = client.post("/employees", json={"email": "boss@example.com", "password": PASSWORD}, headers=auth(token))
    assert resp.status_code == 400


def test_employee_cannot_manage_clients():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    client.post("/employees", json={"email": "worker@example.com", "password": PASSWORD}, headers=auth(token))
    login = client.post("/auth/login", json={"email": "worker@example.com", "password": PASSWORD})
    employee = login.json()["access_token"]
    assert login.json()["role"] == "employee"
    assert client.get("/clients", headers=auth(employee)).status_code == 403
    assert client.post("/employees", json={"email": "x@example.com", "password": PASSWORD}, headers=auth(employee)).status_code == 403
