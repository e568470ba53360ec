import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app

PASSWORD = "secret-pass"


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str) -> str:
    client.post(
        "/auth/register",
        json={"email": email, "password": PASSWORD, "organization_name": "Acme", "industry": "Logistics"},
    )
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_employer_updates_name_and_logo():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")

    current = client.get("/organization", headers=auth(token)).json()
    assert current["name"] == "Acme"
    assert current["logo_url"] is None

    resp = client.patch(
        "/organization",
        json={"name": "Acme Staffing", "logo_url": "organization-logos/acme.png"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert data["name"] == "Acme Staffing"
    assert data["logo_url"] == "organization-logos/acme.png"
    assert data["industry"] == "Logistics"


def test_empty_name_is_rejected():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    assert client.patch("/organization", json={"name": ""}, headers=auth(token)).status_code == 422
    assert client.patch("/organization", json={"name": None}, headers=auth(token)).status_code == 400


def test_employee_can_read_but_not_update():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    client.post("/employees", json={"email": "worker@example.com", "password": PASSWORD}, headers=auth(token))
    employee = client.post("/auth/login", json={"email": "worker@example.com", "password": PASSWORD}).json()[
        "access_token"
    ]

    assert client.get("/organization", headers=auth(employee)).json()["name"] == "Acme"
    assert client.patch("/organization", json={"name": "Mine"}, headers=auth(employee)).status_code == 403
