from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app
from backend.app.services.errors import ExternalServiceError
from backend.app.services.invoice_totals import compute_invoice_totals, line_amount
from backend.app.services.notifications import get_dispatcher

PASSWORD = "secret-pass"
ITEMS = [
    {"description": "Forklift operation", "hours": "10", "rate": "50"},
    {"description": "Supervision", "hours": "5", "rate": "75"},
]


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


class RecordingDispatcher:
    def __init__(self):
        self.invoices = []

    def send_invoice(self, payload):
        self.invoices.append(payload)


class FailingDispatcher:
    def send_invoice(self, payload):
        raise ExternalServiceError("sendInvoice returned status code 500")


def register_and_login(client: TestClient, email: str, organization: str = "Acme") -> str:
    client.post("/auth/register", json={"email": email, "password": PASSWORD, "organization_name": organization})
    resp = client.post("/auth/login", json={"email": email, "password": PASSWORD})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def create_client(client: TestClient, token: str, email: str | None = "ap@client.example.com") -> int:
    resp = client.post("/clients", json={"name": "Globex", "email": email}, headers=auth(token))
    assert resp.status_code == 201
    return resp.json()["id"]


def create_invoice(client: TestClient, token: str, client_id: int, **overrides):
    payload = {
        "client_id": client_id,
        "issue_date": "2024-03-01",
        "due_date": "2024-03-31",
        "items": ITEMS,
        "tax_percentage": "10",
        **overrides,
    }
    return client.post("/invoices", json=payload, headers=auth(token))


def test_create_invoice_computes_totals_and_number():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    client_id = create_client(client, token)

    resp = create_invoice(client, token, client_id)
    assert resp.status_code == 201
    data = resp.json()
    assert data["invoice_number"] == "INV-2024-0001"
    assert data["status"] == "draft"
    assert Decimal(data["subtotal"]) == Decimal("875.00")
    assert Decimal(data["tax"]) == Decimal("87.50")
    assert Decimal(data["total"]) == Decimal("962.50")
    assert [Decimal(i["amount"]) for i in data["items"]] == [Decimal("500.00"), Decimal("375.00")]

    second = create_invoice(client, token, client_id).json()
    assert second["invoice_number"] == "INV-2024-0002"


def test_invoice_numbers_are_per_organization():
    client = TestClient(app)
    first_token = register_and_login(client, "boss@example.com")
    other_token = register_and_login(client, "rival@example.com", organization="Rival")

    first = create_invoice(client, first_token, create_client(client, first_token)).json()
    other = create_invoice(client, other_token, create_client(client, other_token)).json()
    assert first["invoice_number"] == other["invoice_number"] == "INV-2024-0001"

    assert client.get(f"/invoices/{first['id']}", headers=auth(other_token)).status_code == 404


def test_invoice_requires_items_and_valid_dates():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    client_id = create_client(client, token)

    resp = create_invoice(client, token, client_id, items=[], due_date="2024-02-01")
    assert resp.status_code == 422
    violations = resp.json()["detail"]["violations"]
    assert "At least one line item is required" in violations
    assert "Due date cannot be before the issue date" in violations


def test_unknown_client_returns_404():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    assert create_invoice(client, token, 999).status_code == 404


def test_replace_items_recalculates_while_draft():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token)).json()

    resp = client.put(
        f"/invoices/{invoice['id']}/items",
        json={"items": [{"description": "Overtime", "hours": "2", "rate": "60"}], "tax_percentage": "0"},
        headers=auth(token),
    )
    assert resp.status_code == 200
    data = resp.json()
    assert len(data["items"]) == 1
    assert Decimal(data["total"]) == Decimal("120.00")


def test_send_invoice_marks_pending_and_posts_payload():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token)).json()

    dispatcher = RecordingDispatcher()
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher
    resp = client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))
    assert resp.status_code == 200
    assert resp.json()["status"] == "pending"
    assert resp.json()["sent_at"] is not None

    payload = dispatcher.invoices[0]
    assert payload["invoiceNumber"] == "INV-2024-0001"
    assert payload["clientEmail"] == "ap@client.example.com"
    assert payload["total"] == "962.50"
    assert len(payload["items"]) == 2

    locked = client.put(f"/invoices/{invoice['id']}/items", json={"items": ITEMS}, headers=auth(token))
    assert locked.status_code == 409


def test_send_failure_returns_502_and_leaves_draft():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token)).json()

    app.dependency_overrides[get_dispatcher] = lambda: FailingDispatcher()
    resp = client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))
    assert resp.status_code == 502

    stored = client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()
    assert stored["status"] == "draft"
    assert stored["sent_at"] is None


def test_send_without_client_email_returns_422():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token, email=None)).json()

    app.dependency_overrides[get_dispatcher] = lambda: RecordingDispatcher()
    resp = client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))
    assert resp.status_code == 422


def test_mark_paid_only_after_sending():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token), due_date="2099-12-31").json()

    assert client.post(f"/invoices/{invoice['id']}/mark-paid", headers=auth(token)).status_code == 409

    app.dependency_overrides[get_dispatcher] = lambda: RecordingDispatcher()
    client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))
    paid = client.post(f"/invoices/{invoice['id']}/mark-paid", headers=auth(token))
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"
    assert paid.json()["paid_at"] is not None


def test_pending_invoice_past_due_is_listed_overdue():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(client, token, create_client(client, token)).json()

    app.dependency_overrides[get_dispatcher] = lambda: RecordingDispatcher()
    client.post(f"/invoices/{invoice['id']}/send", headers=auth(token))

    overdue = client.get("/invoices", params={"status": "overdue"}, headers=auth(token))
    assert overdue.status_code == 200
    assert [i["id"] for i in overdue.json()] == [invoice["id"]]

    summary = client.get("/invoices/summary", headers=auth(token)).json()
    assert summary["statuses"]["overdue"] == {"count": 1, "total": "962.50"}
    assert summary["total_outstanding"] == "962.50"


def test_invalid_status_filter_returns_400():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    assert client.get("/invoices", params={"status": "void"}, headers=auth(token)).status_code == 400


def test_stored_invoice_totals_recompute_from_stored_values():
    client = TestClient(app)
    token = register_and_login(client, "boss@example.com")
    invoice = create_invoice(
        client,
        token,
        create_client(client, token),
        items=[{"description": "Partial shift", "hours": "0.125", "rate": "100"}],
        tax_percentage="12.345",
    ).json()

    stored = client.get(f"/invoices/{invoice['id']}", headers=auth(token)).json()
    item = stored["items"][0]
    assert Decimal(item["hours"]) == Decimal("0.13")
    assert Decimal(stored["tax_percentage"]) == Decimal("12.35")
    assert Decimal(item["amount"]) == line_amount(item["hours"], item["rate"])

    totals = compute_invoice_totals(
        [(i["hours"], i["rate"]) for i in stored["items"]],
        stored["tax_percentage"],
    )
    assert Decimal(stored["subtotal"]) == totals.subtotal == Decimal("13.00")
    assert Decimal(stored["tax"]) == totals.tax == Decimal("1.61")
    assert Decimal(stored["total"]) == totals.total == Decimal("14.61")
