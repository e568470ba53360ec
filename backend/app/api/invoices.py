"""Invoice routes for employers."""

from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer
from backend.app.models.client import Client
from backend.app.models.invoice import INVOICE_STATUSES, Invoice
from backend.app.models.user import User
from backend.app.schemas.invoice import InvoiceCreate, InvoiceItemsUpdate, InvoiceRead
from backend.app.services.billing import (
    create_invoice,
    mark_invoice_paid,
    refresh_overdue_invoices,
    replace_invoice_items,
    send_invoice,
)
from backend.app.services.errors import WorkforceError
from backend.app.services.invoices import get_invoice_status_summary
from backend.app.services.notifications import get_dispatcher

router = APIRouter(prefix="/invoices", tags=["invoices"])


def _today():
    return datetime.now(timezone.utc).date()


def _get_org_invoice(db: Session, invoice_id: int, user: User) -> Invoice:
    invoice = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.organization_id == user.organization_id)
        .first()
    )
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("/summary")
async def get_invoice_summary(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    today = _today()
    refresh_overdue_invoices(db, current_user.organization_id, today)
    return get_invoice_status_summary(db, current_user.organization_id, today)


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status_filter: str | None = Query(default=None, alias="status"),
    client_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    if status_filter and status_filter not in INVOICE_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status value")

    refresh_overdue_invoices(db, current_user.organization_id, _today())
    query = db.query(Invoice).filter(Invoice.organization_id == current_user.organization_id)
    if status_filter:
        query = query.filter(Invoice.status == status_filter)
    if client_id:
        query = query.filter(Invoice.client_id == client_id)
    return query.order_by(Invoice.issue_date.desc(), Invoice.id.desc()).all()


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_invoice_for_client(
    payload: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    client = (
        db.query(Client)
        .filter(Client.id == payload.client_id, Client.organization_id == current_user.organization_id)
        .first()
    )
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    try:
        return create_invoice(
            db,
            organization_id=current_user.organization_id,
            client_id=client.id,
            issue_date=payload.issue_date,
            due_date=payload.due_date,
            items=payload.items,
            tax_percentage=payload.tax_percentage,
            notes=payload.notes,
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    return _get_org_invoice(db, invoice_id, current_user)


@router.put("/{invoice_id}/items", response_model=InvoiceRead)
async def update_invoice_items(
    invoice_id: int,
    payload: InvoiceItemsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    invoice = _get_org_invoice(db, invoice_id, current_user)
    try:
        return replace_invoice_items(db, invoice, payload.items, tax_percentage=payload.tax_percentage)
    except WorkforceError as exc:
        raise to_http_exception(exc)


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
async def send_invoice_to_client(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
    dispatcher=Depends(get_dispatcher),
):
    invoice = _get_org_invoice(db, invoice_id, current_user)
    try:
        return send_invoice(db, invoice, dispatcher)
    except WorkforceError as exc:
        raise to_http_exception(exc)


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceRead)
async def mark_paid(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    invoice = _get_org_invoice(db, invoice_id, current_user)
    try:
        return mark_invoice_paid(db, invoice)
    except WorkforceError as exc:
        raise to_http_exception(exc)
