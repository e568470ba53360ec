"""Billing service: invoice creation, numbering, sending and payment status."""

import logging
from datetime import date, datetime, timezone
from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.models.invoice import Invoice
from backend.app.models.invoice_item import InvoiceItem
from backend.app.services.errors import InvoiceStateError, ValidationError
from backend.app.services.invoice_totals import (
    InvoiceTotals,
    clamp_tax_percentage,
    compute_invoice_totals,
    format_invoice_number,
    line_amount,
    parse_invoice_sequence,
    to_stored_scale,
)

logger = logging.getLogger(__name__)

NUMBER_ALLOCATION_ATTEMPTS = 3


def next_invoice_number(db: Session, organization_id: int, year: int) -> str:
    """Next number in the organization's yearly sequence, e.g. INV-2024-0007."""
    rows = (
        db.query(Invoice.invoice_number)
        .filter(
            Invoice.organization_id == organization_id,
            Invoice.invoice_number.like(f"INV-{year}-%"),
        )
        .all()
    )
    highest = max((parse_invoice_sequence(number, year) or 0 for (number,) in rows), default=0)
    return format_invoice_number(year, highest + 1)


def _build_items(items: Iterable) -> List[InvoiceItem]:
    built = []
    for position, item in enumerate(items):
        hours = to_stored_scale(item.hours)
        rate = to_stored_scale(item.rate)
        built.append(
            InvoiceItem(
                position=position,
                description=item.description,
                hours=hours,
                rate=rate,
                amount=line_amount(hours, rate),
            )
        )
    return built


def recalculate_invoice_totals(invoice: Invoice) -> InvoiceTotals:
    """Recompute every line amount and the invoice totals from items and tax rate."""
    # Amounts are computed from the values as stored, not as submitted
    for item in invoice.items:
        item.hours = to_stored_scale(item.hours)
        item.rate = to_stored_scale(item.rate)
        item.amount = line_amount(item.hours, item.rate)
    invoice.tax_percentage = clamp_tax_percentage(invoice.tax_percentage)
    totals = compute_invoice_totals(((item.hours, item.rate) for item in invoice.items), invoice.tax_percentage)
    invoice.subtotal = totals.subtotal
    invoice.tax = totals.tax
    invoice.total = totals.total
    return totals


def determine_invoice_status(invoice: Invoice, today: date | None = None) -> str:
    if invoice.status != "pending":
        return invoice.status
    check_date = today or datetime.now(timezone.utc).date()
    if invoice.due_date and check_date > invoice.due_date:
        return "overdue"
    return invoice.status


def refresh_overdue_invoices(db: Session, organization_id: int, today: date | None = None) -> int:
    """Flag pending invoices past their due date as overdue; returns how many changed."""
    check_date = today or datetime.now(timezone.utc).date()
    pending = (
        db.query(Invoice)
        .filter(
            Invoice.organization_id == organization_id,
            Invoice.status == "pending",
            Invoice.due_date < check_date,
        )
        .all()
    )
    for invoice in pending:
        invoice.status = determine_invoice_status(invoice, check_date)
    if pending:
        db.commit()
        logger.info("Marked %s invoice(s) overdue for organization %s", len(pending), organization_id)
    return len(pending)


def _check_invoice_input(issue_date: date, due_date: date, items: list) -> None:
    violations = []
    if not items:
        violations.append("At least one line item is required")
    if due_date < issue_date:
        violations.append("Due date cannot be before the issue date")
    if violations:
        raise ValidationError(violations)


def create_invoice(
    db: Session,
    *,
    organization_id: int,
    client_id: int,
    issue_date: date,
    due_date: date,
    items: list,
    tax_percentage=0,
    notes: str | None = None,
) -> Invoice:
    _check_invoice_input(issue_date, due_date, items)

    for attempt in range(1, NUMBER_ALLOCATION_ATTEMPTS + 1):
        invoice = Invoice(
            organization_id=organization_id,
            client_id=client_id,
            invoice_number=next_invoice_number(db, organization_id, issue_date.year),
            issue_date=issue_date,
            due_date=due_date,
            status="draft",
            tax_percentage=clamp_tax_percentage(tax_percentage),
            notes=notes,
        )
        invoice.items = _build_items(items)
        recalculate_invoice_totals(invoice)
        db.add(invoice)
        try:
            db.commit()
        except IntegrityError:
            # Another request took the same number; allocate again.
            db.rollback()
            logger.warning("Invoice number clash for organization %s (attempt %s)", organization_id, attempt)
            continue
        db.refresh(invoice)
        logger.info("Invoice %s created for organization %s", invoice.invoice_number, organization_id)
        return invoice

    raise InvoiceStateError("Could not allocate an invoice number")


def replace_invoice_items(db: Session, invoice: Invoice, items: list, tax_percentage=None) -> Invoice:
    if invoice.status != "draft":
        raise InvoiceStateError("Only draft invoices can be edited")
    _check_invoice_input(invoice.issue_date, invoice.due_date, items)
    invoice.items = _build_items(items)
    if tax_percentage is not None:
        invoice.tax_percentage = tax_percentage
    recalculate_invoice_totals(invoice)
    db.commit()
    db.refresh(invoice)
    return invoice


def build_invoice_payload(invoice: Invoice) -> dict:
    """Body for the remote sendInvoice function (which also renders the PDF)."""
    client = invoice.client
    organization = invoice.organization
    return {
        "invoiceNumber": invoice.invoice_number,
        "clientName": client.name if client else "",
        "clientEmail": client.email if client else "",
        "issueDate": invoice.issue_date.isoformat(),
        "dueDate": invoice.due_date.isoformat(),
        "items": [
            {
                "description": item.description or "",
                "hours": str(item.hours),
                "rate": str(item.rate),
                "amount": str(item.amount),
            }
            for item in invoice.items
        ],
        "subtotal": str(invoice.subtotal),
        "tax": str(invoice.tax),
        "total": str(invoice.total),
        "notes": invoice.notes or "",
        "organizationName": organization.name if organization else "",
    }


def send_invoice(db: Session, invoice: Invoice, dispatcher) -> Invoice:
    """Hand the invoice to the remote email/PDF function, then mark it pending.

    If the call fails the error propagates and the invoice is left untouched.
    """
    if invoice.status not in ("draft", "pending", "overdue"):
        raise InvoiceStateError(f"Cannot send a {invoice.status} invoice")
    if invoice.client is None or not invoice.client.email:
        raise ValidationError(["Client email is required to send an invoice"])

    recalculate_invoice_totals(invoice)
    dispatcher.send_invoice(build_invoice_payload(invoice))

    if invoice.status == "draft":
        invoice.status = "pending"
    invoice.sent_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s sent to %s", invoice.invoice_number, invoice.client.email)
    return invoice


def mark_invoice_paid(db: Session, invoice: Invoice) -> Invoice:
    if invoice.status not in ("pending", "overdue"):
        raise InvoiceStateError(f"Cannot mark a {invoice.status} invoice as paid")
    invoice.status = "paid"
    invoice.paid_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(invoice)
    return invoice
