"""Invoice-related reporting helpers."""

from datetime import date
from decimal import Decimal

from sqlalchemy.orm import Session

from backend.app.models.invoice import INVOICE_STATUSES, Invoice
from backend.app.services.billing import determine_invoice_status


def _init_bucket():
    return {"count": 0, "total": Decimal("0.00")}


def get_invoice_status_summary(db: Session, organization_id: int, today: date) -> dict:
    """Count and total of an organization's invoices per status, plus what is still owed."""
    buckets = {status: _init_bucket() for status in INVOICE_STATUSES}

    invoices = db.query(Invoice).filter(Invoice.organization_id == organization_id).all()
    for invoice in invoices:
        status = determine_invoice_status(invoice, today)
        bucket = buckets.setdefault(status, _init_bucket())
        bucket["count"] += 1
        bucket["total"] += Decimal(str(invoice.total or 0))

    outstanding = buckets["pending"]["total"] + buckets["overdue"]["total"]

    # Format totals to strings for response consistency
    formatted_buckets = {}
    for key, data in buckets.items():
        formatted_buckets[key] = {
            "count": data["count"],
            "total": str(data["total"].quantize(Decimal("0.01"))),
        }

    return {
        "as_of": today.isoformat(),
        "statuses": formatted_buckets,
        "total_outstanding": str(outstanding.quantize(Decimal("0.01"))),
    }
