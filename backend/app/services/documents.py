"""Expiry tracking for employee documents."""

from datetime import date, timedelta
from typing import Iterable, Optional

EXPIRY_WARNING_DAYS = 30

STATUS_VALID = "valid"
STATUS_EXPIRING_SOON = "expiring_soon"
STATUS_EXPIRED = "expired"
DOCUMENT_STATUSES = (STATUS_VALID, STATUS_EXPIRING_SOON, STATUS_EXPIRED)


def document_status(expiry_date: Optional[date], today: date) -> Optional[str]:
    """Classify a document by expiry; documents without an expiry date have no status."""
    if expiry_date is None:
        return None
    if expiry_date < today:
        return STATUS_EXPIRED
    if expiry_date <= today + timedelta(days=EXPIRY_WARNING_DAYS):
        return STATUS_EXPIRING_SOON
    return STATUS_VALID


def group_by_category(documents: Iterable) -> dict:
    grouped: dict = {}
    for document in documents:
        grouped.setdefault(document.category, []).append(document)
    return grouped
