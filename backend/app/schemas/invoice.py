"""Invoice schemas."""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.schemas.invoice_item import InvoiceItemCreate, InvoiceItemRead


class InvoiceCreate(BaseModel):
    client_id: int
    issue_date: date
    due_date: date
    items: List[InvoiceItemCreate]
    tax_percentage: Decimal = Decimal("0")
    notes: Optional[str] = None


class InvoiceItemsUpdate(BaseModel):
    items: List[InvoiceItemCreate]
    tax_percentage: Optional[Decimal] = None


class InvoiceRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    client_id: int
    invoice_number: str

    issue_date: date
    due_date: date
    status: str
    tax_percentage: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    notes: Optional[str] = None
    items: List[InvoiceItemRead]

    sent_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
