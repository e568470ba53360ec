"""Invoice item schemas."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class InvoiceItemBase(BaseModel):
    description: Optional[str] = None
    hours: Decimal = Field(ge=0)
    rate: Decimal = Field(ge=0)


class InvoiceItemCreate(InvoiceItemBase):
    pass


class InvoiceItemRead(InvoiceItemBase):
    id: int
    position: int
    amount: Decimal

    model_config = ConfigDict(from_attributes=True)
