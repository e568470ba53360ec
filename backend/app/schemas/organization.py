"""Organization settings schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class OrganizationUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    industry: Optional[str] = None
    size: Optional[str] = None
    registration_number: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None


class OrganizationRead(BaseModel):
    id: int
    name: str
    industry: Optional[str] = None
    size: Optional[str] = None
    registration_number: Optional[str] = None
    tax_id: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
