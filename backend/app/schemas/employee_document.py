"""Employee document schemas."""

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.app.models.employee_document import EmployeeDocument
from backend.app.services.documents import document_status

DocumentCategory = Literal["visa", "passport", "employment", "certifications", "other"]


class EmployeeDocumentCreate(BaseModel):
    # Employers upload on behalf of an employee; employees always upload for themselves.
    user_id: Optional[int] = None
    category: DocumentCategory
    subcategory: Optional[str] = None
    file_name: str = Field(min_length=1)
    file_url: str = Field(min_length=1)
    expiry_date: Optional[date] = None


class EmployeeDocumentRead(BaseModel):
    id: int
    user_id: int
    organization_id: int
    category: str
    subcategory: Optional[str] = None
    file_name: str
    file_url: str
    expiry_date: Optional[date] = None
    uploaded_by: str
    uploaded_at: datetime
    status: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_document(cls, document: EmployeeDocument, today: date) -> "EmployeeDocumentRead":
        read = cls.model_validate(document)
        read.status = document_status(document.expiry_date, today)
        return read
