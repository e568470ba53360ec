"""Employee document registry. Files live in object storage; only references are kept."""

from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String

from backend.app.db.base_class import Base

DOCUMENT_CATEGORIES = ("visa", "passport", "employment", "certifications", "other")
UPLOADED_BY_EMPLOYER = "employer"
UPLOADED_BY_EMPLOYEE = "employee"


class EmployeeDocument(Base):
    __tablename__ = "employee_documents"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    subcategory = Column(String(100), nullable=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(1024), nullable=False)
    expiry_date = Column(Date, nullable=True)
    uploaded_by = Column(String(20), nullable=False, default=UPLOADED_BY_EMPLOYEE)
    uploaded_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
