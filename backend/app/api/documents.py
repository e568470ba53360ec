"""Employee document registry routes."""

import logging
from datetime import datetime, timezone
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_user
from backend.app.models.employee_document import (
    DOCUMENT_CATEGORIES,
    UPLOADED_BY_EMPLOYEE,
    UPLOADED_BY_EMPLOYER,
    EmployeeDocument,
)
from backend.app.models.user import User
from backend.app.schemas.employee_document import EmployeeDocumentCreate, EmployeeDocumentRead
from backend.app.services.documents import DOCUMENT_STATUSES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/documents", tags=["documents"])


def _get_org_member(db: Session, user_id: int, organization_id: int) -> User:
    member = db.query(User).filter(User.id == user_id, User.organization_id == organization_id).first()
    if not member:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")
    return member


@router.get("/", response_model=List[EmployeeDocumentRead])
async def list_documents(
    user_id: int | None = None,
    category: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if category and category not in DOCUMENT_CATEGORIES:
        raise HTTPException(status_code=400, detail="Invalid category")
    if status_filter and status_filter not in DOCUMENT_STATUSES:
        raise HTTPException(status_code=400, detail="Invalid status value")

    query = db.query(EmployeeDocument).filter(EmployeeDocument.organization_id == current_user.organization_id)
    if not current_user.is_employer:
        query = query.filter(EmployeeDocument.user_id == current_user.id)
    elif user_id is not None:
        query = query.filter(EmployeeDocument.user_id == user_id)
    if category:
        query = query.filter(EmployeeDocument.category == category)

    today = datetime.now(timezone.utc).date()
    documents = query.order_by(EmployeeDocument.uploaded_at.desc(), EmployeeDocument.id.desc()).all()
    results = [EmployeeDocumentRead.from_document(d, today) for d in documents]
    if status_filter:
        results = [r for r in results if r.status == status_filter]
    return results


@router.post("/", response_model=EmployeeDocumentRead, status_code=status.HTTP_201_CREATED)
async def add_document(
    payload: EmployeeDocumentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_employer:
        if payload.user_id is None:
            raise HTTPException(status_code=400, detail="user_id is required")
        owner = _get_org_member(db, payload.user_id, current_user.organization_id)
        uploaded_by = UPLOADED_BY_EMPLOYER
    else:
        if payload.user_id is not None and payload.user_id != current_user.id:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot add documents for another user")
        owner = current_user
        uploaded_by = UPLOADED_BY_EMPLOYEE

    document = EmployeeDocument(
        user_id=owner.id,
        organization_id=current_user.organization_id,
        category=payload.category,
        subcategory=payload.subcategory,
        file_name=payload.file_name,
        file_url=payload.file_url,
        expiry_date=payload.expiry_date,
        uploaded_by=uploaded_by,
    )
    db.add(document)
    db.commit()
    db.refresh(document)
    logger.info("Document %s (%s) added for user %s by %s", document.id, document.category, owner.id, uploaded_by)
    return EmployeeDocumentRead.from_document(document, datetime.now(timezone.utc).date())
