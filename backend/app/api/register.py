"""Employer sign-up: creates the organization and its first employer account."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.db.session import get_db
from backend.app.models.organization import Organization
from backend.app.models.user import ROLE_EMPLOYER, User
from backend.app.schemas.user import EmployerRegister, UserRead

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register_employer(payload: EmployerRegister, db: Session = Depends(get_db)):
    existing = db.query(User).filter(User.email == payload.email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    organization = Organization(
        name=payload.organization_name,
        industry=payload.industry,
        size=payload.company_size,
        registration_number=payload.registration_number,
        tax_id=payload.tax_id,
        website=payload.website,
    )
    db.add(organization)
    db.flush()  # obtain organization id for the user row

    user = User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),  # Hash password before storing
        role=ROLE_EMPLOYER,
        organization_id=organization.id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered organization %s with employer %s", organization.id, user.id)
    return user
