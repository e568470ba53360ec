"""Employee management for employers."""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from backend.app.core.security import get_password_hash
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer
from backend.app.models.client import Client
from backend.app.models.user import ROLE_EMPLOYEE, User
from backend.app.schemas.user import EmployeeCreate, UserRead
from backend.app.services.notifications import get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("/", response_model=List[UserRead])
async def list_employees(
    client_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    query = db.query(User).filter(User.organization_id == current_user.organization_id, User.role == ROLE_EMPLOYEE)
    if client_id:
        query = query.filter(User.client_id == client_id)
    return query.order_by(User.last_name.asc(), User.id.asc()).all()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
    dispatcher=Depends(get_dispatcher),
):
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=400, detail="Email already registered")
    if payload.client_id is not None:
        client = (
            db.query(Client)
            .filter(Client.id == payload.client_id, Client.organization_id == current_user.organization_id)
            .first()
        )
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")

    employee = User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=ROLE_EMPLOYEE,
        organization_id=current_user.organization_id,
        client_id=payload.client_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)

    # The account exists either way; a failed welcome email is only logged.
    try:
        dispatcher.send_welcome(
            email=employee.email,
            first_name=employee.first_name,
            last_name=employee.last_name,
            organization_name=current_user.organization.name if current_user.organization else None,
        )
    except Exception:
        logger.exception("Failed to send welcome email to employee %s", employee.id)
    return employee
