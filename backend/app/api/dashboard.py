"""Dashboard endpoints for employees and employers."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.params import parse_month
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer, get_current_user
from backend.app.models.user import User
from backend.app.services.billing import refresh_overdue_invoices
from backend.app.services.dashboard_service import (
    get_employee_dashboard,
    get_employer_dashboard,
    get_timesheet_calendar,
)

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/employee")
async def employee_dashboard(
    month: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_employee_dashboard(
        db,
        user_id=current_user.id,
        organization_id=current_user.organization_id,
        reference_date=parse_month(month),
    )


@router.get("/employer")
async def employer_dashboard(
    month: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    today = datetime.now(timezone.utc).date()
    refresh_overdue_invoices(db, current_user.organization_id, today)
    return get_employer_dashboard(
        db,
        organization_id=current_user.organization_id,
        reference_date=parse_month(month),
        today=today,
    )


@router.get("/calendar")
async def timesheet_calendar(
    month: str | None = None,
    user_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    # Employers may view any employee in their organization; employees only themselves.
    target_user_id = current_user.id
    if user_id is not None and current_user.is_employer:
        target_user_id = user_id
    return get_timesheet_calendar(
        db,
        user_id=target_user_id,
        organization_id=current_user.organization_id,
        reference_date=parse_month(month),
    )
