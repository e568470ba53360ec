"""Timesheet routes: employee submission and employer review."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.api.errors import to_http_exception
from backend.app.api.params import parse_month
from backend.app.db.session import get_db
from backend.app.dependencies.auth import get_current_employer, get_current_user
from backend.app.models.timesheet import Timesheet, TimesheetStatus
from backend.app.models.timesheet_event import TimesheetEvent
from backend.app.models.user import User
from backend.app.schemas.timesheet import (
    TimesheetCreate,
    TimesheetEventRead,
    TimesheetRead,
    TimesheetReject,
    TimesheetUpdate,
)
from backend.app.services import timesheet_lifecycle
from backend.app.services.dashboard_service import timesheets_for_month
from backend.app.services.errors import WorkforceError
from backend.app.services.notifications import get_dispatcher

router = APIRouter(prefix="/timesheets", tags=["timesheets"])


def _get_own_timesheet(db: Session, timesheet_id: int, user: User) -> Timesheet:
    timesheet = db.query(Timesheet).filter(Timesheet.id == timesheet_id, Timesheet.user_id == user.id).first()
    if not timesheet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timesheet not found")
    return timesheet


def _get_org_timesheet(db: Session, timesheet_id: int, user: User) -> Timesheet:
    timesheet = (
        db.query(Timesheet)
        .filter(Timesheet.id == timesheet_id, Timesheet.organization_id == user.organization_id)
        .first()
    )
    if not timesheet:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Timesheet not found")
    return timesheet


def _validate_status_filter(status_filter: str | None) -> None:
    if status_filter and status_filter not in {s.value for s in TimesheetStatus}:
        raise HTTPException(status_code=400, detail="Invalid status value")


@router.get("/", response_model=List[TimesheetRead])
async def list_my_timesheets(
    month: str | None = None,
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _validate_status_filter(status_filter)
    records = timesheets_for_month(
        db,
        organization_id=current_user.organization_id,
        reference_date=parse_month(month),
        user_id=current_user.id,
        status=status_filter,
    )
    return [TimesheetRead.from_timesheet(t) for t in records]


@router.post("/", response_model=TimesheetRead, status_code=status.HTTP_201_CREATED)
async def create_timesheet(
    payload: TimesheetCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher=Depends(get_dispatcher),
):
    try:
        timesheet = timesheet_lifecycle.create_timesheet(
            db,
            user_id=current_user.id,
            organization_id=current_user.organization_id,
            week_ending=payload.week_ending,
            daily_hours=payload.daily_hours,
            description=payload.description,
            documents=payload.documents,
            submit=payload.submit,
            dispatcher=dispatcher,
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)
    return TimesheetRead.from_timesheet(timesheet)


@router.get("/review", response_model=List[TimesheetRead])
async def list_timesheets_for_review(
    month: str | None = None,
    status_filter: str | None = Query(default=TimesheetStatus.SUBMITTED.value, alias="status"),
    user_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
):
    _validate_status_filter(status_filter)
    records = timesheets_for_month(
        db,
        organization_id=current_user.organization_id,
        reference_date=parse_month(month),
        user_id=user_id,
        status=status_filter,
    )
    return [TimesheetRead.from_timesheet(t) for t in records]


@router.get("/{timesheet_id}", response_model=TimesheetRead)
async def get_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_employer:
        timesheet = _get_org_timesheet(db, timesheet_id, current_user)
    else:
        timesheet = _get_own_timesheet(db, timesheet_id, current_user)
    return TimesheetRead.from_timesheet(timesheet)


@router.patch("/{timesheet_id}", response_model=TimesheetRead)
async def update_timesheet(
    timesheet_id: int,
    payload: TimesheetUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    timesheet = _get_own_timesheet(db, timesheet_id, current_user)
    try:
        timesheet = timesheet_lifecycle.update_timesheet(
            db,
            timesheet,
            week_ending=payload.week_ending,
            daily_hours=payload.daily_hours,
            description=payload.description,
            documents=payload.documents,
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)
    return TimesheetRead.from_timesheet(timesheet)


@router.post("/{timesheet_id}/submit", response_model=TimesheetRead)
async def submit_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    dispatcher=Depends(get_dispatcher),
):
    timesheet = _get_own_timesheet(db, timesheet_id, current_user)
    try:
        timesheet = timesheet_lifecycle.submit_timesheet(
            db, timesheet, acting_user_id=current_user.id, dispatcher=dispatcher
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)
    return TimesheetRead.from_timesheet(timesheet)


@router.post("/{timesheet_id}/approve", response_model=TimesheetRead)
async def approve_timesheet(
    timesheet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
    dispatcher=Depends(get_dispatcher),
):
    timesheet = _get_org_timesheet(db, timesheet_id, current_user)
    try:
        timesheet = timesheet_lifecycle.approve_timesheet(
            db, timesheet, reviewer_id=current_user.id, dispatcher=dispatcher
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)
    return TimesheetRead.from_timesheet(timesheet)


@router.post("/{timesheet_id}/reject", response_model=TimesheetRead)
async def reject_timesheet(
    timesheet_id: int,
    payload: TimesheetReject,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_employer),
    dispatcher=Depends(get_dispatcher),
):
    timesheet = _get_org_timesheet(db, timesheet_id, current_user)
    try:
        timesheet = timesheet_lifecycle.reject_timesheet(
            db, timesheet, reviewer_id=current_user.id, reason=payload.reason, dispatcher=dispatcher
        )
    except WorkforceError as exc:
        raise to_http_exception(exc)
    return TimesheetRead.from_timesheet(timesheet)


@router.get("/{timesheet_id}/events", response_model=List[TimesheetEventRead])
async def get_timesheet_events(
    timesheet_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if current_user.is_employer:
        _get_org_timesheet(db, timesheet_id, current_user)
    else:
        _get_own_timesheet(db, timesheet_id, current_user)
    return (
        db.query(TimesheetEvent)
        .filter(TimesheetEvent.timesheet_id == timesheet_id)
        .order_by(TimesheetEvent.created_at.asc(), TimesheetEvent.id.asc())
        .all()
    )
