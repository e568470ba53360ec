"""Timesheet lifecycle: validation and status transitions.

    draft ──submit──> submitted ──approve──> approved (terminal)
                         │
                         └──reject──> rejected ──resubmit──> submitted

A timesheet may also be created directly as ``submitted``. Every status change
writes a ``TimesheetEvent`` in the same commit and is then handed to the
notification dispatcher; dispatch is best-effort.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.core.time import utc_now
from backend.app.models.timesheet import Timesheet, TimesheetStatus
from backend.app.models.timesheet_event import TimesheetEvent
from backend.app.services.errors import DuplicatePeriodError, InvalidTransitionError, ValidationError
from backend.app.services.notifications import LifecycleEvent, Recipient, dispatch_lifecycle_event
from backend.app.services.periods import week_bounds
from backend.app.services.timesheet_aggregation import MalformedRecordError, parse_hours_value

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    TimesheetStatus.DRAFT: {TimesheetStatus.SUBMITTED},
    TimesheetStatus.SUBMITTED: {TimesheetStatus.APPROVED, TimesheetStatus.REJECTED},
    TimesheetStatus.REJECTED: {TimesheetStatus.SUBMITTED},
    TimesheetStatus.APPROVED: set(),
}

EDITABLE_STATUSES = {TimesheetStatus.DRAFT, TimesheetStatus.REJECTED}

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def can_transition(from_status: TimesheetStatus, to_status: TimesheetStatus) -> bool:
    return to_status in ALLOWED_TRANSITIONS.get(from_status, set())


def normalize_daily_hours(
    daily_hours: Optional[Mapping],
    week_ending: Optional[date],
) -> Tuple[Dict[str, str], List[str]]:
    """Validate per-day entries and convert them to the stored ``{iso_date: "hours"}`` form."""
    violations: List[str] = []
    normalized: Dict[str, str] = {}
    seen = set()
    if daily_hours is None:
        return normalized, violations
    if not isinstance(daily_hours, Mapping):
        return normalized, ["daily_hours must be a mapping of date to hours"]

    week_starting = week_bounds(week_ending)[0] if week_ending else None
    for key, value in daily_hours.items():
        try:
            day = key if isinstance(key, date) else date.fromisoformat(str(key))
        except ValueError:
            violations.append(f"{key!r} is not a valid date")
            continue
        if day in seen:
            violations.append(f"{day.isoformat()} is listed more than once")
            continue
        seen.add(day)
        try:
            hours = parse_hours_value(value)
        except MalformedRecordError:
            violations.append(f"Hours for {day.isoformat()} must be a number between 0 and 24")
            continue
        if week_starting is not None and not (week_starting <= day <= week_ending):
            violations.append(f"{day.isoformat()} is outside the week ending {week_ending.isoformat()}")
            continue
        normalized[day.isoformat()] = str(hours)
    return normalized, violations


def _week_ending_violations(week_ending: Optional[date]) -> List[str]:
    if week_ending is None:
        return ["Week ending date is required"]
    end_day = get_settings().week_end_day
    if week_ending.weekday() != end_day:
        return [f"Week ending date must be a {WEEKDAY_NAMES[end_day]}"]
    return []


def validate_draft(week_ending: Optional[date], daily_hours: Optional[Mapping]) -> Tuple[Dict[str, str], List[str]]:
    violations = _week_ending_violations(week_ending)
    normalized, hour_violations = normalize_daily_hours(daily_hours, week_ending)
    return normalized, violations + hour_violations


def validate_submission(
    week_ending: Optional[date],
    daily_hours: Optional[Mapping],
    description: Optional[str],
) -> Tuple[Dict[str, str], List[str]]:
    """Check everything a submission needs; returns every violation found."""
    normalized, violations = validate_draft(week_ending, daily_hours)
    if not any(Decimal(v) > 0 for v in normalized.values()):
        violations.append("At least one day must have hours logged")
    if not description or not description.strip():
        violations.append("Description is required")
    return normalized, violations


def _recipient_for(timesheet: Timesheet) -> Recipient | None:
    user = timesheet.user
    if user is None or not user.email:
        return None
    return Recipient(email=user.email, first_name=user.first_name)


def _record_event(
    timesheet: Timesheet,
    from_status: Optional[TimesheetStatus],
    to_status: TimesheetStatus,
    acting_user_id: int,
    reason: Optional[str] = None,
) -> TimesheetEvent:
    event = TimesheetEvent(
        user_id=timesheet.user_id,
        organization_id=timesheet.organization_id,
        acting_user_id=acting_user_id,
        from_status=from_status.value if from_status else None,
        to_status=to_status.value,
        reason=reason,
        created_at=utc_now(),
    )
    timesheet.events.append(event)
    return event


def _emit(timesheet: Timesheet, event_row: TimesheetEvent, dispatcher) -> LifecycleEvent:
    event = LifecycleEvent(
        timesheet_id=timesheet.id,
        user_id=timesheet.user_id,
        organization_id=timesheet.organization_id,
        from_status=event_row.from_status,
        to_status=event_row.to_status,
        reason=event_row.reason,
        timestamp=event_row.created_at,
    )
    dispatch_lifecycle_event(dispatcher, event, _recipient_for(timesheet))
    return event


def find_timesheet_for_week(db: Session, user_id: int, week_ending: date) -> Timesheet | None:
    return (
        db.query(Timesheet)
        .filter(Timesheet.user_id == user_id, Timesheet.week_ending == week_ending)
        .first()
    )


def _commit_unique(db: Session, user_id: int, week_ending: date) -> None:
    # The database constraint is authoritative; the pre-flight lookup only gives a nicer error sooner.
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        existing = find_timesheet_for_week(db, user_id, week_ending)
        if existing is None:
            raise
        raise DuplicatePeriodError(user_id, week_ending, existing.id) from exc


def create_timesheet(
    db: Session,
    *,
    user_id: int,
    organization_id: int,
    week_ending: Optional[date],
    daily_hours: Optional[Mapping] = None,
    description: Optional[str] = None,
    documents: Optional[Iterable[str]] = None,
    submit: bool = False,
    dispatcher=None,
) -> Timesheet:
    if submit:
        normalized, violations = validate_submission(week_ending, daily_hours, description)
    else:
        normalized, violations = validate_draft(week_ending, daily_hours)
    if violations:
        raise ValidationError(violations)

    existing = find_timesheet_for_week(db, user_id, week_ending)
    if existing is not None:
        raise DuplicatePeriodError(user_id, week_ending, existing.id)

    now = utc_now()
    status = TimesheetStatus.SUBMITTED if submit else TimesheetStatus.DRAFT
    timesheet = Timesheet(
        user_id=user_id,
        organization_id=organization_id,
        week_starting=week_bounds(week_ending)[0],
        week_ending=week_ending,
        daily_hours=normalized,
        description=description,
        documents=list(documents or []),
        status=status.value,
        submitted_at=now if submit else None,
        created_at=now,
        updated_at=now,
    )
    db.add(timesheet)
    event_row = _record_event(timesheet, None, status, user_id) if submit else None
    _commit_unique(db, user_id, week_ending)
    db.refresh(timesheet)
    logger.info("Timesheet %s created for user %s week ending %s as %s", timesheet.id, user_id, week_ending, status.value)

    if event_row is not None:
        _emit(timesheet, event_row, dispatcher)
    return timesheet


def update_timesheet(
    db: Session,
    timesheet: Timesheet,
    *,
    week_ending: Optional[date] = None,
    daily_hours: Optional[Mapping] = None,
    description: Optional[str] = None,
    documents: Optional[Iterable[str]] = None,
) -> Timesheet:
    """Edit content while the timesheet is still with its owner (draft or rejected)."""
    status = TimesheetStatus(timesheet.status)
    if status not in EDITABLE_STATUSES:
        raise InvalidTransitionError(status.value, "edited")

    target_week = week_ending or timesheet.week_ending
    normalized, violations = validate_draft(target_week, daily_hours if daily_hours is not None else timesheet.daily_hours)
    if violations:
        raise ValidationError(violations)

    if target_week != timesheet.week_ending:
        clash = find_timesheet_for_week(db, timesheet.user_id, target_week)
        if clash is not None and clash.id != timesheet.id:
            raise DuplicatePeriodError(timesheet.user_id, target_week, clash.id)
        timesheet.week_starting, timesheet.week_ending = week_bounds(target_week)

    timesheet.daily_hours = normalized
    if description is not None:
        timesheet.description = description
    if documents is not None:
        timesheet.documents = list(documents)
    timesheet.updated_at = utc_now()
    _commit_unique(db, timesheet.user_id, target_week)
    db.refresh(timesheet)
    return timesheet


def _transition(
    db: Session,
    timesheet: Timesheet,
    to_status: TimesheetStatus,
    *,
    acting_user_id: int,
    reason: Optional[str] = None,
    dispatcher=None,
) -> Timesheet:
    from_status = TimesheetStatus(timesheet.status)
    now = utc_now()
    timesheet.status = to_status.value
    timesheet.updated_at = now
    event_row = _record_event(timesheet, from_status, to_status, acting_user_id, reason)
    db.commit()
    db.refresh(timesheet)
    logger.info(
        "Timesheet %s moved %s -> %s by user %s",
        timesheet.id,
        from_status.value,
        to_status.value,
        acting_user_id,
    )
    _emit(timesheet, event_row, dispatcher)
    return timesheet


def _require_transition(timesheet: Timesheet, to_status: TimesheetStatus) -> None:
    from_status = TimesheetStatus(timesheet.status)
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(from_status.value, to_status.value)


def submit_timesheet(db: Session, timesheet: Timesheet, *, acting_user_id: int, dispatcher=None) -> Timesheet:
    """draft -> submitted, or resubmission of a rejected timesheet."""
    _require_transition(timesheet, TimesheetStatus.SUBMITTED)
    normalized, violations = validate_submission(timesheet.week_ending, timesheet.daily_hours, timesheet.description)
    if violations:
        raise ValidationError(violations)

    timesheet.daily_hours = normalized
    timesheet.rejection_reason = None
    timesheet.submitted_at = utc_now()
    timesheet.reviewed_by_id = None
    timesheet.reviewed_at = None
    return _transition(db, timesheet, TimesheetStatus.SUBMITTED, acting_user_id=acting_user_id, dispatcher=dispatcher)


def approve_timesheet(db: Session, timesheet: Timesheet, *, reviewer_id: int, dispatcher=None) -> Timesheet:
    """Reviewer authority is checked by the caller; this only records the decision."""
    _require_transition(timesheet, TimesheetStatus.APPROVED)
    timesheet.reviewed_by_id = reviewer_id
    timesheet.reviewed_at = utc_now()
    return _transition(db, timesheet, TimesheetStatus.APPROVED, acting_user_id=reviewer_id, dispatcher=dispatcher)


def reject_timesheet(
    db: Session,
    timesheet: Timesheet,
    *,
    reviewer_id: int,
    reason: Optional[str],
    dispatcher=None,
) -> Timesheet:
    _require_transition(timesheet, TimesheetStatus.REJECTED)
    if not reason or not reason.strip():
        raise ValidationError(["Rejection reason is required"])
    timesheet.rejection_reason = reason
    timesheet.reviewed_by_id = reviewer_id
    timesheet.reviewed_at = utc_now()
    return _transition(
        db,
        timesheet,
        TimesheetStatus.REJECTED,
        acting_user_id=reviewer_id,
        reason=reason,
        dispatcher=dispatcher,
    )
