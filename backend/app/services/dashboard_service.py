"""Employee and employer dashboard cards built from the timesheet aggregators."""

from datetime import date, timedelta

from sqlalchemy.orm import Session

from backend.app.core.settings import get_settings
from backend.app.models.client import Client
from backend.app.models.timesheet import Timesheet, TimesheetStatus
from backend.app.models.user import ROLE_EMPLOYEE, User
from backend.app.services.invoices import get_invoice_status_summary
from backend.app.services.periods import expected_working_hours, month_bounds, weeks_in_month
from backend.app.services.timesheet_aggregation import (
    ZERO,
    bucket_by_week,
    calendar_weeks,
    compute_approved_totals,
    compute_month_totals,
    format_hours,
)

RECENT_TIMESHEET_LIMIT = 5


def calendar_week_start() -> int:
    return (get_settings().week_end_day + 1) % 7


def month_window(reference_date: date) -> tuple[date, date]:
    """Date range covering every week that overlaps the month, boundary weeks included."""
    weeks = weeks_in_month(reference_date, calendar_week_start())
    return weeks[0], weeks[-1] + timedelta(days=6)


def timesheets_for_month(
    db: Session,
    *,
    organization_id: int,
    reference_date: date,
    user_id: int | None = None,
    status: str | None = None,
) -> list[Timesheet]:
    window_start, window_end = month_window(reference_date)
    query = db.query(Timesheet).filter(
        Timesheet.organization_id == organization_id,
        Timesheet.week_ending >= window_start,
        Timesheet.week_starting <= window_end,
    )
    if user_id is not None:
        query = query.filter(Timesheet.user_id == user_id)
    if status:
        query = query.filter(Timesheet.status == status)
    return query.order_by(Timesheet.week_ending.asc(), Timesheet.id.asc()).all()


def get_employee_dashboard(db: Session, *, user_id: int, organization_id: int, reference_date: date) -> dict:
    settings = get_settings()
    first, last = month_bounds(reference_date)
    records = timesheets_for_month(db, organization_id=organization_id, reference_date=reference_date, user_id=user_id)

    month = compute_month_totals(records, reference_date)
    expected = expected_working_hours(first, last, settings.hours_per_day)
    remaining = expected - month.total_hours
    if remaining < ZERO:
        remaining = ZERO

    buckets = bucket_by_week(records).buckets
    recent = sorted(buckets, key=lambda b: b.week_ending, reverse=True)[:RECENT_TIMESHEET_LIMIT]

    return {
        "month": first.strftime("%Y-%m"),
        "hours_this_month": format_hours(month.total_hours),
        "expected_hours": format_hours(expected),
        "remaining_hours": format_hours(remaining),
        "draft_hours": format_hours(month.draft_hours),
        "pending_hours": format_hours(month.pending_hours),
        "approved_hours": format_hours(month.approved_hours),
        "rejected_hours": format_hours(month.rejected_hours),
        "skipped_records": month.skipped_count,
        "recent_timesheets": [b.as_dict() for b in recent],
    }


def get_employer_dashboard(db: Session, *, organization_id: int, reference_date: date, today: date) -> dict:
    first, last = month_bounds(reference_date)

    total_employees = (
        db.query(User)
        .filter(User.organization_id == organization_id, User.role == ROLE_EMPLOYEE, User.is_active.is_(True))
        .count()
    )
    total_clients = db.query(Client).filter(Client.organization_id == organization_id).count()
    awaiting_review = (
        db.query(Timesheet)
        .filter(Timesheet.organization_id == organization_id, Timesheet.status == TimesheetStatus.SUBMITTED.value)
        .count()
    )

    records = timesheets_for_month(db, organization_id=organization_id, reference_date=reference_date)
    approved = compute_approved_totals(records, predicate=lambda r: first <= r.week_ending <= last)
    invoices = get_invoice_status_summary(db, organization_id, today)

    return {
        "month": first.strftime("%Y-%m"),
        "total_employees": total_employees,
        "total_clients": total_clients,
        "timesheets_awaiting_review": awaiting_review,
        "hours": approved.as_dict(),
        "invoices": invoices,
    }


def get_timesheet_calendar(db: Session, *, user_id: int, organization_id: int, reference_date: date) -> dict:
    records = timesheets_for_month(db, organization_id=organization_id, reference_date=reference_date, user_id=user_id)
    weeks, result = calendar_weeks(records, reference_date, calendar_week_start())
    return {
        "month": reference_date.strftime("%Y-%m"),
        "weeks": [week.as_dict() for week in weeks],
        "skipped_records": result.skipped_count,
        "conflicts": len(result.conflicts),
    }
