"""Timesheet aggregation: weekly period buckets and hour totals by status.

All arithmetic is done on ``Decimal``; values are only rounded to two places
when rendered. A record whose hours or status cannot be read is skipped and
reported back to the caller instead of failing the whole aggregation.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from backend.app.models.timesheet import TimesheetStatus
from backend.app.services.periods import MONDAY, month_bounds, weeks_in_month

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
MAX_DAILY_HOURS = Decimal("24")
HOURS_QUANTUM = Decimal("0.01")

RecordPredicate = Callable[[object], bool]


class MalformedRecordError(ValueError):
    """A stored timesheet cannot be aggregated."""


@dataclass
class SkippedRecord:
    timesheet_id: Optional[int]
    reason: str


@dataclass
class PeriodBucket:
    user_id: int
    timesheet_id: Optional[int]
    week_starting: date
    week_ending: date
    total_hours: Decimal
    status: TimesheetStatus
    description: Optional[str]
    documents: List[str]
    daily_hours: Dict[date, Decimal] = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "timesheet_id": self.timesheet_id,
            "week_starting": self.week_starting.isoformat(),
            "week_ending": self.week_ending.isoformat(),
            "total_hours": format_hours(self.total_hours),
            "status": self.status.value,
            "description": self.description,
            "documents": list(self.documents),
        }


@dataclass
class BucketConflict:
    user_id: int
    week_ending: date
    kept_id: Optional[int]
    discarded_ids: List[Optional[int]]


@dataclass
class BucketResult:
    buckets: List[PeriodBucket]
    skipped: List[SkippedRecord]
    conflicts: List[BucketConflict]

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)


@dataclass
class HoursTotals:
    total_hours: Decimal = ZERO
    draft_hours: Decimal = ZERO
    pending_hours: Decimal = ZERO
    approved_hours: Decimal = ZERO
    rejected_hours: Decimal = ZERO
    record_count: int = 0
    skipped: List[SkippedRecord] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    def as_dict(self) -> dict:
        return {
            "total_hours": format_hours(self.total_hours),
            "draft_hours": format_hours(self.draft_hours),
            "pending_hours": format_hours(self.pending_hours),
            "approved_hours": format_hours(self.approved_hours),
            "rejected_hours": format_hours(self.rejected_hours),
            "record_count": self.record_count,
            "skipped_count": self.skipped_count,
        }


@dataclass
class CalendarDay:
    day: date
    hours: Decimal
    in_month: bool


@dataclass
class CalendarWeek:
    week_starting: date
    week_ending: date
    days: List[CalendarDay]
    buckets: List[PeriodBucket]

    @property
    def total_hours(self) -> Decimal:
        return sum((b.total_hours for b in self.buckets), ZERO)

    def as_dict(self) -> dict:
        return {
            "week_starting": self.week_starting.isoformat(),
            "week_ending": self.week_ending.isoformat(),
            "total_hours": format_hours(self.total_hours),
            "days": [
                {"date": d.day.isoformat(), "hours": format_hours(d.hours), "in_month": d.in_month}
                for d in self.days
            ],
            "timesheets": [b.as_dict() for b in self.buckets],
        }


def quantize_hours(value: Decimal) -> Decimal:
    return Decimal(value).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def format_hours(value: Decimal) -> str:
    return str(quantize_hours(value))


def parse_hours_value(value) -> Decimal:
    """Convert one stored daily entry to ``Decimal``, enforcing the [0, 24] bound."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise MalformedRecordError(f"unreadable hours value {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise MalformedRecordError(f"unreadable hours value {value!r}") from exc
    if not amount.is_finite():
        raise MalformedRecordError(f"unreadable hours value {value!r}")
    if amount < ZERO or amount > MAX_DAILY_HOURS:
        raise MalformedRecordError(f"hours value {amount} outside 0-24")
    return amount


def parse_daily_hours(raw) -> Dict[date, Decimal]:
    if not isinstance(raw, Mapping):
        raise MalformedRecordError("daily_hours is missing or not a mapping")
    parsed: Dict[date, Decimal] = {}
    for key, value in raw.items():
        try:
            day = date.fromisoformat(str(key))
        except ValueError as exc:
            raise MalformedRecordError(f"invalid date key {key!r}") from exc
        parsed[day] = parse_hours_value(value)
    return parsed


def record_status(record) -> TimesheetStatus:
    try:
        return TimesheetStatus(getattr(record, "status", None))
    except ValueError as exc:
        raise MalformedRecordError(f"unknown status {getattr(record, 'status', None)!r}") from exc


def record_period_key(record) -> Tuple[int, date]:
    """The (user_id, week_ending) pair a record is bucketed under."""
    user_id = getattr(record, "user_id", None)
    week_ending = getattr(record, "week_ending", None)
    if user_id is None:
        raise MalformedRecordError("user_id is missing")
    if not isinstance(week_ending, date) or isinstance(week_ending, datetime):
        raise MalformedRecordError(f"week_ending {week_ending!r} is not a date")
    return user_id, week_ending


def record_hours(record) -> Decimal:
    """Total hours of one timesheet, always derived from its per-day entries."""
    return sum(parse_daily_hours(getattr(record, "daily_hours", None)).values(), ZERO)


def _skip(record, exc: Exception) -> SkippedRecord:
    record_id = getattr(record, "id", None)
    logger.warning("Skipping timesheet %s during aggregation: %s", record_id, exc)
    return SkippedRecord(timesheet_id=record_id, reason=str(exc))


def _aggregate(
    records: Iterable,
    counted_statuses: frozenset,
    predicate: Optional[RecordPredicate] = None,
    day_filter: Optional[Callable[[date], bool]] = None,
) -> HoursTotals:
    totals = HoursTotals()
    for record in records:
        if predicate is not None and not predicate(record):
            continue
        try:
            status = record_status(record)
            daily = parse_daily_hours(getattr(record, "daily_hours", None))
        except MalformedRecordError as exc:
            totals.skipped.append(_skip(record, exc))
            continue

        hours = sum((h for d, h in daily.items() if day_filter is None or day_filter(d)), ZERO)
        totals.record_count += 1
        if status == TimesheetStatus.DRAFT:
            totals.draft_hours += hours
        elif status == TimesheetStatus.SUBMITTED:
            totals.pending_hours += hours
        elif status == TimesheetStatus.APPROVED:
            totals.approved_hours += hours
        elif status == TimesheetStatus.REJECTED:
            totals.rejected_hours += hours
        if status in counted_statuses:
            totals.total_hours += hours
    return totals


ALL_STATUSES = frozenset(TimesheetStatus)
APPROVED_ONLY = frozenset({TimesheetStatus.APPROVED})


def compute_totals(records: Iterable, predicate: Optional[RecordPredicate] = None) -> HoursTotals:
    """Hours per status; ``total_hours`` covers every status."""
    return _aggregate(records, ALL_STATUSES, predicate)


def compute_approved_totals(records: Iterable, predicate: Optional[RecordPredicate] = None) -> HoursTotals:
    """Hours per status; ``total_hours`` covers approved timesheets only."""
    return _aggregate(records, APPROVED_ONLY, predicate)


def compute_month_totals(
    records: Iterable,
    reference_date: date,
    predicate: Optional[RecordPredicate] = None,
) -> HoursTotals:
    """Like ``compute_totals`` but only per-day entries dated inside the month count."""
    first, last = month_bounds(reference_date)
    return _aggregate(records, ALL_STATUSES, predicate, day_filter=lambda d: first <= d <= last)


def _updated_key(record) -> Tuple[datetime, int]:
    updated = getattr(record, "updated_at", None)
    if updated is None:
        updated = datetime.min.replace(tzinfo=timezone.utc)
    elif updated.tzinfo is None:
        # SQLite hands back naive values for timezone-aware columns
        updated = updated.replace(tzinfo=timezone.utc)
    return updated, getattr(record, "id", None) or 0


def bucket_by_week(records: Iterable) -> BucketResult:
    """Collapse records into one bucket per (user, week_ending).

    The uniqueness constraint should make duplicates impossible; if they show
    up anyway the most recently updated record wins and the clash is reported.
    """
    chosen: Dict[Tuple[int, date], Tuple[object, TimesheetStatus, Dict[date, Decimal]]] = {}
    discarded: Dict[Tuple[int, date], List[Optional[int]]] = {}
    skipped: List[SkippedRecord] = []

    for record in records:
        try:
            key = record_period_key(record)
            status = record_status(record)
            daily = parse_daily_hours(getattr(record, "daily_hours", None))
        except MalformedRecordError as exc:
            skipped.append(_skip(record, exc))
            continue

        current = chosen.get(key)
        if current is None:
            chosen[key] = (record, status, daily)
            continue

        if _updated_key(record) > _updated_key(current[0]):
            loser = current[0]
            chosen[key] = (record, status, daily)
        else:
            loser = record
        discarded.setdefault(key, []).append(getattr(loser, "id", None))
        logger.warning(
            "Duplicate timesheets for user %s week ending %s; keeping %s, ignoring %s",
            key[0],
            key[1],
            getattr(chosen[key][0], "id", None),
            getattr(loser, "id", None),
        )

    buckets = []
    for (user_id, week_ending), (record, status, daily) in chosen.items():
        buckets.append(
            PeriodBucket(
                user_id=user_id,
                timesheet_id=getattr(record, "id", None),
                week_starting=getattr(record, "week_starting", None) or week_ending - timedelta(days=6),
                week_ending=week_ending,
                total_hours=sum(daily.values(), ZERO),
                status=status,
                description=getattr(record, "description", None),
                documents=list(getattr(record, "documents", None) or []),
                daily_hours=daily,
            )
        )
    buckets.sort(key=lambda b: (b.week_ending, b.user_id))

    conflicts = [
        BucketConflict(
            user_id=key[0],
            week_ending=key[1],
            kept_id=getattr(chosen[key][0], "id", None),
            discarded_ids=ids,
        )
        for key, ids in discarded.items()
    ]
    return BucketResult(buckets=buckets, skipped=skipped, conflicts=conflicts)


def calendar_weeks(records: Iterable, reference_date: date, week_start: int = MONDAY) -> Tuple[List[CalendarWeek], BucketResult]:
    """Rows for a month calendar: every overlapping week with its buckets and per-day hours."""
    result = bucket_by_week(records)
    first, last = month_bounds(reference_date)

    weeks = []
    for week_starting in weeks_in_month(reference_date, week_start):
        week_ending = week_starting + timedelta(days=6)
        week_buckets = [b for b in result.buckets if week_starting <= b.week_ending <= week_ending]
        days = []
        for offset in range(7):
            day = week_starting + timedelta(days=offset)
            hours = sum((b.daily_hours.get(day, ZERO) for b in week_buckets), ZERO)
            days.append(CalendarDay(day=day, hours=hours, in_month=first <= day <= last))
        weeks.append(CalendarWeek(week_starting=week_starting, week_ending=week_ending, days=days, buckets=week_buckets))
    return weeks, result
