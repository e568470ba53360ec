"""Calendar arithmetic for reporting weeks and months."""

import calendar
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Tuple

MONDAY = 0
FRIDAY = 4
SUNDAY = 6


def month_bounds(reference_date: date) -> Tuple[date, date]:
    """Return the first and last day of the month containing ``reference_date``."""
    last_day = calendar.monthrange(reference_date.year, reference_date.month)[1]
    return reference_date.replace(day=1), reference_date.replace(day=last_day)


def week_start_for(day: date, week_start: int = MONDAY) -> date:
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def week_bounds(week_ending: date) -> Tuple[date, date]:
    """Return (week_starting, week_ending) for the 7-day week closing on ``week_ending``."""
    return week_ending - timedelta(days=6), week_ending


def week_days(week_starting: date) -> List[date]:
    return [week_starting + timedelta(days=offset) for offset in range(7)]


def weeks_in_month(reference_date: date, week_start: int = MONDAY) -> List[date]:
    """Start dates of every week that overlaps the month of ``reference_date``.

    The first week may begin in the previous month and the last may end in the
    next one; both are still part of the month's view.
    """
    first, last = month_bounds(reference_date)
    current = week_start_for(first, week_start)
    weeks = []
    while current <= last:
        weeks.append(current)
        current += timedelta(days=7)
    return weeks


def count_weekdays(start: date, end: date) -> int:
    """Number of Monday-Friday dates in the inclusive range."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    for offset in range(remainder):
        if (start.weekday() + offset) % 7 <= FRIDAY:
            count += 1
    return count


def expected_working_hours(month_start: date, month_end: date, hours_per_day: int | Decimal = 8) -> Decimal:
    """Working-hour baseline: weekdays in range times ``hours_per_day``. No holiday calendar."""
    return Decimal(count_weekdays(month_start, month_end)) * Decimal(str(hours_per_day))
