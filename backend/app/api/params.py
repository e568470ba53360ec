"""Shared query-parameter parsing."""

from datetime import date, datetime, timezone

from fastapi import HTTPException


def parse_month(month: str | None) -> date:
    """``YYYY-MM`` -> first day of that month; defaults to the current month."""
    if not month:
        return datetime.now(timezone.utc).date().replace(day=1)
    try:
        return datetime.strptime(month, "%Y-%m").date()
    except ValueError:
        raise HTTPException(status_code=400, detail="month must be in YYYY-MM format")
