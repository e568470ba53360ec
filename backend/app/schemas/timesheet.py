"""Timesheet request/response schemas.

``daily_hours`` is accepted loosely so the lifecycle validator can report
every bad entry at once instead of stopping at the first parse error.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from backend.app.models.timesheet import Timesheet
from backend.app.services.timesheet_aggregation import MalformedRecordError, format_hours, record_hours


class TimesheetCreate(BaseModel):
    week_ending: Optional[date] = None
    daily_hours: Dict[str, Any] = {}
    description: Optional[str] = None
    documents: List[str] = []
    submit: bool = False


class TimesheetUpdate(BaseModel):
    week_ending: Optional[date] = None
    daily_hours: Optional[Dict[str, Any]] = None
    description: Optional[str] = None
    documents: Optional[List[str]] = None


class TimesheetReject(BaseModel):
    reason: Optional[str] = None


class TimesheetRead(BaseModel):
    id: int
    user_id: int
    organization_id: int
    week_starting: date
    week_ending: date
    daily_hours: Dict[str, str]
    total_hours: Optional[str] = None
    description: Optional[str] = None
    documents: List[str]
    status: str
    rejection_reason: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_by_id: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @classmethod
    def from_timesheet(cls, timesheet: Timesheet) -> "TimesheetRead":
        try:
            total = format_hours(record_hours(timesheet))
        except MalformedRecordError:
            total = None
        raw_hours = timesheet.daily_hours if isinstance(timesheet.daily_hours, dict) else {}
        return cls(
            id=timesheet.id,
            user_id=timesheet.user_id,
            organization_id=timesheet.organization_id,
            week_starting=timesheet.week_starting,
            week_ending=timesheet.week_ending,
            daily_hours={str(k): str(v) for k, v in raw_hours.items()},
            total_hours=total,
            description=timesheet.description,
            documents=list(timesheet.documents or []),
            status=timesheet.status,
            rejection_reason=timesheet.rejection_reason,
            submitted_at=timesheet.submitted_at,
            reviewed_by_id=timesheet.reviewed_by_id,
            reviewed_at=timesheet.reviewed_at,
            created_at=timesheet.created_at,
            updated_at=timesheet.updated_at,
        )


class TimesheetEventRead(BaseModel):
    id: int
    timesheet_id: int
    acting_user_id: int
    from_status: Optional[str] = None
    to_status: str
    reason: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
