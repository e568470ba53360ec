"""Weekly timesheet model.

One row per employee per reporting week. Hours live only in ``daily_hours``
(ISO date -> decimal string); the weekly total is always derived from them.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.app.db.base_class import Base


class TimesheetStatus(str, enum.Enum):
    DRAFT = "draft"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"


class Timesheet(Base):
    __tablename__ = "timesheets"
    __table_args__ = (UniqueConstraint("user_id", "week_ending", name="uq_timesheets_user_week_ending"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    week_starting = Column(Date, nullable=False)
    week_ending = Column(Date, nullable=False, index=True)

    daily_hours = Column(JSON, nullable=False, default=dict)
    description = Column(Text, nullable=True)
    documents = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=TimesheetStatus.DRAFT.value, index=True)
    rejection_reason = Column(Text, nullable=True)

    submitted_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    user = relationship("User", back_populates="timesheets", foreign_keys=[user_id])
    reviewed_by = relationship("User", foreign_keys=[reviewed_by_id])
    events = relationship(
        "TimesheetEvent",
        back_populates="timesheet",
        cascade="all, delete-orphan",
        order_by="TimesheetEvent.id",
    )
