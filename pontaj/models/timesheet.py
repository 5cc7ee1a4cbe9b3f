"""
Timesheet models: configurable checklist options and daily entries.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (JSON, Boolean, Column, Date, DateTime, ForeignKey,
                        Integer, String, Text, UniqueConstraint)

from pontaj.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimesheetOption(Base):
    """One checklist column of every timesheet entry's flag map."""

    __tablename__ = "timesheet_options"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(200), nullable=False)  # type: ignore[assignment]
    key: str = Column(String(100), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    employee_text: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    display_order: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    active: bool = Column(Boolean, default=True, server_default="true")  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"
    __table_args__ = (
        UniqueConstraint("employee_id", "entry_date", name="uq_timesheet_employee_date"),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    employee_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    entry_date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    timesheet_data: dict = Column(JSON, nullable=False, default=dict)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="absent")  # type: ignore[assignment]
    # absent | incomplete | complete
    submitted_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
