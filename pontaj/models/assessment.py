"""
Knowledge / compliance tests and their per-employee daily assignments.

Tables keep the ``tests`` / ``test_assignments`` names used by the UI;
the classes are named ``Assessment`` / ``Assignment``.
"""

from __future__ import annotations

from datetime import date, datetime, timezone

from sqlalchemy import (JSON, Column, Date, DateTime, ForeignKey, Integer,
                        String, Text, UniqueConstraint)

from pontaj.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Assessment(Base):
    __tablename__ = "tests"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    title: str = Column(String(300), nullable=False)  # type: ignore[assignment]
    description: str = Column(Text, nullable=False)  # type: ignore[assignment]
    instructions: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="active", index=True)  # type: ignore[assignment]
    # active | inactive | archived
    assignment_type: str = Column(String(30), nullable=False, default="automatic")  # type: ignore[assignment]
    # automatic | manual_employees | manual_departments
    assigned_employees: list | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    assigned_departments: list | None = Column(JSON, nullable=True)  # type: ignore[assignment]
    display_order: int = Column(Integer, nullable=False, default=0)  # type: ignore[assignment]
    created_by: int | None = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Assignment(Base):
    __tablename__ = "test_assignments"
    __table_args__ = (
        UniqueConstraint(
            "test_id", "employee_id", "assigned_date", name="uq_assignment_test_employee_date"
        ),
    )

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    test_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True
    )
    employee_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("employees.id", ondelete="CASCADE"), nullable=False, index=True
    )
    assigned_date: date = Column(Date, nullable=False, index=True)  # type: ignore[assignment]
    due_date: date = Column(Date, nullable=False)  # type: ignore[assignment]
    status: str = Column(String(20), nullable=False, default="pending")  # type: ignore[assignment]
    # pending | completed | skipped
    completed_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    notes: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
