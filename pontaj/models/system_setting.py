"""
System settings: flat key/value rows, value stored as text and
interpreted through ``setting_type``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text

from pontaj.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SystemSetting(Base):
    __tablename__ = "system_settings"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    key: str = Column(String(100), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    value: str = Column(Text, nullable=False)  # type: ignore[assignment]
    setting_type: str = Column(String(20), nullable=False, default="string")  # type: ignore[assignment]
    # string | boolean | integer | time
    description: str | None = Column(Text, nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
