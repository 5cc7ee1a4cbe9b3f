"""Pydantic schemas for employees and the duplicate checker."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, field_validator

from pontaj.schemas.user import normalise_email


def _clean_name(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Name must not be empty")
    if len(v) > 200:
        raise ValueError("Name must not exceed 200 characters")
    return v


class EmployeeCreate(BaseModel):
    name: str
    email: str
    phone: str | None = None
    department: str = "General"
    position: str = "Employee"
    join_date: date | None = None
    test_eligible: bool = False
    create_user_account: bool = False
    password: str | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _clean_name(v)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return normalise_email(v)

    @field_validator("department", "position")
    @classmethod
    def _strip(cls, v: str) -> str:
        return v.strip()


class EmployeeUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    department: str | None = None
    position: str | None = None
    join_date: date | None = None
    leave_date: date | None = None
    is_active: bool | None = None
    test_eligible: bool | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str | None) -> str | None:
        return _clean_name(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return normalise_email(v) if v is not None else v


class EmployeeRead(BaseModel):
    id: int
    user_id: int | None
    name: str
    email: str
    phone: str | None
    department: str
    position: str
    join_date: date
    leave_date: date | None
    is_active: bool
    test_eligible: bool
    created_at: datetime | None

    model_config = {"from_attributes": True}


class EmployeeCreated(EmployeeRead):
    generated_password: str | None = None


class EmployeeOption(BaseModel):
    """Slim row used by dropdowns."""

    id: int
    name: str
    department: str
    email: str
    is_active: bool

    model_config = {"from_attributes": True}


class EmployeeAction(BaseModel):
    """Optional body for PUT /employees/{id}?action=..."""

    leave_date: date | None = None
    test_eligible: bool | None = None


class DepartmentStat(BaseModel):
    department: str
    count: int
    active_count: int


# ── Duplicate checks ────────────────────────────────────────────────
class DuplicateCheckRequest(BaseModel):
    field: Literal["email", "phone", "name"]
    value: str
    exclude_id: int | None = None


class DuplicateCheckResult(BaseModel):
    field: str
    value: str
    is_duplicate: bool
    matches: list[EmployeeOption]
