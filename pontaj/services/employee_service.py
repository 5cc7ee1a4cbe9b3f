"""
Employee service: hiring, updates, soft deactivation and lookups.
"""

from __future__ import annotations

import logging
import re
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import Role
from pontaj.core.exceptions import ConflictError, NotFoundError, ValidationError
from pontaj.core.security import (check_password_strength,
                                  generate_secure_password, get_password_hash)
from pontaj.models.employee import Employee
from pontaj.models.user import User
from pontaj.schemas.employee import EmployeeCreate, EmployeeUpdate
from pontaj.services.settings_service import SettingsService

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r"\D")


def _escape_like(value: str) -> str:
    # Escape SQL LIKE metacharacters to prevent wildcard injection
    return value.replace("\\", "\\\\").replace("%", r"\%").replace("_", r"\_")


class EmployeeService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Reads ───────────────────────────────────────────────────────
    async def list_employees(
        self, *, include_inactive: bool = True, search: str | None = None
    ) -> list[Employee]:
        query = select(Employee).order_by(Employee.created_at.desc(), Employee.id.desc())
        if not include_inactive:
            query = query.where(Employee.is_active.is_(True))
        if search:
            pattern = f"%{_escape_like(search.strip())}%"
            query = query.where(
                Employee.name.ilike(pattern, escape="\\")
                | Employee.email.ilike(pattern, escape="\\")
                | Employee.department.ilike(pattern, escape="\\")
            )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_for_dropdown(self, *, include_inactive: bool = False) -> list[Employee]:
        query = select(Employee).order_by(Employee.name)
        if not include_inactive:
            query = query.where(Employee.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, employee_id: int) -> Employee:
        employee = await self.db.get(Employee, employee_id)
        if employee is None:
            raise NotFoundError(f"Employee {employee_id} not found")
        return employee

    async def get_by_user_id(self, user_id: int) -> Employee | None:
        result = await self.db.execute(select(Employee).where(Employee.user_id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Employee | None:
        result = await self.db.execute(
            select(Employee).where(func.lower(Employee.email) == email.strip().lower())
        )
        return result.scalars().first()

    async def departments(self) -> list[str]:
        result = await self.db.execute(
            select(Employee.department)
            .where(Employee.department.is_not(None), Employee.department != "")
            .distinct()
            .order_by(Employee.department)
        )
        return list(result.scalars().all())

    async def department_stats(self) -> list[dict]:
        result = await self.db.execute(
            select(
                Employee.department,
                func.count(Employee.id),
                func.sum(case((Employee.is_active.is_(True), 1), else_=0)),
            )
            .group_by(Employee.department)
            .order_by(Employee.department)
        )
        return [
            {"department": department, "count": count, "active_count": int(active or 0)}
            for department, count, active in result.all()
        ]

    # ── Writes ──────────────────────────────────────────────────────
    async def create(self, data: EmployeeCreate) -> tuple[Employee, str | None]:
        """Hire an employee, optionally with a linked login account.

        Returns the employee and, when one had to be generated, the
        plain-text password of the new account.
        """
        if await self.get_by_email(data.email) is not None:
            raise ConflictError(f"An employee with email '{data.email}' already exists")

        user: User | None = None
        generated_password: str | None = None
        if data.create_user_account:
            existing_user = await self.db.execute(select(User).where(User.email == data.email))
            if existing_user.scalar_one_or_none() is not None:
                raise ConflictError(f"A user account with email '{data.email}' already exists")

            password = data.password
            if password:
                min_length = await SettingsService(self.db).get_int("password_min_length", 8)
                strength = check_password_strength(password, min_length)
                if not strength.is_valid:
                    raise ValidationError(
                        "Password is too weak",
                        details={"requirements": strength.requirements},
                    )
            else:
                password = generated_password = generate_secure_password()

            user = User(
                email=data.email,
                hashed_password=get_password_hash(password),
                full_name=data.name,
                role=Role.EMPLOYEE.value,
            )
            self.db.add(user)
            await self.db.flush()

        employee = Employee(
            name=data.name,
            email=data.email,
            phone=data.phone or None,
            department=data.department or "General",
            position=data.position or "Employee",
            join_date=data.join_date or date.today(),
            test_eligible=data.test_eligible,
            user_id=user.id if user else None,
        )
        self.db.add(employee)
        await self.db.commit()
        await self.db.refresh(employee)
        logger.info(
            "Created employee %s (id=%d, account=%s)",
            employee.name,
            employee.id,
            "yes" if user else "no",
        )
        return employee, generated_password

    async def update(self, employee_id: int, data: EmployeeUpdate) -> Employee:
        employee = await self.get(employee_id)
        fields = data.model_dump(exclude_unset=True)

        new_email = fields.get("email")
        if new_email and new_email != employee.email:
            other = await self.get_by_email(new_email)
            if other is not None and other.id != employee.id:
                raise ConflictError(f"An employee with email '{new_email}' already exists")

        was_active = employee.is_active
        for field, value in fields.items():
            if field in ("name", "email", "department", "position", "join_date", "is_active") and value is None:
                continue
            setattr(employee, field, value)

        # is_active=false always carries a leave_date; deactivating stamps today
        # unless the same update names the date
        if "is_active" in fields and fields["is_active"] is True:
            employee.leave_date = None
        if not employee.is_active and (
            employee.leave_date is None or (was_active and fields.get("leave_date") is None)
        ):
            employee.leave_date = date.today()

        await self.db.commit()
        await self.db.refresh(employee)
        logger.info("Updated employee %d", employee_id)
        return employee

    async def deactivate(self, employee_id: int, leave_date: date | None = None) -> Employee:
        employee = await self.get(employee_id)
        employee.is_active = False
        employee.leave_date = leave_date or date.today()
        await self.db.commit()
        await self.db.refresh(employee)
        logger.warning("Deactivated employee %d (%s), leave date %s", employee.id, employee.name, employee.leave_date)
        return employee

    async def activate(self, employee_id: int) -> Employee:
        employee = await self.get(employee_id)
        employee.is_active = True
        employee.leave_date = None
        await self.db.commit()
        await self.db.refresh(employee)
        logger.info("Reactivated employee %d (%s)", employee.id, employee.name)
        return employee

    async def set_test_eligibility(self, employee_id: int, eligible: bool | None = None) -> Employee:
        """Set test eligibility, or flip it when *eligible* is None."""
        employee = await self.get(employee_id)
        employee.test_eligible = (not employee.test_eligible) if eligible is None else eligible
        await self.db.commit()
        await self.db.refresh(employee)
        logger.info("Employee %d test eligibility -> %s", employee.id, employee.test_eligible)
        return employee

    # ── Duplicate detection ─────────────────────────────────────────
    async def check_duplicate(
        self, field: str, value: str, exclude_id: int | None = None
    ) -> list[Employee]:
        """Employees that clash with *value* on *field* (email | phone | name)."""
        value = value.strip()
        if not value:
            return []

        if field == "email":
            query = select(Employee).where(func.lower(Employee.email) == value.lower())
            candidates = list((await self.db.execute(query)).scalars().all())
        elif field == "phone":
            digits = _NON_DIGITS.sub("", value)
            if not digits:
                return []
            query = select(Employee).where(Employee.phone.is_not(None))
            candidates = [
                e
                for e in (await self.db.execute(query)).scalars().all()
                if _NON_DIGITS.sub("", e.phone or "") == digits
            ]
        elif field == "name":
            needle = value.lower()
            candidates = [
                e
                for e in (await self.db.execute(select(Employee))).scalars().all()
                if needle in e.name.lower() or e.name.lower() in needle
            ]
        else:
            raise ValidationError(f"Unsupported duplicate check field: {field}")

        return [e for e in candidates if e.id != exclude_id]
