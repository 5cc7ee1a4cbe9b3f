"""
Test definitions (knowledge / compliance tests).
"""

from __future__ import annotations

import logging

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import AssignmentType
from pontaj.core.exceptions import NotFoundError, ValidationError
from pontaj.models.assessment import Assessment, Assignment
from pontaj.models.user import User
from pontaj.schemas.assessment import AssessmentCreate, AssessmentUpdate

logger = logging.getLogger(__name__)


def _check_targets(assignment_type: str, employees: list | None, departments: list | None) -> None:
    if assignment_type == AssignmentType.MANUAL_EMPLOYEES and not employees:
        raise ValidationError("Select at least one employee for a manual employee assignment")
    if assignment_type == AssignmentType.MANUAL_DEPARTMENTS and not departments:
        raise ValidationError("Select at least one department for a manual department assignment")


class AssessmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tests(self, *, status: str | None = None) -> list[Assessment]:
        query = select(Assessment).order_by(Assessment.display_order, Assessment.id)
        if status:
            query = query.where(Assessment.status == status)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, test_id: int) -> Assessment:
        test = await self.db.get(Assessment, test_id)
        if test is None:
            raise NotFoundError(f"Test {test_id} not found")
        return test

    async def stats(self) -> dict:
        result = await self.db.execute(
            select(Assessment.status, func.count(Assessment.id)).group_by(Assessment.status)
        )
        stats = {"total": 0, "active": 0, "inactive": 0, "archived": 0}
        for status, count in result.all():
            stats[status] = count
            stats["total"] += count
        return stats

    async def create(self, data: AssessmentCreate, author: User | None = None) -> Assessment:
        _check_targets(data.assignment_type, data.assigned_employees, data.assigned_departments)
        display_order = data.display_order
        if display_order is None:
            result = await self.db.execute(select(func.max(Assessment.display_order)))
            display_order = (result.scalar() or 0) + 1

        test = Assessment(
            title=data.title,
            description=data.description,
            instructions=data.instructions,
            status=data.status.value,
            assignment_type=data.assignment_type.value,
            assigned_employees=data.assigned_employees,
            assigned_departments=data.assigned_departments,
            display_order=display_order,
            created_by=author.id if author else None,
        )
        self.db.add(test)
        await self.db.commit()
        await self.db.refresh(test)
        logger.info("Created test %d (%s, %s)", test.id, test.title, test.assignment_type)
        return test

    async def update(self, test_id: int, data: AssessmentUpdate) -> Assessment:
        test = await self.get(test_id)
        fields = data.model_dump(exclude_unset=True)
        for field, value in fields.items():
            if value is None and field in ("title", "description", "status", "assignment_type", "display_order"):
                continue
            if hasattr(value, "value"):
                value = value.value
            setattr(test, field, value)
        _check_targets(test.assignment_type, test.assigned_employees, test.assigned_departments)
        await self.db.commit()
        await self.db.refresh(test)
        logger.info("Updated test %d", test_id)
        return test

    async def delete(self, test_id: int) -> None:
        test = await self.get(test_id)
        await self.db.execute(sa_delete(Assignment).where(Assignment.test_id == test_id))
        await self.db.delete(test)
        await self.db.commit()
        logger.warning("Deleted test %d (%s) and its assignments", test_id, test.title)
