"""
Test assignments: per-employee, per-day instances of a test, plus the
daily auto-assignment job.

The daily job is a full rebuild for one date: it deletes every assignment
dated that day, then, for each active test, picks up to
``TESTS_PER_ASSIGNMENT`` employees at random from the test's pool.
"""

from __future__ import annotations

import logging
import random
from datetime import date, datetime, timedelta, timezone

from sqlalchemy import delete as sa_delete
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.config import settings
from pontaj.core.enums import AssignmentStatus, AssignmentType, TestStatus
from pontaj.core.exceptions import ConflictError, DomainError, NotFoundError
from pontaj.models.assessment import Assessment, Assignment
from pontaj.models.employee import Employee
from pontaj.schemas.assessment import AssignmentCreate, AssignmentUpdate, BatchUpdateItem
from pontaj.services.leave_service import LeaveService

logger = logging.getLogger(__name__)


def select_pool(test: Assessment, eligible: list[Employee]) -> list[Employee]:
    """Employees a test may be assigned to, according to its strategy.

    A manual strategy with an empty selection behaves like ``automatic``.
    """
    if test.assignment_type == AssignmentType.MANUAL_EMPLOYEES and test.assigned_employees:
        wanted = {int(i) for i in test.assigned_employees}
        return [e for e in eligible if e.id in wanted]
    if test.assignment_type == AssignmentType.MANUAL_DEPARTMENTS and test.assigned_departments:
        wanted_departments = set(test.assigned_departments)
        return [e for e in eligible if e.department in wanted_departments]
    return list(eligible)


def pick_employees(pool: list[Employee], count: int, rng: random.Random) -> list[Employee]:
    if len(pool) <= count:
        return list(pool)
    return rng.sample(pool, count)


class AssignmentService:
    def __init__(self, db: AsyncSession):
        self.db = db

    # ── Reads ───────────────────────────────────────────────────────
    async def eligible_employees(self, day: date) -> list[Employee]:
        """Active, test-eligible employees not on approved leave on *day*."""
        on_leave = await LeaveService(self.db).employees_on_leave(day)
        result = await self.db.execute(
            select(Employee)
            .where(Employee.is_active.is_(True), Employee.test_eligible.is_(True))
            .order_by(Employee.id)
        )
        return [e for e in result.scalars().all() if e.id not in on_leave]

    def _detailed_query(self):
        return (
            select(
                Assignment,
                Assessment.title,
                Assessment.description,
                Assessment.instructions,
                Employee.name,
                Employee.department,
            )
            .join(Assessment, Assignment.test_id == Assessment.id)
            .join(Employee, Assignment.employee_id == Employee.id)
        )

    @staticmethod
    def _to_row(assignment, title, description, instructions, name, department) -> dict:
        return {
            "id": assignment.id,
            "test_id": assignment.test_id,
            "employee_id": assignment.employee_id,
            "assigned_date": assignment.assigned_date,
            "due_date": assignment.due_date,
            "status": assignment.status,
            "completed_at": assignment.completed_at,
            "notes": assignment.notes,
            "test_title": title,
            "test_description": description,
            "test_instructions": instructions,
            "employee_name": name,
            "employee_department": department,
        }

    async def _detailed(self, *conditions) -> list[dict]:
        query = self._detailed_query().where(*conditions).order_by(
            Assignment.assigned_date.desc(), Assessment.display_order, Employee.name
        )
        result = await self.db.execute(query)
        return [self._to_row(*row) for row in result.all()]

    async def get(self, assignment_id: int) -> Assignment:
        assignment = await self.db.get(Assignment, assignment_id)
        if assignment is None:
            raise NotFoundError(f"Test assignment {assignment_id} not found")
        return assignment

    async def get_detailed(self, assignment_id: int) -> dict:
        rows = await self._detailed(Assignment.id == assignment_id)
        if not rows:
            raise NotFoundError(f"Test assignment {assignment_id} not found")
        return rows[0]

    async def by_date(self, day: date, today: date | None = None) -> dict:
        rows = await self._detailed(Assignment.assigned_date == day)
        return {
            "assignment_date": day,
            "is_today": day == (today or date.today()),
            "total_tests": len({r["test_id"] for r in rows}),
            "total_assignments": len(rows),
            "assignments": rows,
        }

    async def stats(self, day: date, today: date | None = None) -> dict:
        rows = await self._detailed(Assignment.assigned_date == day)
        stats = {
            "assignment_date": day,
            "is_today": day == (today or date.today()),
            "total_tests": len({r["test_id"] for r in rows}),
            "total_assignments": len(rows),
            "pending": 0,
            "completed": 0,
            "skipped": 0,
        }
        for row in rows:
            stats[row["status"]] += 1
        return stats

    async def for_employee(self, employee_id: int) -> list[dict]:
        return await self._detailed(Assignment.employee_id == employee_id)

    async def todays_for_employee(self, employee_id: int, today: date | None = None) -> list[dict]:
        return await self._detailed(
            Assignment.employee_id == employee_id,
            Assignment.assigned_date == (today or date.today()),
        )

    async def employee_stats(self, employee_id: int) -> dict:
        rows = await self.for_employee(employee_id)
        stats = {"total_assigned": len(rows), "completed": 0, "pending": 0, "skipped": 0}
        for row in rows:
            stats[row["status"]] += 1
        total = stats["total_assigned"]
        stats["completion_rate"] = round(stats["completed"] * 100 / total) if total else 0
        return stats

    # ── Writes ──────────────────────────────────────────────────────
    async def create(self, data: AssignmentCreate) -> Assignment:
        if await self.db.get(Assessment, data.test_id) is None:
            raise NotFoundError(f"Test {data.test_id} not found")
        if await self.db.get(Employee, data.employee_id) is None:
            raise NotFoundError(f"Employee {data.employee_id} not found")

        assigned_date = data.assigned_date or date.today()
        duplicate = await self.db.execute(
            select(Assignment.id).where(
                Assignment.test_id == data.test_id,
                Assignment.employee_id == data.employee_id,
                Assignment.assigned_date == assigned_date,
            )
        )
        if duplicate.scalar_one_or_none() is not None:
            raise ConflictError("This test is already assigned to the employee on that date")

        assignment = Assignment(
            test_id=data.test_id,
            employee_id=data.employee_id,
            assigned_date=assigned_date,
            due_date=data.due_date or assigned_date + timedelta(days=1),
            status=AssignmentStatus.PENDING.value,
            notes=data.notes,
        )
        self.db.add(assignment)
        await self.db.commit()
        await self.db.refresh(assignment)
        logger.info(
            "Assigned test %d to employee %d for %s",
            assignment.test_id,
            assignment.employee_id,
            assignment.assigned_date,
        )
        return assignment

    def _apply(self, assignment: Assignment, data: AssignmentUpdate) -> None:
        fields = data.model_dump(exclude_unset=True, exclude={"id"})
        if fields.get("status") is not None:
            status = AssignmentStatus(fields["status"])
            assignment.status = status.value
            # completed_at tracks the completed state exactly
            if status == AssignmentStatus.COMPLETED:
                assignment.completed_at = assignment.completed_at or datetime.now(timezone.utc)
            else:
                assignment.completed_at = None
        if fields.get("due_date") is not None:
            assignment.due_date = fields["due_date"]
        if "notes" in fields:
            assignment.notes = fields["notes"]

    async def update(self, assignment_id: int, data: AssignmentUpdate) -> Assignment:
        assignment = await self.get(assignment_id)
        self._apply(assignment, data)
        await self.db.commit()
        await self.db.refresh(assignment)
        logger.info("Test assignment %d -> %s", assignment.id, assignment.status)
        return assignment

    async def delete(self, assignment_id: int) -> None:
        assignment = await self.get(assignment_id)
        await self.db.delete(assignment)
        await self.db.commit()
        logger.info("Deleted test assignment %d", assignment_id)

    async def batch_update(self, updates: list[BatchUpdateItem]) -> dict:
        """Apply every update independently; failures are collected, not raised."""
        results: list[dict] = []
        errors: list[dict] = []
        for item in updates:
            try:
                await self.update(item.id, item)
                results.append(await self.get_detailed(item.id))
            except DomainError as exc:
                await self.db.rollback()
                errors.append({"id": item.id, "error": exc.message})
        logger.info("Batch update: %d ok, %d failed", len(results), len(errors))
        return {
            "success_count": len(results),
            "error_count": len(errors),
            "results": results,
            "errors": errors,
        }

    # ── Daily job ───────────────────────────────────────────────────
    async def assign_daily(self, day: date | None = None, rng: random.Random | None = None) -> dict:
        day = day or date.today()
        rng = rng or random.Random()
        per_test = settings.TESTS_PER_ASSIGNMENT

        deleted = await self.db.execute(
            sa_delete(Assignment).where(Assignment.assigned_date == day)
        )
        deleted_count = deleted.rowcount or 0

        tests = (
            await self.db.execute(
                select(Assessment)
                .where(Assessment.status == TestStatus.ACTIVE.value)
                .order_by(Assessment.display_order, Assessment.id)
            )
        ).scalars().all()
        eligible = await self.eligible_employees(day)

        created = 0
        for test in tests:
            for employee in pick_employees(select_pool(test, eligible), per_test, rng):
                self.db.add(
                    Assignment(
                        test_id=test.id,
                        employee_id=employee.id,
                        assigned_date=day,
                        due_date=day + timedelta(days=1),
                        status=AssignmentStatus.PENDING.value,
                    )
                )
                created += 1

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.exception("Daily test assignment for %s failed", day)
            raise

        message = (
            f"Assigned {len(tests)} tests to employees for {day.isoformat()}: "
            f"{created} assignments created, {deleted_count} removed"
        )
        logger.info(message)
        return {
            "success": True,
            "assignment_date": day,
            "deleted_assignments": deleted_count,
            "total_tests_processed": len(tests),
            "total_assignments_created": created,
            "message": message,
        }
