"""
Timesheet option service: the admin-configurable checklist columns.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.exceptions import ConflictError, NotFoundError, ValidationError
from pontaj.models.timesheet import TimesheetOption
from pontaj.schemas.timesheet import TimesheetOptionCreate, TimesheetOptionUpdate
from pontaj.utils.rules import is_valid_key, slugify_key

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = [
    # (title, key, employee_text)
    ("Present", "present", "I was present at work today"),
    ("Update PR", "update_pr", "I updated my pull requests"),
    ("Work from home", "work_from_home", "I worked from home"),
]

# Fixed columns of the timesheet report; option titles become the other columns
REPORT_COLUMNS = ("Employee", "Department", "Status", "Submitted At")


class TimesheetOptionService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_options(self, *, active_only: bool = False) -> list[TimesheetOption]:
        query = select(TimesheetOption).order_by(TimesheetOption.display_order, TimesheetOption.id)
        if active_only:
            query = query.where(TimesheetOption.active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get(self, option_id: int) -> TimesheetOption:
        option = await self.db.get(TimesheetOption, option_id)
        if option is None:
            raise NotFoundError(f"Timesheet option {option_id} not found")
        return option

    async def get_by_key(self, key: str) -> TimesheetOption | None:
        result = await self.db.execute(select(TimesheetOption).where(TimesheetOption.key == key))
        return result.scalar_one_or_none()

    async def _next_display_order(self) -> int:
        result = await self.db.execute(select(func.max(TimesheetOption.display_order)))
        return (result.scalar() or 0) + 1

    async def _check_title(self, title: str, exclude_id: int | None = None) -> None:
        """Titles name report columns, so they must be unique and not shadow a fixed column."""
        folded = title.casefold()
        if folded in {c.casefold() for c in REPORT_COLUMNS}:
            raise ValidationError(f"'{title}' is reserved for a report column")
        for option in await self.list_options():
            if option.id != exclude_id and option.title.casefold() == folded:
                raise ConflictError(f"A timesheet option titled '{title}' already exists")

    async def create(self, data: TimesheetOptionCreate) -> TimesheetOption:
        if data.key is not None and data.key.strip():
            key = data.key.strip().lower()
            if not is_valid_key(key):
                raise ValidationError("Option keys may only contain a-z, 0-9 and underscores")
        else:
            key = slugify_key(data.title)
            if not key:
                raise ValidationError("Could not derive a key from the option title")
        await self._check_title(data.title)
        if await self.get_by_key(key) is not None:
            raise ConflictError(f"A timesheet option with key '{key}' already exists")

        option = TimesheetOption(
            title=data.title,
            key=key,
            employee_text=(data.employee_text or "").strip() or data.title,
            display_order=await self._next_display_order(),
            active=data.active,
        )
        self.db.add(option)
        await self.db.commit()
        await self.db.refresh(option)
        logger.info("Created timesheet option %s (%s)", option.key, option.title)
        return option

    async def update(self, option_id: int, data: TimesheetOptionUpdate) -> TimesheetOption:
        option = await self.get(option_id)
        if data.title is not None:
            data.title = data.title.strip()
            if not data.title:
                raise ValidationError("Title must not be empty")
            await self._check_title(data.title, exclude_id=option_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(option, field, value)
        await self.db.commit()
        await self.db.refresh(option)
        logger.info("Updated timesheet option %d", option_id)
        return option

    async def delete(self, option_id: int) -> None:
        option = await self.get(option_id)
        await self.db.delete(option)
        await self.db.commit()
        logger.warning("Deleted timesheet option %s", option.key)

    async def toggle(self, option_id: int) -> TimesheetOption:
        option = await self.get(option_id)
        option.active = not option.active
        await self.db.commit()
        await self.db.refresh(option)
        logger.info("Timesheet option %s active -> %s", option.key, option.active)
        return option

    async def reorder(self, option_id: int, direction: str) -> list[TimesheetOption]:
        """Swap an option with its neighbour; no-op at either edge."""
        if direction not in ("up", "down"):
            raise ValidationError("Direction must be 'up' or 'down'")
        options = await self.list_options()
        index = next((i for i, o in enumerate(options) if o.id == option_id), None)
        if index is None:
            raise NotFoundError(f"Timesheet option {option_id} not found")

        target = index - 1 if direction == "up" else index + 1
        if 0 <= target < len(options):
            options[index], options[target] = options[target], options[index]
            for position, option in enumerate(options, start=1):
                option.display_order = position
            await self.db.commit()
        return options

    async def seed_defaults(self) -> int:
        """Insert the default checklist when the table is empty."""
        if await self.list_options():
            return 0
        for order, (title, key, employee_text) in enumerate(DEFAULT_OPTIONS, start=1):
            self.db.add(
                TimesheetOption(title=title, key=key, employee_text=employee_text, display_order=order)
            )
        await self.db.commit()
        logger.info("Seeded %d default timesheet options", len(DEFAULT_OPTIONS))
        return len(DEFAULT_OPTIONS)
