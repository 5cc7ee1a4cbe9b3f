"""
System settings service: typed access to the key/value table.

Values are stored as text; ``setting_type`` decides how they are parsed.
Accessors fall back to the built-in defaults when a key is missing or
holds a malformed value, so the rest of the app never has to care whether
``initialize`` has been run.
"""

from __future__ import annotations

import logging
from datetime import datetime, time
from typing import NamedTuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pontaj.core.enums import SettingType
from pontaj.core.exceptions import ValidationError
from pontaj.models.system_setting import SystemSetting

logger = logging.getLogger(__name__)


class SettingDefault(NamedTuple):
    value: str
    setting_type: SettingType
    description: str
    group: str


DEFAULT_SETTINGS: dict[str, SettingDefault] = {
    "pontaj_cutoff_time": SettingDefault(
        "22:00", SettingType.TIME, "Latest time employees may submit today's timesheet", "timesheet"
    ),
    "allow_weekend_pontaj": SettingDefault(
        "false", SettingType.BOOLEAN, "Allow timesheet submissions on weekends", "timesheet"
    ),
    "require_daily_notes": SettingDefault(
        "false", SettingType.BOOLEAN, "Require notes on admin timesheet edits", "timesheet"
    ),
    "auto_approve_leave": SettingDefault(
        "false", SettingType.BOOLEAN, "Approve new leave requests automatically", "leave"
    ),
    "max_leave_days_per_year": SettingDefault(
        "25", SettingType.INTEGER, "Yearly leave allowance in work days", "leave"
    ),
    "email_notifications": SettingDefault(
        "true", SettingType.BOOLEAN, "Send email notifications", "notifications"
    ),
    "sms_notifications": SettingDefault(
        "false", SettingType.BOOLEAN, "Send SMS notifications", "notifications"
    ),
    "password_min_length": SettingDefault(
        "8", SettingType.INTEGER, "Minimum password length", "security"
    ),
    "require_password_change": SettingDefault(
        "false", SettingType.BOOLEAN, "Force a password change on first login", "security"
    ),
    "session_timeout": SettingDefault(
        "480", SettingType.INTEGER, "Session timeout in minutes", "security"
    ),
    "two_factor_auth": SettingDefault(
        "false", SettingType.BOOLEAN, "Require two-factor authentication", "security"
    ),
    "allow_remote_access": SettingDefault(
        "true", SettingType.BOOLEAN, "Allow access from outside the office network", "security"
    ),
}

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


# ── Parsing ─────────────────────────────────────────────────────────
def parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {raw!r}")


def parse_time(raw: str) -> time:
    return datetime.strptime(raw.strip(), "%H:%M").time()


def parse_value(raw: str, setting_type: str) -> bool | int | str:
    """Convert stored text into its typed value; raises ValueError."""
    if setting_type == SettingType.BOOLEAN:
        return parse_bool(raw)
    if setting_type == SettingType.INTEGER:
        return int(raw.strip())
    if setting_type == SettingType.TIME:
        return parse_time(raw).strftime("%H:%M")
    return raw


def serialise_value(value: object, setting_type: str) -> str:
    """Validate an incoming value and turn it into stored text."""
    if isinstance(value, bool):
        raw = "true" if value else "false"
    else:
        raw = str(value).strip()
    try:
        typed = parse_value(raw, setting_type)
    except ValueError as exc:
        raise ValidationError(f"Invalid {setting_type} value: {value!r}") from exc
    if isinstance(typed, bool):
        return "true" if typed else "false"
    return str(typed)


class SettingsService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_settings(self) -> list[SystemSetting]:
        result = await self.db.execute(select(SystemSetting).order_by(SystemSetting.key))
        return list(result.scalars().all())

    async def get(self, key: str) -> SystemSetting | None:
        result = await self.db.execute(select(SystemSetting).where(SystemSetting.key == key))
        return result.scalar_one_or_none()

    async def _raw(self, key: str) -> str | None:
        setting = await self.get(key)
        if setting is not None:
            return setting.value
        default = DEFAULT_SETTINGS.get(key)
        return default.value if default else None

    # ── Typed accessors ─────────────────────────────────────────────
    async def get_bool(self, key: str, default: bool = False) -> bool:
        raw = await self._raw(key)
        if raw is None:
            return default
        try:
            return parse_bool(raw)
        except ValueError:
            logger.warning("Setting %s holds a malformed boolean: %r", key, raw)
            return default

    async def get_int(self, key: str, default: int = 0) -> int:
        raw = await self._raw(key)
        if raw is None:
            return default
        try:
            return int(raw.strip())
        except ValueError:
            logger.warning("Setting %s holds a malformed integer: %r", key, raw)
            return default

    async def get_str(self, key: str, default: str = "") -> str:
        raw = await self._raw(key)
        return default if raw is None else raw

    async def get_time(self, key: str, default: time | None = None) -> time | None:
        raw = await self._raw(key)
        if raw is None:
            return default
        try:
            return parse_time(raw)
        except ValueError:
            logger.warning("Setting %s holds a malformed time: %r", key, raw)
            return default

    async def grouped(self) -> dict[str, dict[str, bool | int | str]]:
        """Typed values grouped by settings page section."""
        stored = {s.key: s for s in await self.list_settings()}
        groups: dict[str, dict[str, bool | int | str]] = {}
        for key, default in DEFAULT_SETTINGS.items():
            row = stored.get(key)
            raw = row.value if row else default.value
            try:
                value = parse_value(raw, default.setting_type)
            except ValueError:
                value = parse_value(default.value, default.setting_type)
            groups.setdefault(default.group, {})[key] = value
        for key, row in stored.items():
            if key not in DEFAULT_SETTINGS:
                try:
                    value = parse_value(row.value, row.setting_type)
                except ValueError:
                    value = row.value
                groups.setdefault("other", {})[key] = value
        return groups

    # ── Writes ──────────────────────────────────────────────────────
    async def initialize(self, overwrite: bool = False) -> int:
        """Insert every default setting that is missing. Returns rows created."""
        stored = {s.key: s for s in await self.list_settings()}
        created = 0
        for key, default in DEFAULT_SETTINGS.items():
            row = stored.get(key)
            if row is None:
                self.db.add(
                    SystemSetting(
                        key=key,
                        value=default.value,
                        setting_type=default.setting_type.value,
                        description=default.description,
                    )
                )
                created += 1
            elif overwrite:
                row.value = default.value
                row.setting_type = default.setting_type.value
        await self.db.commit()
        if created:
            logger.info("Initialised %d default system settings", created)
        return created

    async def update_many(self, values: dict[str, object]) -> list[SystemSetting]:
        if not values:
            raise ValidationError("No settings provided")
        stored = {s.key: s for s in await self.list_settings()}
        for key, value in values.items():
            row = stored.get(key)
            default = DEFAULT_SETTINGS.get(key)
            if row is not None:
                setting_type = row.setting_type
            elif default is not None:
                setting_type = default.setting_type.value
            else:
                setting_type = SettingType.STRING.value
            text = serialise_value(value, setting_type)
            if row is None:
                row = SystemSetting(
                    key=key,
                    value=text,
                    setting_type=setting_type,
                    description=default.description if default else None,
                )
                self.db.add(row)
                stored[key] = row
            else:
                row.value = text
        await self.db.commit()
        logger.info("Updated system settings: %s", ", ".join(sorted(values)))
        return await self.list_settings()
