"""Pydantic schemas for system settings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class SettingRead(BaseModel):
    id: int
    key: str
    value: str
    setting_type: str
    description: str | None
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class SettingsUpdate(BaseModel):
    settings: dict[str, str | bool | int]


class SettingsOverview(BaseModel):
    settings: list[SettingRead]
    grouped: dict[str, dict[str, str | bool | int]]


class InitializeResult(BaseModel):
    created: int
    total: int
