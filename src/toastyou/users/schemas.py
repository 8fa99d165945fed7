"""Request/response schemas for user endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    id: int
    username: str
    name: str
    email: str | None = None
    timezone: str
    weekly_toast_day: int
    voice: str | None = None
    created_at: datetime


class SettingsUpdateRequest(BaseModel):
    timezone: str | None = Field(default=None, max_length=64)
    weekly_toast_day: int | None = Field(default=None, ge=0, le=6)
    voice: str | None = Field(default=None, max_length=64)
