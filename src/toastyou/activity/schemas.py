"""Pydantic response models for analytics endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ActivityResponse(BaseModel):
    id: int
    activity_type: str
    metadata: dict[str, Any] = {}
    created_at: datetime


class ActivityListResponse(BaseModel):
    activities: list[ActivityResponse]


class ActivityLogRequest(BaseModel):
    activity_type: str = Field(min_length=1, max_length=32)
    metadata: dict[str, Any] = {}


class PeriodCounts(BaseModel):
    notes: int
    toasts: int
    shares: int


class AnalyticsSummaryResponse(BaseModel):
    current_streak: int
    badges_count: int
    total_notes: int
    total_toasts: int
    weekly: PeriodCounts
    monthly: PeriodCounts
