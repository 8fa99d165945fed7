"""Pydantic response models for gamification endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel


class BadgeResponse(BaseModel):
    id: int
    name: str
    description: str
    icon: str | None = None
    category: str
    requirement: str
    threshold: int


class AllBadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class EarnedBadgeResponse(BaseModel):
    id: int
    badge: BadgeResponse
    seen: bool
    awarded_at: datetime


class UserBadgesResponse(BaseModel):
    earned: list[EarnedBadgeResponse]
    total_available: int
    total_earned: int


class BadgeCheckResponse(BaseModel):
    new_badges: list[EarnedBadgeResponse]
