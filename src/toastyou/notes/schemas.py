"""Request/response schemas for note endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from toastyou.gamification.schemas import EarnedBadgeResponse


class NoteCreateRequest(BaseModel):
    content: str | None = Field(default=None, max_length=10_000)
    audio_url: str | None = Field(default=None, max_length=2048)


class NoteUpdateRequest(BaseModel):
    content: str | None = Field(default=None, max_length=10_000)
    audio_url: str | None = Field(default=None, max_length=2048)


class NoteResponse(BaseModel):
    id: int
    content: str | None = None
    audio_url: str | None = None
    created_at: datetime


class NoteCreateResponse(BaseModel):
    note: NoteResponse
    new_badges: list[EarnedBadgeResponse] = []


class NoteListResponse(BaseModel):
    notes: list[NoteResponse]
    total: int
