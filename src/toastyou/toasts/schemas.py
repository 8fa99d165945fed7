"""Request/response schemas for toast endpoints."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field


class ToastResponse(BaseModel):
    id: int
    content: str
    audio_url: str | None = None
    week_start_date: date
    note_ids: list[int] = []
    shared: bool
    share_code: str | None = None
    created_at: datetime


class ToastListResponse(BaseModel):
    toasts: list[ToastResponse]
    total: int


class ToastGenerateRequest(BaseModel):
    week_start: date | None = None
    week_end: date | None = None
    regenerate: bool = False


class ToastWindowResponse(BaseModel):
    week_start: date
    week_end: date
    next_toast_date: date
    timezone: str
    weekly_toast_day: int
    toast_day_name: str
    is_toast_day: bool


class SharedToastResponse(BaseModel):
    content: str
    audio_url: str | None = None
    week_start_date: date
    author_name: str
    reactions: dict[str, int] = {}


class ReactionRequest(BaseModel):
    emoji: str = Field(min_length=1, max_length=16)


class ReactionResponse(BaseModel):
    created: bool
    emoji: str


class VoiceResponse(BaseModel):
    slug: str
    name: str
    description: str


class CommentRequest(BaseModel):
    comment: str = Field(min_length=1, max_length=500)


class CommentResponse(BaseModel):
    id: int
    comment: str
    user_id: int
    author_name: str
    created_at: datetime
    updated_at: datetime | None = None


class CommentListResponse(BaseModel):
    comments: list[CommentResponse]
    total: int
