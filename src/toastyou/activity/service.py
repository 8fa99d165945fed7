"""Append-only user activity log."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.db.models import UserActivity, utcnow

NOTE_CREATE = "note-create"
TOAST_GENERATED = "toast-generated"
TOAST_SHARE = "toast-share"
REACTION_RECEIVED = "reaction-received"
BADGE_EARNED = "badge-earned"
PAGE_VIEW = "page-view"

# Written by the services themselves; never accepted from a client
SERVER_ACTIVITY_TYPES = frozenset({NOTE_CREATE, TOAST_GENERATED, TOAST_SHARE, REACTION_RECEIVED, BADGE_EARNED})
CLIENT_ACTIVITY_TYPES = frozenset({PAGE_VIEW})


async def log_activity(
    db: AsyncSession,
    user_id: int,
    activity_type: str,
    metadata: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> UserActivity:
    """Append an activity row. Flushes but does not commit."""
    activity = UserActivity(
        user_id=user_id,
        activity_type=activity_type,
        activity_metadata=metadata or {},
        created_at=now or utcnow(),
    )
    db.add(activity)
    await db.flush()
    return activity


async def get_user_activity(
    db: AsyncSession,
    user_id: int,
    activity_type: str | None = None,
    limit: int = 100,
) -> list[UserActivity]:
    """Most recent activity first, optionally filtered by type."""
    stmt = select(UserActivity).where(UserActivity.user_id == user_id)
    if activity_type:
        stmt = stmt.where(UserActivity.activity_type == activity_type)
    stmt = stmt.order_by(UserActivity.created_at.desc(), UserActivity.id.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_activity(
    db: AsyncSession,
    user_id: int,
    activity_type: str,
    start: datetime | None = None,
    end: datetime | None = None,
) -> int:
    """Count activity rows of one type, optionally within [start, end)."""
    stmt = select(func.count()).select_from(UserActivity).where(
        UserActivity.user_id == user_id,
        UserActivity.activity_type == activity_type,
    )
    if start is not None:
        stmt = stmt.where(UserActivity.created_at >= start)
    if end is not None:
        stmt = stmt.where(UserActivity.created_at < end)
    result = await db.execute(stmt)
    return int(result.scalar_one())
