"""Analytics summary: streak, badge count and period activity counts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.activity.schemas import AnalyticsSummaryResponse, PeriodCounts
from toastyou.activity.service import TOAST_SHARE, count_activity
from toastyou.db.models import Note, Toast, User, UserBadge
from toastyou.gamification.metrics import compute_streak
from toastyou.toasts.week_utils import get_month_boundaries, get_week_boundaries, local_today, resolve_timezone


async def _count(db: AsyncSession, stmt: Select[tuple[int]]) -> int:
    return int((await db.execute(stmt)).scalar_one())


async def _period_counts(db: AsyncSession, user_id: int, start: datetime, end: datetime) -> PeriodCounts:
    """Notes and toasts are counted from their own rows, so a regenerated toast counts once."""
    notes = await _count(
        db,
        select(func.count())
        .select_from(Note)
        .where(Note.user_id == user_id, Note.created_at >= start, Note.created_at < end),
    )
    toasts = await _count(
        db,
        select(func.count())
        .select_from(Toast)
        .where(Toast.user_id == user_id, Toast.created_at >= start, Toast.created_at < end),
    )
    shares = await count_activity(db, user_id, TOAST_SHARE, start, end)
    return PeriodCounts(notes=notes, toasts=toasts, shares=shares)


async def build_summary(db: AsyncSession, user: User, now: datetime | None = None) -> AnalyticsSummaryResponse:
    tz = resolve_timezone(user.timezone)
    note_times = (await db.execute(select(Note.created_at).where(Note.user_id == user.id))).scalars().all()

    return AnalyticsSummaryResponse(
        current_streak=compute_streak(note_times, tz, local_today(tz, now)),
        badges_count=await _count(
            db, select(func.count()).select_from(UserBadge).where(UserBadge.user_id == user.id)
        ),
        total_notes=len(note_times),
        total_toasts=await _count(db, select(func.count()).select_from(Toast).where(Toast.user_id == user.id)),
        weekly=await _period_counts(db, user.id, *get_week_boundaries(user.timezone, now)),
        monthly=await _period_counts(db, user.id, *get_month_boundaries(user.timezone, now)),
    )
