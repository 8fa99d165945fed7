"""Achievement evaluator: recomputes activity metrics and awards newly qualified badges."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.db.models import Badge, Note, Toast, ToastReaction, User, UserBadge, utcnow
from toastyou.gamification.badge_service import award_badge, get_awarded_badge_ids, list_badges
from toastyou.gamification.metrics import (
    ActivitySnapshot,
    MetricKind,
    compute_metric,
    metrics_for_activity,
    parse_requirement,
)
from toastyou.toasts.week_utils import local_today, resolve_timezone

logger = logging.getLogger(__name__)


class AchievementEvaluator:
    """Evaluates badge requirements for user activity events."""

    def __init__(self, db: AsyncSession, redis: object) -> None:
        self.db = db
        self.redis = redis
        self._badge_cache: list[tuple[Badge, MetricKind]] | None = None

    async def _load_badges(self) -> list[tuple[Badge, MetricKind]]:
        """Load and cache badge definitions with their parsed metric kind.

        Sorted by (category, threshold) so a backfill awards every intermediate tier.
        """
        if self._badge_cache is None:
            badges = []
            for badge in await list_badges(self.db):
                try:
                    badges.append((badge, parse_requirement(badge.requirement)))
                except ValueError:
                    logger.warning("Skipping badge %d with unknown requirement %r", badge.id, badge.requirement)
            self._badge_cache = badges
        return self._badge_cache

    async def build_snapshot(
        self,
        user: User,
        kinds: frozenset[MetricKind],
        now: datetime | None = None,
    ) -> ActivitySnapshot:
        """Read only the counters the requested metrics need."""
        tz = resolve_timezone(user.timezone)
        snapshot = ActivitySnapshot(today=local_today(tz, now), tz=tz)

        if kinds & {MetricKind.FIRST_NOTE, MetricKind.NOTES, MetricKind.STREAK}:
            result = await self.db.execute(select(Note.created_at).where(Note.user_id == user.id))
            snapshot.note_times = list(result.scalars().all())

        if MetricKind.TOASTS in kinds:
            result = await self.db.execute(
                select(func.count()).select_from(Toast).where(Toast.user_id == user.id)
            )
            snapshot.toast_count = int(result.scalar_one())

        # Shares and reactions come from the toast tables, not the activity log
        if MetricKind.SHARES in kinds:
            result = await self.db.execute(
                select(func.count()).select_from(Toast).where(Toast.user_id == user.id, Toast.shared.is_(True))
            )
            snapshot.share_count = int(result.scalar_one())

        if MetricKind.REACTIONS in kinds:
            result = await self.db.execute(
                select(func.count())
                .select_from(ToastReaction)
                .join(Toast, ToastReaction.toast_id == Toast.id)
                .where(Toast.user_id == user.id)
            )
            snapshot.reaction_count = int(result.scalar_one())

        return snapshot

    async def evaluate(
        self,
        user_id: int,
        activity_type: str | None,
        metadata: dict[str, Any] | None = None,
        *,
        now: datetime | None = None,
    ) -> list[UserBadge]:
        """Evaluate all badges relevant to an activity.

        Returns the newly awarded badges (may be empty). Commits when anything was awarded.
        """
        user = await self.db.get(User, user_id)
        if user is None:
            return []

        now = now or utcnow()
        kinds = metrics_for_activity(activity_type)
        candidates = [(b, k) for b, k in await self._load_badges() if k in kinds]
        if not candidates:
            return []

        owned = await get_awarded_badge_ids(self.db, user_id)
        pending = [(b, k) for b, k in candidates if b.id not in owned]
        if not pending:
            return []

        snapshot = await self.build_snapshot(user, kinds, now)
        values = {k: compute_metric(k, snapshot) for k in {k for _, k in pending}}

        awarded: list[UserBadge] = []
        for badge, kind in pending:
            if values[kind] < badge.threshold:
                continue
            user_badge = await award_badge(self.db, self.redis, user_id, badge, now=now)
            if user_badge is not None:
                awarded.append(user_badge)

        if awarded:
            await self.db.commit()
            logger.info(
                "Awarded badges %s to user %d (activity=%s, metadata=%s)",
                [ub.badge.requirement for ub in awarded],
                user_id,
                activity_type,
                metadata or {},
            )
        return awarded
