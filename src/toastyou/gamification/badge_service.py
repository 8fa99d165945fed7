"""Badge award service with duplicate prevention and notification."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.activity.service import BADGE_EARNED, log_activity
from toastyou.db.models import Badge, UserBadge, utcnow
from toastyou.errors import NotFoundError
from toastyou.notifications import BADGE_EARNED_CHANNEL, publish_event

logger = logging.getLogger(__name__)


async def list_badges(db: AsyncSession) -> list[Badge]:
    """All badge definitions in evaluation order."""
    result = await db.execute(select(Badge).order_by(Badge.category, Badge.threshold, Badge.id))
    return list(result.scalars().all())


async def get_awarded_badge_ids(db: AsyncSession, user_id: int) -> set[int]:
    result = await db.execute(select(UserBadge.badge_id).where(UserBadge.user_id == user_id))
    return set(result.scalars().all())


async def award_badge(
    db: AsyncSession,
    redis: object,
    user_id: int,
    badge: Badge,
    now: datetime | None = None,
) -> UserBadge | None:
    """Award a badge to a user.

    Returns the new UserBadge, or None if the user already had it.
    The insert runs in its own savepoint so a lost race leaves the
    surrounding transaction intact.
    """
    now = now or utcnow()
    user_badge = UserBadge(user_id=user_id, badge=badge, seen=False, awarded_at=now)

    try:
        async with db.begin_nested():
            db.add(user_badge)
    except IntegrityError:
        # Race condition: badge already awarded
        logger.info("Badge %s already awarded to user %d", badge.requirement, user_id)
        return None

    await log_activity(
        db,
        user_id,
        BADGE_EARNED,
        {"badge_id": badge.id, "badge_name": badge.name},
        now=now,
    )
    await publish_event(
        redis,
        BADGE_EARNED_CHANNEL,
        {
            "user_id": user_id,
            "user_badge_id": user_badge.id,
            "badge_id": badge.id,
            "badge_name": badge.name,
            "icon": badge.icon,
            "category": badge.category,
        },
    )
    return user_badge


async def get_user_badges(db: AsyncSession, user_id: int, *, unseen_only: bool = False) -> list[UserBadge]:
    """Earned badges, newest first."""
    stmt = select(UserBadge).where(UserBadge.user_id == user_id)
    if unseen_only:
        stmt = stmt.where(UserBadge.seen.is_(False))
    stmt = stmt.order_by(UserBadge.awarded_at.desc(), UserBadge.id.desc())
    result = await db.execute(stmt)
    return list(result.unique().scalars().all())


async def mark_badge_seen(db: AsyncSession, user_id: int, user_badge_id: int) -> UserBadge:
    """Flip seen to true. Marking an already-seen badge is a no-op.

    Raises NotFoundError if the award does not exist or belongs to someone else.
    """
    result = await db.execute(
        select(UserBadge).where(UserBadge.id == user_badge_id, UserBadge.user_id == user_id)
    )
    user_badge = result.unique().scalar_one_or_none()
    if user_badge is None:
        msg = f"Badge award {user_badge_id} not found"
        raise NotFoundError(msg)
    if not user_badge.seen:
        user_badge.seen = True
        await db.commit()
    return user_badge
