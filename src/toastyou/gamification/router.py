"""Gamification API endpoints: badge catalogue and earned badges."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.auth.dependencies import get_current_user
from toastyou.database import get_session
from toastyou.db.models import Badge, User, UserBadge
from toastyou.dependencies import get_redis_dep
from toastyou.gamification.badge_service import get_user_badges, list_badges, mark_badge_seen
from toastyou.gamification.evaluator import AchievementEvaluator
from toastyou.gamification.schemas import (
    AllBadgesResponse,
    BadgeCheckResponse,
    BadgeResponse,
    EarnedBadgeResponse,
    UserBadgesResponse,
)

router = APIRouter(prefix="/api/v1", tags=["Gamification"])


def badge_response(badge: Badge) -> BadgeResponse:
    return BadgeResponse(
        id=badge.id,
        name=badge.name,
        description=badge.description,
        icon=badge.icon,
        category=badge.category,
        requirement=badge.requirement,
        threshold=badge.threshold,
    )


def earned_badge_response(user_badge: UserBadge) -> EarnedBadgeResponse:
    return EarnedBadgeResponse(
        id=user_badge.id,
        badge=badge_response(user_badge.badge),
        seen=user_badge.seen,
        awarded_at=user_badge.awarded_at,
    )


# ── Public endpoints ──


@router.get("/badges", response_model=AllBadgesResponse)
async def get_badge_catalogue(db: AsyncSession = Depends(get_session)) -> AllBadgesResponse:
    """Get all badge definitions."""
    badges = await list_badges(db)
    return AllBadgesResponse(badges=[badge_response(b) for b in badges])


# ── Authenticated endpoints ──


@router.get("/users/me/badges", response_model=UserBadgesResponse)
async def get_my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserBadgesResponse:
    """Get earned badges, newest first."""
    earned = await get_user_badges(db, user.id)
    total_available = len(await list_badges(db))
    return UserBadgesResponse(
        earned=[earned_badge_response(ub) for ub in earned],
        total_available=total_available,
        total_earned=len(earned),
    )


@router.get("/users/me/badges/unseen", response_model=list[EarnedBadgeResponse])
async def get_my_unseen_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> list[EarnedBadgeResponse]:
    """Badges awarded since the client last acknowledged them."""
    unseen = await get_user_badges(db, user.id, unseen_only=True)
    return [earned_badge_response(ub) for ub in unseen]


@router.patch("/users/me/badges/{user_badge_id}/seen", response_model=EarnedBadgeResponse)
async def mark_my_badge_seen(
    user_badge_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> EarnedBadgeResponse:
    """Mark a badge award as seen. Idempotent."""
    user_badge = await mark_badge_seen(db, user.id, user_badge_id)
    return earned_badge_response(user_badge)


@router.post("/users/me/badges/check", response_model=BadgeCheckResponse)
async def check_my_badges(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
) -> BadgeCheckResponse:
    """Re-evaluate every badge metric for the current user."""
    awarded = await AchievementEvaluator(db, redis).evaluate(user.id, None)
    return BadgeCheckResponse(new_badges=[earned_badge_response(ub) for ub in awarded])
