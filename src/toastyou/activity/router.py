"""Analytics endpoints: activity log and summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.activity.schemas import (
    ActivityListResponse,
    ActivityLogRequest,
    ActivityResponse,
    AnalyticsSummaryResponse,
)
from toastyou.activity.service import (
    CLIENT_ACTIVITY_TYPES,
    SERVER_ACTIVITY_TYPES,
    get_user_activity,
    log_activity,
)
from toastyou.activity.summary import build_summary
from toastyou.auth.dependencies import get_current_user
from toastyou.database import get_session
from toastyou.db.models import User, UserActivity

router = APIRouter(prefix="/api/v1/analytics", tags=["Analytics"])


def _activity_response(activity: UserActivity) -> ActivityResponse:
    return ActivityResponse(
        id=activity.id,
        activity_type=activity.activity_type,
        metadata=activity.activity_metadata or {},
        created_at=activity.created_at,
    )


@router.get("/activity", response_model=ActivityListResponse)
async def list_my_activity(
    activity_type: str | None = Query(default=None, alias="type"),
    limit: int = Query(default=100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ActivityListResponse:
    activities = await get_user_activity(db, user.id, activity_type, limit)
    return ActivityListResponse(activities=[_activity_response(a) for a in activities])


@router.get("/summary", response_model=AnalyticsSummaryResponse)
async def get_my_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> AnalyticsSummaryResponse:
    """Current streak, badge count and this week's and month's activity."""
    return await build_summary(db, user)


@router.post("/log", response_model=ActivityResponse, status_code=201)
async def log_my_activity(
    body: ActivityLogRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ActivityResponse:
    """Append a client-side activity such as a page view.

    Types the server records itself (notes, toasts, shares, reactions, badges)
    are rejected so they can only come from the real action.
    """
    if body.activity_type in SERVER_ACTIVITY_TYPES:
        msg = f"Activity type {body.activity_type} is recorded by the server"
        raise ValueError(msg)
    if body.activity_type not in CLIENT_ACTIVITY_TYPES:
        msg = f"Unknown activity type: {body.activity_type}"
        raise ValueError(msg)
    activity = await log_activity(db, user.id, body.activity_type, body.metadata)
    await db.commit()
    return _activity_response(activity)
