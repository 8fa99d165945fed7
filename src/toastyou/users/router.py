"""User router: profile and toast preferences."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.auth.dependencies import get_current_user
from toastyou.database import get_session
from toastyou.db.models import User
from toastyou.users.schemas import SettingsUpdateRequest, UserResponse
from toastyou.users.service import update_settings

router = APIRouter(prefix="/api/v1/users", tags=["Users"])


def _user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        name=user.name,
        email=user.email,
        timezone=user.timezone,
        weekly_toast_day=user.weekly_toast_day,
        voice=user.voice,
        created_at=user.created_at,
    )


@router.get("/me", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    """Get own profile."""
    return _user_response(user)


@router.patch("/me/settings", response_model=UserResponse)
async def update_my_settings(
    body: SettingsUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> UserResponse:
    """Update timezone, weekly toast day or voice."""
    user = await update_settings(
        db,
        user,
        timezone=body.timezone,
        weekly_toast_day=body.weekly_toast_day,
        voice=body.voice,
    )
    return _user_response(user)
