"""User lookup and settings."""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.db.models import User
from toastyou.toasts.voices import VOICE_CATALOGUE
from toastyou.toasts.week_utils import resolve_timezone


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def create_user(
    db: AsyncSession,
    username: str,
    name: str,
    email: str | None = None,
    timezone: str = "UTC",
    weekly_toast_day: int = 0,
) -> User:
    """Create a user row. Account provisioning itself lives with the auth provider."""
    user = User(
        username=username,
        name=name,
        email=email,
        timezone=timezone,
        weekly_toast_day=weekly_toast_day,
    )
    db.add(user)
    await db.commit()
    return user


async def update_settings(
    db: AsyncSession,
    user: User,
    *,
    timezone: str | None = None,
    weekly_toast_day: int | None = None,
    voice: str | None = None,
) -> User:
    """Update toast preferences. Raises ValueError for unknown timezones or voices."""
    if timezone is not None:
        if resolve_timezone(timezone).key != timezone:
            msg = f"Unknown timezone: {timezone}"
            raise ValueError(msg)
        user.timezone = timezone
    if weekly_toast_day is not None:
        if not 0 <= weekly_toast_day <= 6:
            msg = "weekly_toast_day must be between 0 (Sunday) and 6 (Saturday)"
            raise ValueError(msg)
        user.weekly_toast_day = weekly_toast_day
    if voice is not None:
        if voice not in VOICE_CATALOGUE:
            msg = f"Unknown voice: {voice}"
            raise ValueError(msg)
        user.voice = voice
    await db.commit()
    return user
