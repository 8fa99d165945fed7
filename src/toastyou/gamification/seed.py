"""Badge seed data. Requirement keys map onto MetricKind."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.db.models import Badge
from toastyou.gamification.metrics import parse_requirement

logger = logging.getLogger(__name__)

BADGE_SEED_DATA: list[dict] = [
    # Achievements
    {
        "requirement": "first_note",
        "name": "First Reflection",
        "description": "Saved your first daily note!",
        "icon": "\U0001f4dc",
        "category": "achievements",
        "threshold": 1,
    },
    {
        "requirement": "notes_10",
        "name": "Reflective Spirit",
        "description": "Saved 10 daily notes",
        "icon": "✍️",
        "category": "achievements",
        "threshold": 10,
    },
    {
        "requirement": "notes_50",
        "name": "Storyteller",
        "description": "Saved 50 daily notes",
        "icon": "\U0001f4da",
        "category": "achievements",
        "threshold": 50,
    },
    # Streaks
    {
        "requirement": "streak_3",
        "name": "Warming Up",
        "description": "Reflected three days in a row",
        "icon": "\U0001f525",
        "category": "streak",
        "threshold": 3,
    },
    {
        "requirement": "streak_7",
        "name": "Week Warrior",
        "description": "Reflected every day for a week",
        "icon": "\U0001f4c5",
        "category": "streak",
        "threshold": 7,
    },
    {
        "requirement": "streak_10",
        "name": "Ten Day Flame",
        "description": "Reflected ten days in a row",
        "icon": "✨",
        "category": "streak",
        "threshold": 10,
    },
    {
        "requirement": "streak_30",
        "name": "Habit Formed",
        "description": "Reflected every day for thirty days",
        "icon": "\U0001f3c6",
        "category": "streak",
        "threshold": 30,
    },
    # Toasts
    {
        "requirement": "toasts_1",
        "name": "First Toast",
        "description": "Received your first weekly toast",
        "icon": "\U0001f942",
        "category": "toasts",
        "threshold": 1,
    },
    {
        "requirement": "toasts_4",
        "name": "Month of Cheers",
        "description": "Received four weekly toasts",
        "icon": "\U0001f37e",
        "category": "toasts",
        "threshold": 4,
    },
    # Social
    {
        "requirement": "shares_1",
        "name": "Spread the Cheer",
        "description": "Shared a toast with friends",
        "icon": "\U0001f4e3",
        "category": "social",
        "threshold": 1,
    },
    {
        "requirement": "shares_10",
        "name": "Toastmaster",
        "description": "Shared 10 toasts",
        "icon": "\U0001f3a4",
        "category": "social",
        "threshold": 10,
    },
    {
        "requirement": "reactions_1",
        "name": "Heard You",
        "description": "Received your first reaction",
        "icon": "\U0001f44f",
        "category": "social",
        "threshold": 1,
    },
    {
        "requirement": "reactions_25",
        "name": "Crowd Favourite",
        "description": "Received 25 reactions on shared toasts",
        "icon": "\U0001f496",
        "category": "social",
        "threshold": 25,
    },
]


async def seed_badges(db: AsyncSession, data: list[dict] | None = None) -> int:
    """Upsert badge definitions by requirement key. Returns number of badges seeded."""
    rows = BADGE_SEED_DATA if data is None else data
    existing = {b.requirement: b for b in (await db.execute(select(Badge))).scalars()}

    seeded = 0
    for badge_data in rows:
        parse_requirement(badge_data["requirement"])
        badge = existing.get(badge_data["requirement"])
        if badge is None:
            db.add(Badge(**badge_data))
        else:
            for key, value in badge_data.items():
                setattr(badge, key, value)
        seeded += 1

    await db.commit()
    logger.info("Seeded %d badge definitions", seeded)
    return seeded
