"""Weekly toast scheduler: an arq cron job that generates due toasts.

Every run visits each user whose toast day is today in their own timezone
and generates the toast for the window that just closed. Generation is
idempotent, so overlapping runs on the same day are harmless.

Usage: arq toastyou.workers.toast_scheduler.WorkerSettings
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings
from sqlalchemy import select

from toastyou.config import get_settings
from toastyou.database import close_db, get_session_factory, init_db
from toastyou.db.models import User
from toastyou.errors import NoContentError
from toastyou.middleware.logging import setup_logging
from toastyou.toasts.generation import get_speech_synthesizer, get_text_generator
from toastyou.toasts.service import generate_toast, get_toast_for_week
from toastyou.toasts.week_utils import get_week_window, is_toast_day

logger = logging.getLogger(__name__)


async def scheduler_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize DB, Redis and generation clients on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url)

    ctx["redis"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )
    ctx["text_generator"] = get_text_generator(settings)
    ctx["speech_synthesizer"] = get_speech_synthesizer(settings)
    logger.info("Toast scheduler started")


async def scheduler_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    redis_client: aioredis.Redis | None = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Toast scheduler shut down")


async def generate_due_toasts(ctx: dict, now: datetime | None = None) -> dict[str, int]:  # type: ignore[type-arg]
    """Generate last week's toast for every user whose toast day is today.

    Each user gets a fresh session; one user's failure is logged and counted
    and never stops the run.
    """
    session_factory = get_session_factory()
    stats = {"generated": 0, "existing": 0, "no_content": 0, "failed": 0}

    async with session_factory() as db:
        users = list((await db.execute(select(User.id, User.timezone, User.weekly_toast_day))).all())

    for user_id, tz_name, toast_day in users:
        if not is_toast_day(tz_name, toast_day, now):
            continue
        week_start, week_end = get_week_window(tz_name, toast_day, now)

        async with session_factory() as db:
            try:
                if await get_toast_for_week(db, user_id, week_start) is not None:
                    stats["existing"] += 1
                    continue
                await generate_toast(
                    db,
                    ctx.get("redis"),
                    user_id,
                    week_start,
                    week_end,
                    text_generator=ctx["text_generator"],
                    speech_synthesizer=ctx["speech_synthesizer"],
                    now=now,
                )
                stats["generated"] += 1
            except NoContentError:
                stats["no_content"] += 1
            except Exception:
                await db.rollback()
                stats["failed"] += 1
                logger.exception("Scheduled toast failed for user %d week %s", user_id, week_start)

    logger.info(
        "Scheduled toast run: %d generated, %d existing, %d without notes, %d failed",
        stats["generated"],
        stats["existing"],
        stats["no_content"],
        stats["failed"],
    )
    return stats


def _schedule_minutes() -> set[int]:
    step = max(1, min(get_settings().toast_schedule_minutes, 60))
    return set(range(0, 60, step))


class WorkerSettings:
    """arq worker settings for the toast scheduler."""

    functions: list[Any] = [generate_due_toasts]
    cron_jobs = [cron(generate_due_toasts, minute=_schedule_minutes(), run_at_startup=False)]
    on_startup = scheduler_startup
    on_shutdown = scheduler_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().arq_redis_url)
    max_jobs = 1
    job_timeout = 1800
