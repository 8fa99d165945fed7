"""Weekly toast aggregation: select a week's notes, generate prose and audio, persist once."""

from __future__ import annotations

import asyncio
import logging
import secrets
from datetime import date, datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.activity.service import REACTION_RECEIVED, TOAST_GENERATED, TOAST_SHARE, log_activity
from toastyou.config import get_settings
from toastyou.db.models import Note, Toast, ToastReaction, User, utcnow
from toastyou.errors import DuplicatePeriodError, GenerationFailedError, NoContentError, NotFoundError
from toastyou.gamification.evaluator import AchievementEvaluator
from toastyou.notifications import TOAST_READY_CHANNEL, publish_event
from toastyou.toasts.generation import SpeechSynthesizer, TextGenerator
from toastyou.toasts.prompt import SYSTEM_PROMPT, compose_prompt
from toastyou.toasts.week_utils import resolve_timezone, week_bounds_utc

logger = logging.getLogger(__name__)


async def get_user(db: AsyncSession, user_id: int) -> User:
    user = await db.get(User, user_id)
    if user is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)
    return user


async def get_toast_for_week(db: AsyncSession, user_id: int, week_start: date) -> Toast | None:
    """The toast for (user, week_start), if one exists."""
    result = await db.execute(
        select(Toast).where(Toast.user_id == user_id, Toast.week_start_date == week_start)
    )
    return result.scalar_one_or_none()


async def get_week_notes(db: AsyncSession, user_id: int, start: datetime, end: datetime) -> list[Note]:
    """Notes with created_at in [start, end), oldest first."""
    result = await db.execute(
        select(Note)
        .where(Note.user_id == user_id, Note.created_at >= start, Note.created_at < end)
        .order_by(Note.created_at, Note.id)
    )
    return list(result.scalars().all())


async def insert_toast(db: AsyncSession, toast: Toast) -> Toast:
    """Insert a toast in its own savepoint.

    Raises DuplicatePeriodError when (user_id, week_start_date) is already taken.
    """
    try:
        async with db.begin_nested():
            db.add(toast)
    except IntegrityError as exc:
        raise DuplicatePeriodError(toast.user_id, toast.week_start_date) from exc
    return toast


async def _generate_text(text_generator: TextGenerator, prompt: str, timeout: float) -> str:
    try:
        return await asyncio.wait_for(text_generator.generate(prompt, system=SYSTEM_PROMPT), timeout)
    except GenerationFailedError:
        raise
    except TimeoutError as exc:
        raise GenerationFailedError(f"Text generation timed out after {timeout}s", cause=exc) from exc
    except Exception as exc:
        raise GenerationFailedError(f"Text generation failed: {exc}", cause=exc) from exc


async def _synthesize_audio(
    synthesizer: SpeechSynthesizer, text: str, voice: str | None, timeout: float, user_id: int
) -> str | None:
    """Audio is optional: any failure leaves the toast text-only."""
    try:
        return await asyncio.wait_for(synthesizer.synthesize(text, voice), timeout)
    except Exception:
        logger.warning("Speech synthesis failed for user %d, saving text-only toast", user_id, exc_info=True)
        return None


async def generate_toast(
    db: AsyncSession,
    redis: object,
    user_id: int,
    week_start: date,
    week_end: date,
    *,
    text_generator: TextGenerator,
    speech_synthesizer: SpeechSynthesizer,
    regenerate: bool = False,
    now: datetime | None = None,
) -> Toast:
    """Generate (or return) the toast for one user and one week.

    week_start/week_end are calendar dates in the user's timezone; notes are
    selected from [week_start 00:00, week_end 00:00) local time. If a toast
    already exists for week_start it is returned untouched unless regenerate
    is set, in which case it is overwritten in place.

    Raises NoContentError when the week has no notes and
    GenerationFailedError when text generation fails; in both cases nothing
    is written.
    """
    settings = get_settings()
    user = await get_user(db, user_id)
    start, end = week_bounds_utc(week_start, week_end, resolve_timezone(user.timezone))

    existing = await get_toast_for_week(db, user_id, week_start)
    if existing is not None and not regenerate:
        return existing

    notes = await get_week_notes(db, user_id, start, end)
    if not notes:
        raise NoContentError(user_id, week_start)

    prompt = compose_prompt(notes, user.name)
    content = await _generate_text(text_generator, prompt, settings.generation_timeout_seconds)
    voice = user.voice or settings.default_voice
    audio_url = await _synthesize_audio(
        speech_synthesizer, content, voice, settings.synthesis_timeout_seconds, user_id
    )

    now = now or utcnow()
    note_ids = [n.id for n in notes]
    if existing is not None:
        existing.content = content
        existing.audio_url = audio_url
        existing.note_ids = note_ids
        existing.created_at = now
        toast = existing
    else:
        try:
            toast = await insert_toast(
                db,
                Toast(
                    user_id=user_id,
                    content=content,
                    audio_url=audio_url,
                    week_start_date=week_start,
                    note_ids=note_ids,
                    created_at=now,
                ),
            )
        except DuplicatePeriodError:
            winner = await get_toast_for_week(db, user_id, week_start)
            if winner is None:
                raise
            logger.info("Concurrent toast generation for user %d week %s; keeping existing", user_id, week_start)
            return winner

    await log_activity(
        db,
        user_id,
        TOAST_GENERATED,
        {"toast_id": toast.id, "week_start": week_start.isoformat(), "regenerated": existing is not None},
        now=now,
    )
    await db.commit()
    logger.info("Generated toast %d for user %d week %s (%d notes)", toast.id, user_id, week_start, len(notes))

    await AchievementEvaluator(db, redis).evaluate(user_id, TOAST_GENERATED, {"toast_id": toast.id}, now=now)
    await publish_event(
        redis,
        TOAST_READY_CHANNEL,
        {"user_id": user_id, "toast_id": toast.id, "week_start": week_start.isoformat()},
    )
    return toast


async def list_toasts(db: AsyncSession, user_id: int) -> list[Toast]:
    result = await db.execute(
        select(Toast).where(Toast.user_id == user_id).order_by(Toast.week_start_date.desc())
    )
    return list(result.scalars().all())


async def get_toast(db: AsyncSession, user_id: int, toast_id: int) -> Toast:
    """Fetch a toast owned by user_id. Raises NotFoundError otherwise."""
    toast = await db.get(Toast, toast_id)
    if toast is None or toast.user_id != user_id:
        msg = f"Toast {toast_id} not found"
        raise NotFoundError(msg)
    return toast


async def share_toast(db: AsyncSession, redis: object, user_id: int, toast_id: int) -> Toast:
    """Mark a toast shared and give it a share code. Sharing twice is a no-op."""
    toast = await get_toast(db, user_id, toast_id)
    if toast.shared and toast.share_code:
        return toast

    toast.shared = True
    toast.share_code = secrets.token_urlsafe(12)
    await log_activity(db, user_id, TOAST_SHARE, {"toast_id": toast.id})
    await db.commit()

    await AchievementEvaluator(db, redis).evaluate(user_id, TOAST_SHARE, {"toast_id": toast.id})
    return toast


async def get_shared_toast(db: AsyncSession, share_code: str) -> Toast:
    result = await db.execute(select(Toast).where(Toast.share_code == share_code, Toast.shared.is_(True)))
    toast = result.scalar_one_or_none()
    if toast is None:
        msg = "Shared toast not found"
        raise NotFoundError(msg)
    return toast


async def add_reaction(
    db: AsyncSession, redis: object, reactor_id: int, share_code: str, emoji: str
) -> tuple[ToastReaction | None, bool]:
    """React to a shared toast. Returns (reaction, created); repeating a reaction is a no-op."""
    toast = await get_shared_toast(db, share_code)
    if toast.user_id == reactor_id:
        msg = "You cannot react to your own toast"
        raise ValueError(msg)

    reaction = ToastReaction(toast_id=toast.id, user_id=reactor_id, emoji=emoji)
    try:
        async with db.begin_nested():
            db.add(reaction)
    except IntegrityError:
        return None, False

    await log_activity(
        db,
        toast.user_id,
        REACTION_RECEIVED,
        {"toast_id": toast.id, "from_user_id": reactor_id, "emoji": emoji},
    )
    await db.commit()

    await AchievementEvaluator(db, redis).evaluate(toast.user_id, REACTION_RECEIVED, {"toast_id": toast.id})
    return reaction, True


async def get_reaction_counts(db: AsyncSession, toast_id: int) -> dict[str, int]:
    """Reaction tallies per emoji for one toast."""
    result = await db.execute(
        select(ToastReaction.emoji, func.count())
        .where(ToastReaction.toast_id == toast_id)
        .group_by(ToastReaction.emoji)
    )
    return {emoji: int(count) for emoji, count in result.all()}
