"""Daily reflection notes."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.activity.service import NOTE_CREATE, log_activity
from toastyou.db.models import Note, UserBadge, utcnow
from toastyou.errors import NotFoundError
from toastyou.gamification.evaluator import AchievementEvaluator

logger = logging.getLogger(__name__)


async def create_note(
    db: AsyncSession,
    redis: object,
    user_id: int,
    content: str | None = None,
    audio_url: str | None = None,
    now: datetime | None = None,
) -> tuple[Note, list[UserBadge]]:
    """Save a note, log the activity and evaluate badges.

    Returns the note and any badges it unlocked.
    """
    content = content.strip() if content else None
    if not content and not audio_url:
        msg = "A note needs text or audio"
        raise ValueError(msg)

    now = now or utcnow()
    note = Note(user_id=user_id, content=content, audio_url=audio_url, created_at=now)
    db.add(note)
    await db.flush()
    await log_activity(db, user_id, NOTE_CREATE, {"note_id": note.id}, now=now)
    await db.commit()

    awarded = await AchievementEvaluator(db, redis).evaluate(user_id, NOTE_CREATE, {"note_id": note.id}, now=now)
    return note, awarded


async def list_notes(db: AsyncSession, user_id: int, limit: int = 100) -> list[Note]:
    result = await db.execute(
        select(Note).where(Note.user_id == user_id).order_by(Note.created_at.desc(), Note.id.desc()).limit(limit)
    )
    return list(result.scalars().all())


async def delete_note(db: AsyncSession, user_id: int, note_id: int) -> None:
    """Delete a note owned by user_id. Raises NotFoundError otherwise."""
    note = await db.get(Note, note_id)
    if note is None or note.user_id != user_id:
        msg = f"Note {note_id} not found"
        raise NotFoundError(msg)
    await db.delete(note)
    await db.commit()


async def update_note(
    db: AsyncSession,
    user_id: int,
    note_id: int,
    content: str | None = None,
    audio_url: str | None = None,
) -> Note:
    """Edit a note owned by user_id; fields left as None keep their value.

    An empty string clears a field, but the note must keep text or audio.
    Raises NotFoundError for missing or foreign notes.
    """
    note = await db.get(Note, note_id)
    if note is None or note.user_id != user_id:
        msg = f"Note {note_id} not found"
        raise NotFoundError(msg)

    new_content = note.content if content is None else (content.strip() or None)
    new_audio_url = note.audio_url if audio_url is None else (audio_url or None)
    if not new_content and not new_audio_url:
        msg = "A note needs text or audio"
        raise ValueError(msg)

    note.content = new_content
    note.audio_url = new_audio_url
    await db.commit()
    logger.info("Updated note %d for user %d", note_id, user_id)
    return note
