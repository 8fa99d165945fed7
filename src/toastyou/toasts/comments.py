"""Comments on shared toasts."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.db.models import Toast, ToastComment, User, utcnow
from toastyou.errors import NotFoundError
from toastyou.notifications import TOAST_COMMENT_CHANNEL, publish_event
from toastyou.toasts.service import get_shared_toast

logger = logging.getLogger(__name__)

COMMENT_MAX_LENGTH = 500


def _clean(text: str) -> str:
    text = text.strip()
    if not text:
        msg = "Comment cannot be empty"
        raise ValueError(msg)
    if len(text) > COMMENT_MAX_LENGTH:
        msg = f"Comment too long (max {COMMENT_MAX_LENGTH} characters)"
        raise ValueError(msg)
    return text


async def _get_comment(db: AsyncSession, toast: Toast, comment_id: int) -> ToastComment:
    comment = await db.get(ToastComment, comment_id)
    if comment is None or comment.toast_id != toast.id:
        msg = f"Comment {comment_id} not found"
        raise NotFoundError(msg)
    return comment


async def list_comments(db: AsyncSession, share_code: str) -> list[ToastComment]:
    """Comments on a shared toast, oldest first."""
    toast = await get_shared_toast(db, share_code)
    result = await db.execute(
        select(ToastComment)
        .where(ToastComment.toast_id == toast.id)
        .order_by(ToastComment.created_at, ToastComment.id)
    )
    return list(result.scalars().all())


async def add_comment(db: AsyncSession, redis: object, user_id: int, share_code: str, text: str) -> ToastComment:
    """Comment on a shared toast. The toast's author is notified of comments from others."""
    toast = await get_shared_toast(db, share_code)
    author = await db.get(User, user_id)
    if author is None:
        msg = f"User {user_id} not found"
        raise NotFoundError(msg)

    comment = ToastComment(toast_id=toast.id, author=author, comment=_clean(text), created_at=utcnow())
    db.add(comment)
    await db.commit()
    logger.info("User %d commented on toast %d", user_id, toast.id)

    if toast.user_id != user_id:
        await publish_event(
            redis,
            TOAST_COMMENT_CHANNEL,
            {
                "user_id": toast.user_id,
                "toast_id": toast.id,
                "comment_id": comment.id,
                "from_user_id": user_id,
                "from_name": author.name,
            },
        )
    return comment


async def update_comment(
    db: AsyncSession, user_id: int, share_code: str, comment_id: int, text: str
) -> ToastComment:
    """Edit your own comment. Anyone else's comment is reported as not found."""
    toast = await get_shared_toast(db, share_code)
    comment = await _get_comment(db, toast, comment_id)
    if comment.user_id != user_id:
        msg = f"Comment {comment_id} not found"
        raise NotFoundError(msg)

    comment.comment = _clean(text)
    comment.updated_at = utcnow()
    await db.commit()
    return comment


async def delete_comment(db: AsyncSession, user_id: int, share_code: str, comment_id: int) -> None:
    """Delete a comment. Its author and the toast's author may delete it."""
    toast = await get_shared_toast(db, share_code)
    comment = await _get_comment(db, toast, comment_id)
    if user_id not in (comment.user_id, toast.user_id):
        msg = f"Comment {comment_id} not found"
        raise NotFoundError(msg)

    await db.delete(comment)
    await db.commit()
    logger.info("User %d deleted comment %d on toast %d", user_id, comment_id, toast.id)
