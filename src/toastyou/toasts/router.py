"""Toast endpoints: weekly window, generation, sharing, reactions and comments."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.auth.dependencies import get_current_user
from toastyou.database import get_session
from toastyou.db.models import Toast, ToastComment, User
from toastyou.dependencies import get_redis_dep, get_speech_synthesizer_dep, get_text_generator_dep
from toastyou.toasts.comments import add_comment, delete_comment, list_comments, update_comment
from toastyou.toasts.generation import SpeechSynthesizer, TextGenerator
from toastyou.toasts.schemas import (
    CommentListResponse,
    CommentRequest,
    CommentResponse,
    ReactionRequest,
    ReactionResponse,
    SharedToastResponse,
    ToastGenerateRequest,
    ToastListResponse,
    ToastResponse,
    ToastWindowResponse,
    VoiceResponse,
)
from toastyou.toasts.service import (
    add_reaction,
    generate_toast,
    get_reaction_counts,
    get_shared_toast,
    get_toast,
    get_user,
    list_toasts,
    share_toast,
)
from toastyou.toasts.voices import VOICE_CATALOGUE
from toastyou.toasts.week_utils import DAY_NAMES, get_next_toast_date, get_week_window, is_toast_day

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1", tags=["Toasts"])


def _toast_response(toast: Toast) -> ToastResponse:
    return ToastResponse(
        id=toast.id,
        content=toast.content,
        audio_url=toast.audio_url,
        week_start_date=toast.week_start_date,
        note_ids=list(toast.note_ids or []),
        shared=toast.shared,
        share_code=toast.share_code,
        created_at=toast.created_at,
    )


def _comment_response(comment: ToastComment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        comment=comment.comment,
        user_id=comment.user_id,
        author_name=comment.author.name,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
    )


@router.get("/toasts", response_model=ToastListResponse)
async def list_my_toasts(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ToastListResponse:
    toasts = await list_toasts(db, user.id)
    return ToastListResponse(toasts=[_toast_response(t) for t in toasts], total=len(toasts))


@router.get("/toasts/window", response_model=ToastWindowResponse)
async def get_my_window(user: User = Depends(get_current_user)) -> ToastWindowResponse:
    """The window the next scheduled toast covers, in the user's timezone."""
    week_start, week_end = get_week_window(user.timezone, user.weekly_toast_day)
    return ToastWindowResponse(
        week_start=week_start,
        week_end=week_end,
        next_toast_date=get_next_toast_date(user.timezone, user.weekly_toast_day),
        timezone=user.timezone,
        weekly_toast_day=user.weekly_toast_day,
        toast_day_name=DAY_NAMES[user.weekly_toast_day],
        is_toast_day=is_toast_day(user.timezone, user.weekly_toast_day),
    )


@router.post("/toasts/generate", response_model=ToastResponse)
async def generate_my_toast(
    body: ToastGenerateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
    text_generator: TextGenerator = Depends(get_text_generator_dep),
    speech_synthesizer: SpeechSynthesizer = Depends(get_speech_synthesizer_dep),
) -> ToastResponse:
    """Generate the toast for a week, defaulting to the most recent completed window."""
    if (body.week_start is None) != (body.week_end is None):
        msg = "week_start and week_end must be given together"
        raise ValueError(msg)
    if body.week_start is None or body.week_end is None:
        week_start, week_end = get_week_window(user.timezone, user.weekly_toast_day)
    else:
        week_start, week_end = body.week_start, body.week_end

    logger.info("toast_generate_requested", user_id=user.id, week_start=str(week_start), regenerate=body.regenerate)
    toast = await generate_toast(
        db,
        redis,
        user.id,
        week_start,
        week_end,
        text_generator=text_generator,
        speech_synthesizer=speech_synthesizer,
        regenerate=body.regenerate,
    )
    return _toast_response(toast)


@router.get("/toasts/{toast_id}", response_model=ToastResponse)
async def get_my_toast(
    toast_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> ToastResponse:
    return _toast_response(await get_toast(db, user.id, toast_id))


@router.post("/toasts/{toast_id}/share", response_model=ToastResponse)
async def share_my_toast(
    toast_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
) -> ToastResponse:
    """Make a toast publicly viewable through its share code."""
    return _toast_response(await share_toast(db, redis, user.id, toast_id))


@router.get("/voices", response_model=list[VoiceResponse])
async def list_voices() -> list[VoiceResponse]:
    """Narrators available for toast audio."""
    return [VoiceResponse(slug=v.slug, name=v.name, description=v.description) for v in VOICE_CATALOGUE.values()]


# ── Public share links ──


@router.get("/shared/{share_code}", response_model=SharedToastResponse)
async def view_shared_toast(share_code: str, db: AsyncSession = Depends(get_session)) -> SharedToastResponse:
    toast = await get_shared_toast(db, share_code)
    author = await get_user(db, toast.user_id)
    return SharedToastResponse(
        content=toast.content,
        audio_url=toast.audio_url,
        week_start_date=toast.week_start_date,
        author_name=author.name,
        reactions=await get_reaction_counts(db, toast.id),
    )


@router.post("/shared/{share_code}/reactions", response_model=ReactionResponse)
async def react_to_shared_toast(
    share_code: str,
    body: ReactionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
) -> ReactionResponse:
    _, created = await add_reaction(db, redis, user.id, share_code, body.emoji)
    return ReactionResponse(created=created, emoji=body.emoji)


@router.get("/shared/{share_code}/comments", response_model=CommentListResponse)
async def list_shared_toast_comments(share_code: str, db: AsyncSession = Depends(get_session)) -> CommentListResponse:
    comments = await list_comments(db, share_code)
    return CommentListResponse(comments=[_comment_response(c) for c in comments], total=len(comments))


@router.post("/shared/{share_code}/comments", response_model=CommentResponse, status_code=201)
async def comment_on_shared_toast(
    share_code: str,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
) -> CommentResponse:
    comment = await add_comment(db, redis, user.id, share_code, body.comment)
    return _comment_response(comment)


@router.patch("/shared/{share_code}/comments/{comment_id}", response_model=CommentResponse)
async def edit_my_comment(
    share_code: str,
    comment_id: int,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> CommentResponse:
    return _comment_response(await update_comment(db, user.id, share_code, comment_id, body.comment))


@router.delete("/shared/{share_code}/comments/{comment_id}", status_code=204)
async def delete_shared_toast_comment(
    share_code: str,
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Remove your own comment, or any comment on your toast."""
    await delete_comment(db, user.id, share_code, comment_id)
    return Response(status_code=204)
