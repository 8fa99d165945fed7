"""Note endpoints: the daily reflections toasts are built from."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from toastyou.auth.dependencies import get_current_user
from toastyou.database import get_session
from toastyou.db.models import Note, User
from toastyou.dependencies import get_redis_dep
from toastyou.gamification.router import earned_badge_response
from toastyou.notes.schemas import (
    NoteCreateRequest,
    NoteCreateResponse,
    NoteListResponse,
    NoteResponse,
    NoteUpdateRequest,
)
from toastyou.notes.service import create_note, delete_note, list_notes, update_note

router = APIRouter(prefix="/api/v1/notes", tags=["Notes"])


def _note_response(note: Note) -> NoteResponse:
    return NoteResponse(
        id=note.id,
        content=note.content,
        audio_url=note.audio_url,
        created_at=note.created_at,
    )


@router.post("", response_model=NoteCreateResponse, status_code=201)
async def create_my_note(
    body: NoteCreateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
    redis: object = Depends(get_redis_dep),
) -> NoteCreateResponse:
    """Save a reflection and report any badges it unlocked."""
    note, awarded = await create_note(db, redis, user.id, content=body.content, audio_url=body.audio_url)
    return NoteCreateResponse(
        note=_note_response(note),
        new_badges=[earned_badge_response(ub) for ub in awarded],
    )


@router.get("", response_model=NoteListResponse)
async def list_my_notes(
    limit: int = Query(default=100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteListResponse:
    notes = await list_notes(db, user.id, limit=limit)
    return NoteListResponse(notes=[_note_response(n) for n in notes], total=len(notes))


@router.patch("/{note_id}", response_model=NoteResponse)
async def edit_my_note(
    note_id: int,
    body: NoteUpdateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> NoteResponse:
    """Edit the text or audio of one of your notes."""
    note = await update_note(db, user.id, note_id, content=body.content, audio_url=body.audio_url)
    return _note_response(note)


@router.delete("/{note_id}", status_code=204)
async def delete_my_note(
    note_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Response:
    await delete_note(db, user.id, note_id)
    return Response(status_code=204)
