"""Note thread endpoints.

``POST /messages`` stores a note and fans out ``mention`` notifications;
the notifications never hold up or fail the note.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from supabase import Client

from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.deps import get_cache, get_current_user, get_hub
from app.core.exceptions import AppError
from app.db.supabase import get_supabase
from app.models.note import Note, NoteCreate, NoteListResponse
from app.models.user import User
from app.realtime.hub import RealtimeHub
from app.services.cache import CacheService
from app.services.notes import create_note, list_notes

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NoteListResponse)
async def get_messages(
    candidate_id: str = Query(..., min_length=1),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    _: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> NoteListResponse:
    """Return a candidate's notes, oldest first."""
    return list_notes(client, candidate_id, page=page, limit=limit)


@router.post("", response_model=Note, status_code=status.HTTP_201_CREATED)
async def post_message(
    body: NoteCreate,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
    hub: RealtimeHub = Depends(get_hub),
) -> Note:
    try:
        return create_note(client, body, user, cache=cache, hub=hub)
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "create_note_failed",
            extra={
                "candidate_id": body.candidate_id,
                "author_id": user.id,
                "error_message": str(exc),
            },
        )
        raise HTTPException(status_code=500, detail="Failed to create note") from exc
