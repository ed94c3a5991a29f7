"""Candidate note threads.

Notes are append-only and ordered by ``created_at`` ascending within a
candidate.  Posting a note parses its ``@mentions``, resolves them against
a freshly read directory, stores the resolved user IDs on the note and
then fans out ``mention`` notifications.  Resolution or fan-out problems
are logged and never fail the note itself.
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client

from app.core.config import settings
from app.core.constants import DEFAULT_PAGE_SIZE
from app.core.exceptions import RateLimitError
from app.db.supabase import utc_now_iso
from app.models.common import Pagination
from app.models.enums import EventType
from app.models.note import Note, NoteCreate, NoteListResponse
from app.models.user import User
from app.realtime.hub import RealtimeHub, candidate_channel
from app.services.cache import CacheService
from app.services.candidates import get_candidate
from app.services.directory import list_users
from app.services.fanout import notify_mentions
from app.services.mentions import parse_mentions, resolve_mentions

logger = logging.getLogger(__name__)


def _row_to_note(row: dict[str, Any]) -> Note:
    return Note.model_validate({
        **row,
        "id": str(row["id"]),
        "mentions": [str(m) for m in row.get("mentions") or []],
    })


def list_notes(
    client: Client,
    candidate_id: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> NoteListResponse:
    """Return one page of a candidate's thread, oldest first."""
    offset = (page - 1) * limit
    result = (
        client.table("notes")
        .select("*", count="exact")
        .eq("candidate_id", candidate_id)
        .order("created_at")
        .range(offset, offset + limit - 1)
        .execute()
    )
    notes = [_row_to_note(row) for row in result.data or []]
    total = result.count if result.count is not None else len(notes)
    return NoteListResponse(
        notes=notes,
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


def all_note_texts(client: Client, candidate_id: str) -> list[str]:
    """Every note body of a candidate in thread order (AI summary input)."""
    result = (
        client.table("notes")
        .select("content")
        .eq("candidate_id", candidate_id)
        .order("created_at")
        .execute()
    )
    return [row["content"] for row in result.data or []]


def _resolve(client: Client, content: str, candidate_id: str) -> list[str]:
    tokens = parse_mentions(content)
    if not tokens:
        return []
    try:
        users = list_users(client)
    except Exception as exc:
        logger.error(
            "mention_directory_failed",
            extra={
                "candidate_id": candidate_id,
                "mentions": tokens,
                "error_message": str(exc),
            },
        )
        return []
    return resolve_mentions(tokens, users)


def create_note(
    client: Client,
    data: NoteCreate,
    author: User,
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> Note:
    """Store a note on a candidate and notify the users it mentions.

    Raises ``NotFoundError`` for an unknown candidate and ``RateLimitError``
    when the author exceeds ``NOTE_RATE_LIMIT`` notes per window.
    """
    candidate = get_candidate(client, data.candidate_id, cache=cache)
    if cache is not None and not cache.check_rate_limit(
        f"notes:{author.id}",
        settings.NOTE_RATE_LIMIT,
        settings.NOTE_RATE_WINDOW_SECONDS,
    ):
        raise RateLimitError("Too many notes, slow down")

    mention_ids = _resolve(client, data.content, candidate.id)

    row = {
        "candidate_id": candidate.id,
        "content": data.content,
        "author_id": author.id,
        "author_name": author.name,
        "mentions": mention_ids,
        "created_at": utc_now_iso(),
    }
    result = client.table("notes").insert(row).execute()
    note = _row_to_note(result.data[0])

    logger.info(
        "note_created",
        extra={
            "note_id": note.id,
            "candidate_id": candidate.id,
            "author_id": author.id,
            "mention_count": len(mention_ids),
        },
    )

    if hub is not None:
        hub.publish(
            candidate_channel(candidate.id),
            EventType.new_note,
            note.model_dump(mode="json"),
        )
    if cache is not None:
        cache.add_activity(
            author.id,
            {"type": "note_created", "candidate_id": candidate.id, "note_id": note.id},
        )

    if note.mentions:
        notify_mentions(client, note, candidate.name, cache=cache, hub=hub)

    return note
