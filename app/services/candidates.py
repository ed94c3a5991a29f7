"""Candidate directory: CRUD over the shared ``candidates`` table.

Every authenticated user sees every candidate.  Listing reads the whole
pipeline newest-first, filters by free text (name, email, position) and
status, and paginates in Python; the full list and per-query search
results are cached per user with the SHORT TTL, and any write drops
every user's cached lists.

Creating a candidate broadcasts a ``candidate`` notification to every
other user.  The broadcast runs after the insert and can never fail the
creation.
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client

from app.core.constants import CANDIDATES_CHANNEL, DEFAULT_PAGE_SIZE
from app.core.exceptions import NotFoundError, ValidationError
from app.db.supabase import utc_now_iso
from app.models.candidate import (
    Candidate,
    CandidateCreate,
    CandidateListResponse,
    CandidateUpdate,
)
from app.models.common import Pagination
from app.models.enums import CandidateStatus, EventType
from app.models.user import User
from app.realtime.hub import RealtimeHub, candidate_channel
from app.services.cache import CacheService
from app.services.directory import list_users
from app.services.fanout import notify_candidate_created

logger = logging.getLogger(__name__)


def _row_to_candidate(row: dict[str, Any]) -> Candidate:
    return Candidate.model_validate({**row, "id": str(row["id"])})


def _matches_search(candidate: Candidate, needle: str) -> bool:
    return (
        needle in candidate.name.lower()
        or needle in candidate.email.lower()
        or (candidate.position is not None and needle in candidate.position.lower())
    )


def _fetch_all(client: Client) -> list[Candidate]:
    result = (
        client.table("candidates")
        .select("*")
        .order("created_at", desc=True)
        .execute()
    )
    return [_row_to_candidate(row) for row in result.data or []]


def _load_candidates(
    client: Client,
    user_id: str,
    search: str,
    cache: CacheService | None,
) -> list[Candidate]:
    needle = search.strip().lower()

    if cache is not None:
        cached = (
            cache.get_search_results(user_id, needle)
            if needle
            else cache.get_candidate_list(user_id)
        )
        if cached is not None:
            return cached

    candidates = _fetch_all(client)
    if needle:
        candidates = [c for c in candidates if _matches_search(c, needle)]

    if cache is not None:
        if needle:
            cache.set_search_results(user_id, needle, candidates)
        else:
            cache.set_candidate_list(user_id, candidates)
    return candidates


def list_candidates(
    client: Client,
    user_id: str,
    search: str = "",
    status: CandidateStatus | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    cache: CacheService | None = None,
) -> CandidateListResponse:
    """Return one page of candidates, newest first."""
    candidates = _load_candidates(client, user_id, search, cache)
    if status is not None:
        candidates = [c for c in candidates if c.status == status]

    offset = (page - 1) * limit
    return CandidateListResponse(
        candidates=candidates[offset:offset + limit],
        pagination=Pagination.build(page=page, limit=limit, total=len(candidates)),
    )


def get_candidate(
    client: Client,
    candidate_id: str,
    cache: CacheService | None = None,
) -> Candidate:
    """Fetch one candidate.  Raises NotFoundError."""
    if cache is not None:
        cached = cache.get_candidate(candidate_id)
        if cached is not None:
            return cached

    result = (
        client.table("candidates")
        .select("*")
        .eq("id", candidate_id)
        .limit(1)
        .execute()
    )
    rows = result.data or []
    if not rows:
        raise NotFoundError("Candidate not found")

    candidate = _row_to_candidate(rows[0])
    if cache is not None:
        cache.set_candidate(candidate)
    return candidate


def _ensure_email_available(
    client: Client, email: str, exclude_id: str | None = None
) -> None:
    result = client.table("candidates").select("id").eq("email", email).execute()
    for row in result.data or []:
        if str(row["id"]) != exclude_id:
            raise ValidationError("Candidate with this email already exists")


def create_candidate(
    client: Client,
    data: CandidateCreate,
    creator: User,
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> Candidate:
    """Insert a candidate and broadcast the creation to every other user."""
    _ensure_email_available(client, data.email)

    now = utc_now_iso()
    row = {
        **data.model_dump(mode="json", exclude_none=True),
        "created_by": creator.id,
        "created_at": now,
        "updated_at": now,
    }
    result = client.table("candidates").insert(row).execute()
    candidate = _row_to_candidate(result.data[0])

    logger.info(
        "candidate_created",
        extra={"candidate_id": candidate.id, "created_by": creator.id},
    )

    if cache is not None:
        cache.invalidate_candidate(candidate.id)
        cache.add_activity(
            creator.id,
            {"type": "candidate_created", "candidate_id": candidate.id, "name": candidate.name},
        )
    if hub is not None:
        hub.publish(
            CANDIDATES_CHANNEL,
            EventType.candidate_created,
            candidate.model_dump(mode="json"),
        )

    try:
        users = list_users(client)
    except Exception as exc:
        logger.error(
            "candidate_fanout_directory_failed",
            extra={"candidate_id": candidate.id, "error_message": str(exc)},
        )
    else:
        notify_candidate_created(client, candidate, creator, users, cache=cache, hub=hub)

    return candidate


def update_candidate(
    client: Client,
    candidate_id: str,
    data: CandidateUpdate,
    user_id: str,
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> Candidate:
    """Apply a partial update.  Raises NotFoundError / ValidationError."""
    changes = data.model_dump(mode="json", exclude_none=True)
    if not changes:
        return get_candidate(client, candidate_id)

    if "email" in changes:
        _ensure_email_available(client, changes["email"], exclude_id=candidate_id)

    changes["updated_at"] = utc_now_iso()
    result = (
        client.table("candidates")
        .update(changes)
        .eq("id", candidate_id)
        .execute()
    )
    rows = result.data or []
    if not rows:
        raise NotFoundError("Candidate not found")

    candidate = _row_to_candidate(rows[0])
    logger.info(
        "candidate_updated",
        extra={"candidate_id": candidate_id, "user_id": user_id, "fields": sorted(changes)},
    )

    if cache is not None:
        cache.invalidate_candidate(candidate_id)
    if hub is not None:
        payload = candidate.model_dump(mode="json")
        hub.publish(CANDIDATES_CHANNEL, EventType.candidate_updated, payload)
        hub.publish(candidate_channel(candidate_id), EventType.candidate_updated, payload)
    return candidate


def delete_candidate(
    client: Client,
    candidate_id: str,
    user_id: str,
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> None:
    """Hard-delete a candidate.  Raises NotFoundError."""
    result = client.table("candidates").delete().eq("id", candidate_id).execute()
    if not result.data:
        raise NotFoundError("Candidate not found")

    logger.info("candidate_deleted", extra={"candidate_id": candidate_id, "user_id": user_id})

    if cache is not None:
        cache.invalidate_candidate(candidate_id)
    if hub is not None:
        hub.publish(
            CANDIDATES_CHANNEL,
            EventType.candidate_deleted,
            {"id": candidate_id},
        )
