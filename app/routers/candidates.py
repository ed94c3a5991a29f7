"""Candidate endpoints, including the AI summary actions."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from supabase import Client

from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.deps import get_cache, get_current_user, get_hub
from app.core.exceptions import AppError
from app.db.supabase import get_supabase
from app.models.candidate import (
    Candidate,
    CandidateCreate,
    CandidateListResponse,
    CandidateUpdate,
)
from app.models.enums import CandidateStatus
from app.models.summary import CandidateSummary, FollowUpQuestionsResponse
from app.models.user import User
from app.realtime.hub import RealtimeHub
from app.services import candidates as candidate_service
from app.services.cache import CacheService
from app.services.notes import all_note_texts
from app.services.summary import generate_candidate_summary, generate_follow_up_questions

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------

@router.get("", response_model=CandidateListResponse)
async def list_candidates(
    search: str = Query(default="", description="Filter on name, email or position"),
    status_filter: CandidateStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> CandidateListResponse:
    return candidate_service.list_candidates(
        client,
        user.id,
        search=search,
        status=status_filter,
        page=page,
        limit=limit,
        cache=cache,
    )


@router.post("", response_model=Candidate, status_code=status.HTTP_201_CREATED)
async def create_candidate(
    body: CandidateCreate,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
    hub: RealtimeHub = Depends(get_hub),
) -> Candidate:
    """Create a candidate and notify every other user."""
    try:
        return candidate_service.create_candidate(client, body, user, cache=cache, hub=hub)
    except AppError:
        raise
    except Exception as exc:
        logger.error(
            "create_candidate_failed",
            extra={"user_id": user.id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to create candidate") from exc


@router.get("/{candidate_id}", response_model=Candidate)
async def get_candidate(
    candidate_id: str,
    _: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> Candidate:
    return candidate_service.get_candidate(client, candidate_id, cache=cache)


@router.patch("/{candidate_id}", response_model=Candidate)
async def update_candidate(
    candidate_id: str,
    body: CandidateUpdate,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
    hub: RealtimeHub = Depends(get_hub),
) -> Candidate:
    return candidate_service.update_candidate(
        client, candidate_id, body, user.id, cache=cache, hub=hub
    )


@router.delete("/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_candidate(
    candidate_id: str,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
    hub: RealtimeHub = Depends(get_hub),
) -> Response:
    candidate_service.delete_candidate(client, candidate_id, user.id, cache=cache, hub=hub)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ---------------------------------------------------------------------------
# AI assistance
# ---------------------------------------------------------------------------

def _summary_inputs(
    client: Client, candidate_id: str, cache: CacheService
) -> tuple[Candidate, str, list[str]]:
    candidate = candidate_service.get_candidate(client, candidate_id, cache=cache)
    role = candidate.position or "Not specified"
    return candidate, role, all_note_texts(client, candidate.id)


@router.post("/{candidate_id}/summary", response_model=CandidateSummary)
async def summarize_candidate(
    candidate_id: str,
    _: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> CandidateSummary:
    """Generate a structured assessment from the candidate's notes.

    Falls back to a manual-review placeholder when the AI service fails.
    """
    candidate, role, notes = _summary_inputs(client, candidate_id, cache)
    return await generate_candidate_summary(candidate.name, role, notes)


@router.post("/{candidate_id}/follow-up-questions", response_model=FollowUpQuestionsResponse)
async def follow_up_questions(
    candidate_id: str,
    _: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> FollowUpQuestionsResponse:
    candidate, role, notes = _summary_inputs(client, candidate_id, cache)
    questions = await generate_follow_up_questions(candidate.name, role, notes)
    return FollowUpQuestionsResponse(questions=questions)
