"""Recent activity feed of the current user (cache-backed)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from app.core.constants import RECENT_ACTIVITY_MAX
from app.core.deps import get_cache, get_current_user
from app.models.user import User
from app.services.cache import CacheService

router = APIRouter()


@router.get("")
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=RECENT_ACTIVITY_MAX),
    user: User = Depends(get_current_user),
    cache: CacheService = Depends(get_cache),
) -> dict[str, Any]:
    """Newest-first activity entries.  Empty when the cache is disabled."""
    return {"activities": cache.get_activity(user.id, limit=limit)}
