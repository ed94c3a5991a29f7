"""Notification inbox endpoints for the current user."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query
from supabase import Client

from app.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from app.core.deps import get_cache, get_current_user
from app.db.supabase import get_supabase
from app.models.notification import (
    MarkAllReadResponse,
    MarkReadRequest,
    Notification,
    NotificationListResponse,
    UnreadCountResponse,
)
from app.models.user import User
from app.services import inbox
from app.services.cache import CacheService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = Query(default=False),
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> NotificationListResponse:
    """Return the user's notifications, newest first."""
    return inbox.list_notifications(
        client,
        user.id,
        page=page,
        limit=limit,
        unread_only=unread_only,
        cache=cache,
    )


@router.patch("", response_model=MarkAllReadResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> MarkAllReadResponse:
    updated = inbox.mark_all_as_read(client, user.id, cache=cache)
    return MarkAllReadResponse(
        updated=updated,
        message=f"Marked {updated} notifications as read",
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=inbox.unread_count(client, user.id))


@router.patch("/{notification_id}", response_model=Notification)
async def mark_notification(
    notification_id: str,
    body: MarkReadRequest | None = None,
    user: User = Depends(get_current_user),
    client: Client = Depends(get_supabase),
    cache: CacheService = Depends(get_cache),
) -> Notification:
    """Mark one notification read (default) or unread."""
    read = body.read if body is not None else True
    return inbox.mark_as_read(client, user.id, notification_id, read=read, cache=cache)
