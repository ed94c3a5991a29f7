"""Per-user notification inbox: listing, unread counts, read state.

Ordering is newest-first by ``created_at`` and comes from the database
query.  The unread filter is part of the query itself.  The unfiltered
first page is served read-through from the cache; every read-state change
drops that entry.
"""

from __future__ import annotations

import logging

from supabase import Client

from app.core.constants import DEFAULT_PAGE_SIZE
from app.core.exceptions import (
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
)
from app.db.supabase import utc_now_iso
from app.models.common import Pagination
from app.models.notification import (
    Notification,
    NotificationListResponse,
    notification_from_row,
)
from app.services.cache import CacheService

logger = logging.getLogger(__name__)


def _count(client: Client, user_id: str, unread_only: bool) -> int:
    query = (
        client.table("notifications")
        .select("id", count="exact", head=True)
        .eq("user_id", user_id)
    )
    if unread_only:
        query = query.eq("read", False)
    result = query.execute()
    return result.count or 0


def _fetch_page(
    client: Client,
    user_id: str,
    page: int,
    limit: int,
    unread_only: bool,
) -> tuple[list[Notification], int]:
    offset = (page - 1) * limit
    query = (
        client.table("notifications")
        .select("*", count="exact")
        .eq("user_id", user_id)
    )
    if unread_only:
        query = query.eq("read", False)

    result = (
        query.order("created_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )
    notifications = [notification_from_row(row) for row in result.data or []]
    total = result.count if result.count is not None else len(notifications)
    return notifications, total


def list_notifications(
    client: Client,
    user_id: str,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    unread_only: bool = False,
    cache: CacheService | None = None,
) -> NotificationListResponse:
    """Return one page of the user's notifications, newest first.

    A cache miss, a cache failure and a cached page shorter than requested
    all fall back to the database.
    """
    cacheable = cache is not None and page == 1 and not unread_only

    if cacheable:
        cached = cache.get_notifications(user_id)
        if cached is not None:
            total = _count(client, user_id, unread_only=False)
            if len(cached) >= min(limit, total):
                return NotificationListResponse(
                    notifications=cached[:limit],
                    pagination=Pagination.build(page=page, limit=limit, total=total),
                )

    notifications, total = _fetch_page(client, user_id, page, limit, unread_only)
    if cacheable:
        cache.set_notifications(user_id, notifications)

    return NotificationListResponse(
        notifications=notifications,
        pagination=Pagination.build(page=page, limit=limit, total=total),
    )


def unread_count(client: Client, user_id: str) -> int:
    """Number of the user's notifications with ``read = false``."""
    return _count(client, user_id, unread_only=True)


def mark_as_read(
    client: Client,
    user_id: str,
    notification_id: str,
    read: bool = True,
    cache: CacheService | None = None,
) -> Notification:
    """Set the read flag on one of the user's notifications.

    Idempotent: re-marking an already-read notification succeeds without
    a write.
    """
    result = (
        client.table("notifications")
        .select("*")
        .eq("id", notification_id)
        .limit(1)
        .execute()
    )
    rows = result.data or []
    if not rows:
        raise NotFoundError("Notification not found")

    notification = notification_from_row(rows[0])
    if notification.user_id != user_id:
        raise PermissionDeniedError("Notification belongs to another user")

    if notification.read == read:
        return notification

    read_at = utc_now_iso() if read else None
    update = (
        client.table("notifications")
        .update({"read": read, "read_at": read_at})
        .eq("id", notification_id)
        .eq("user_id", user_id)
        .execute()
    )
    if cache is not None:
        cache.invalidate_notifications(user_id)

    updated_rows = update.data or []
    if updated_rows:
        return notification_from_row(updated_rows[0])
    return notification.model_copy(update={"read": read, "read_at": read_at})


def mark_all_as_read(
    client: Client,
    user_id: str,
    cache: CacheService | None = None,
) -> int:
    """Mark every unread notification of ``user_id`` as read.

    Issued as one bulk update scoped to the user's unread rows, so it
    either applies as a whole or raises ``ExternalServiceError``.
    Returns the number of notifications updated.
    """
    try:
        result = (
            client.table("notifications")
            .update({"read": True, "read_at": utc_now_iso()})
            .eq("user_id", user_id)
            .eq("read", False)
            .execute()
        )
    except Exception as exc:
        logger.error(
            "mark_all_read_failed",
            extra={"user_id": user_id, "error_message": str(exc)},
        )
        raise ExternalServiceError("Failed to mark notifications as read") from exc
    finally:
        if cache is not None:
            cache.invalidate_notifications(user_id)

    updated = len(result.data or [])
    logger.info("mark_all_read_completed", extra={"user_id": user_id, "updated": updated})
    return updated
