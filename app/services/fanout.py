"""Notification fan-out.

Turns a created note (with resolved mentions) or a candidate-creation
event into one ``notifications`` row per recipient.

Every recipient write is independent and fire-and-forget relative to the
triggering action: a failed insert is logged for that recipient and the
loop moves on.  Nothing is retried and the note/candidate is never rolled
back.  Successful writes are pushed to the recipient's realtime channel
and drop the recipient's cached inbox.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone

from supabase import Client

from app.core.constants import NOTIFICATION_PREVIEW_LENGTH, NOTIFICATION_PREVIEW_SUFFIX
from app.models.candidate import Candidate
from app.models.enums import EventType, NotificationType
from app.models.note import Note
from app.models.notification import (
    Notification,
    NotificationCreate,
    notification_from_row,
)
from app.models.user import User
from app.realtime.hub import RealtimeHub, user_channel
from app.services.cache import CacheService

logger = logging.getLogger(__name__)


def preview(content: str, limit: int = NOTIFICATION_PREVIEW_LENGTH) -> str:
    """Cap ``content`` at ``limit`` characters, marking truncation."""
    if len(content) <= limit:
        return content
    return content[:limit] + NOTIFICATION_PREVIEW_SUFFIX


def _insert_notification(
    client: Client,
    payload: NotificationCreate,
    cache: CacheService | None,
    hub: RealtimeHub | None,
) -> Notification | None:
    """Write one recipient's notification; log and return None on failure."""
    try:
        result = (
            client.table("notifications")
            .insert(payload.model_dump(mode="json"))
            .execute()
        )
        notification = notification_from_row(result.data[0])
    except Exception as exc:
        logger.error(
            "notification_write_failed",
            extra={
                "recipient_id": payload.user_id,
                "notification_type": payload.type.value,
                "candidate_id": payload.candidate_id,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
        )
        return None

    if cache is not None:
        cache.invalidate_notifications(notification.user_id)
    if hub is not None:
        hub.publish(
            user_channel(notification.user_id),
            EventType.new_notification,
            notification.model_dump(mode="json"),
        )
    return notification


def notify_mentions(
    client: Client,
    note: Note,
    candidate_name: str,
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> list[Notification]:
    """Create a ``mention`` notification for each resolved user but the author.

    A user appearing more than once in ``note.mentions`` is notified once
    per note.
    """
    created: list[Notification] = []
    notified: set[str] = set()
    now = datetime.now(timezone.utc)
    content_preview = preview(note.content)

    for recipient_id in note.mentions:
        if recipient_id == note.author_id or recipient_id in notified:
            continue
        notified.add(recipient_id)

        payload = NotificationCreate(
            user_id=recipient_id,
            type=NotificationType.mention,
            message=f"{note.author_name} mentioned you in a note about {candidate_name}",
            content=content_preview,
            candidate_id=note.candidate_id,
            candidate_name=candidate_name,
            note_id=note.id,
            from_user_id=note.author_id,
            from_user_name=note.author_name,
            created_at=now,
        )
        notification = _insert_notification(client, payload, cache, hub)
        if notification is not None:
            created.append(notification)

    logger.info(
        "mention_fanout_completed",
        extra={
            "note_id": note.id,
            "candidate_id": note.candidate_id,
            "recipients": len(notified),
            "created": len(created),
        },
    )
    return created


def notify_candidate_created(
    client: Client,
    candidate: Candidate,
    creator: User,
    users: Iterable[User],
    cache: CacheService | None = None,
    hub: RealtimeHub | None = None,
) -> list[Notification]:
    """Broadcast a ``candidate`` notification to every user but the creator."""
    created: list[Notification] = []
    now = datetime.now(timezone.utc)
    recipients = 0

    for user in users:
        if user.id == creator.id:
            continue
        recipients += 1

        payload = NotificationCreate(
            user_id=user.id,
            type=NotificationType.candidate,
            message=f"New candidate added by {creator.name}: {candidate.name}",
            content=f"{creator.name} added candidate {candidate.name}",
            candidate_id=candidate.id,
            candidate_name=candidate.name,
            from_user_id=creator.id,
            from_user_name=creator.name,
            created_at=now,
        )
        notification = _insert_notification(client, payload, cache, hub)
        if notification is not None:
            created.append(notification)

    logger.info(
        "candidate_fanout_completed",
        extra={
            "candidate_id": candidate.id,
            "recipients": recipients,
            "created": len(created),
        },
    )
    return created
