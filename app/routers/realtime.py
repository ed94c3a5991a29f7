"""WebSocket endpoint for realtime events.

Connect with ``/ws?token=<access token>``.  The server sends ``connected``
followed by an ``inbox_snapshot`` and then every event published on the
user's channel, the presence channel, the shared candidates channel and
any candidate channel the client joined.

Client messages are JSON objects ``{"type": ..., "candidate_id": ...}``
with ``type`` one of ``join_candidate``, ``leave_candidate``,
``typing_start`` or ``typing_stop``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Literal

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from supabase import Client

from app.core.config import settings
from app.core.constants import CANDIDATES_CHANNEL, PRESENCE_CHANNEL
from app.core.deps import get_cache, get_hub
from app.core.exceptions import AuthenticationError
from app.db.supabase import get_auth_client, get_supabase
from app.models.enums import EventType
from app.models.user import User
from app.realtime.hub import (
    RealtimeEvent,
    RealtimeHub,
    Subscription,
    SubscriptionError,
    candidate_channel,
    user_channel,
)
from app.services import inbox
from app.services.auth import authenticate_token
from app.services.cache import CacheService

logger = logging.getLogger(__name__)

router = APIRouter()


class ClientMessage(BaseModel):
    type: Literal["join_candidate", "leave_candidate", "typing_start", "typing_stop"]
    candidate_id: str


def _empty_snapshot(**flags: Any) -> dict[str, Any]:
    return {"notifications": [], "unread_count": 0, "timed_out": False, **flags}


async def _inbox_snapshot(client: Client, user: User) -> dict[str, Any]:
    """First page of the inbox, bounded by SUBSCRIPTION_FIRST_EVENT_TIMEOUT.

    Read straight from the database; a worker thread that outlives the
    timeout must not write a stale page back to the cache.
    """

    def load() -> dict[str, Any]:
        page = inbox.list_notifications(client, user.id)
        return {
            "notifications": [n.model_dump(mode="json") for n in page.notifications],
            "unread_count": inbox.unread_count(client, user.id),
            "timed_out": False,
        }

    timeout = settings.SUBSCRIPTION_FIRST_EVENT_TIMEOUT
    try:
        return await asyncio.wait_for(asyncio.to_thread(load), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning(
            "inbox_snapshot_timeout",
            extra={"user_id": user.id, "timeout": timeout},
        )
        return _empty_snapshot(timed_out=True)
    except Exception as exc:
        logger.error(
            "inbox_snapshot_failed",
            extra={"user_id": user.id, "error_message": str(exc)},
        )
        return _empty_snapshot(error="Failed to load notifications")


async def _forward_events(websocket: WebSocket, subscription: Subscription) -> None:
    try:
        async for event in subscription:
            await websocket.send_json(event.model_dump(mode="json"))
    except SubscriptionError as exc:
        logger.info("realtime_subscription_failed", extra={"error_message": str(exc)})
        await websocket.close(code=status.WS_1001_GOING_AWAY)


def _presence(hub: RealtimeHub, user: User, state: str, exclude: Subscription) -> None:
    hub.publish(
        PRESENCE_CHANNEL,
        EventType.user_status_change,
        {"user_id": user.id, "user_name": user.name, "status": state},
        exclude=exclude,
    )


def _handle_message(
    message: ClientMessage,
    user: User,
    hub: RealtimeHub,
    subscription: Subscription,
) -> None:
    channel = candidate_channel(message.candidate_id)
    if message.type == "join_candidate":
        subscription.join(channel)
    elif message.type == "leave_candidate":
        subscription.leave(channel)
    elif message.type == "typing_start":
        hub.publish(
            channel,
            EventType.user_typing,
            {"user_id": user.id, "user_name": user.name, "candidate_id": message.candidate_id},
            exclude=subscription,
        )
    else:
        hub.publish(
            channel,
            EventType.user_stopped_typing,
            {"user_id": user.id, "candidate_id": message.candidate_id},
            exclude=subscription,
        )


async def _receive_messages(
    websocket: WebSocket,
    user: User,
    hub: RealtimeHub,
    subscription: Subscription,
) -> None:
    while True:
        raw = await websocket.receive_text()
        try:
            message = ClientMessage.model_validate_json(raw)
        except PydanticValidationError:
            subscription.deliver(RealtimeEvent(
                type=EventType.error,
                channel=user_channel(user.id),
                data={"message": "Malformed message"},
            ))
            continue
        _handle_message(message, user, hub, subscription)


@router.websocket("/ws")
async def realtime(
    websocket: WebSocket,
    token: str = Query(default=""),
    client: Client = Depends(get_supabase),
    auth_client: Client = Depends(get_auth_client),
    cache: CacheService = Depends(get_cache),
    hub: RealtimeHub = Depends(get_hub),
) -> None:
    try:
        user = authenticate_token(client, auth_client, token, cache=cache)
    except AuthenticationError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    logger.info("realtime_connected", extra={"user_id": user.id})

    with hub.subscribe(user_channel(user.id), PRESENCE_CHANNEL, CANDIDATES_CHANNEL) as subscription:
        await websocket.send_json(RealtimeEvent(
            type=EventType.connected,
            channel=user_channel(user.id),
            data={"message": "Connected", "user": user.model_dump(mode="json")},
        ).model_dump(mode="json"))
        await websocket.send_json(RealtimeEvent(
            type=EventType.inbox_snapshot,
            channel=user_channel(user.id),
            data=await _inbox_snapshot(client, user),
        ).model_dump(mode="json"))

        _presence(hub, user, "online", exclude=subscription)
        sender = asyncio.create_task(_forward_events(websocket, subscription))
        try:
            await _receive_messages(websocket, user, hub, subscription)
        except WebSocketDisconnect:
            logger.info("realtime_disconnected", extra={"user_id": user.id})
        finally:
            sender.cancel()
            for result in await asyncio.gather(sender, return_exceptions=True):
                if isinstance(result, Exception):
                    logger.debug(
                        "realtime_sender_stopped",
                        extra={"user_id": user.id, "error_message": str(result)},
                    )
            _presence(hub, user, "offline", exclude=subscription)
