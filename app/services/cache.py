"""Read-through Redis cache for candidates, inboxes, profiles and sessions.

Every operation fails open: a Redis error is logged and treated as a cache
miss (reads) or a no-op (writes), so the primary database path is never
blocked by the cache.  With no Redis client configured all reads miss.

Values are stored as JSON with a TTL tier from ``app.core.constants``.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import redis
from pydantic import BaseModel, TypeAdapter

from app.core.constants import (
    CACHE_TTL_DAY,
    CACHE_TTL_LONG,
    CACHE_TTL_MEDIUM,
    CACHE_TTL_SHORT,
    CACHE_TTL_WEEK,
    RECENT_ACTIVITY_MAX,
)
from app.models.candidate import Candidate
from app.models.notification import Notification
from app.models.user import User

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Key space
# ---------------------------------------------------------------------------

def candidate_key(candidate_id: str) -> str:
    return f"candidate:{candidate_id}"


def candidate_list_key(user_id: str) -> str:
    return f"candidates:user:{user_id}"


def notifications_key(user_id: str) -> str:
    return f"notifications:user:{user_id}"


def search_key(user_id: str, query: str) -> str:
    return f"search:{user_id}:{query.lower().strip()}"


def user_profile_key(user_id: str) -> str:
    return f"user:{user_id}"


def session_key(user_id: str) -> str:
    return f"sessions:user:{user_id}"


def activity_key(user_id: str) -> str:
    return f"activity:user:{user_id}"


def rate_limit_key(key: str) -> str:
    return f"rate_limit:{key}"


_candidate_list_adapter = TypeAdapter(list[Candidate])
_notification_list_adapter = TypeAdapter(list[Notification])


class CacheService:
    """Fail-open cache facade over an optional ``redis.Redis`` client."""

    def __init__(self, client: redis.Redis | None) -> None:
        self.client = client

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def _get_raw(self, key: str) -> str | None:
        if self.client is None:
            return None
        try:
            value = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("cache_get_failed", extra={"key": key, "error_message": str(exc)})
            return None
        if value is None:
            logger.debug("cache_miss", extra={"key": key})
        return value

    def _set_raw(self, key: str, value: str, ttl: int) -> None:
        if self.client is None:
            return
        try:
            self.client.setex(key, ttl, value)
        except redis.RedisError as exc:
            logger.warning("cache_set_failed", extra={"key": key, "error_message": str(exc)})

    def delete(self, *keys: str) -> None:
        if self.client is None or not keys:
            return
        try:
            self.client.delete(*keys)
        except redis.RedisError as exc:
            logger.warning(
                "cache_delete_failed",
                extra={"keys": list(keys), "error_message": str(exc)},
            )

    def _get_model(self, key: str, parse: Callable[[str], T]) -> T | None:
        raw = self._get_raw(key)
        if raw is None:
            return None
        try:
            return parse(raw)
        except ValueError:
            # Stale or foreign payload -- drop it and fall through to the source
            logger.warning("cache_decode_failed", extra={"key": key})
            self.delete(key)
            return None

    def _set_model(self, key: str, value: BaseModel | list[Any], ttl: int) -> None:
        if isinstance(value, BaseModel):
            payload = value.model_dump_json()
        else:
            payload = json.dumps(
                [item.model_dump(mode="json") for item in value]
            )
        self._set_raw(key, payload, ttl)

    # ------------------------------------------------------------------
    # Candidates
    # ------------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        return self._get_model(candidate_key(candidate_id), Candidate.model_validate_json)

    def set_candidate(self, candidate: Candidate) -> None:
        self._set_model(candidate_key(candidate.id), candidate, CACHE_TTL_MEDIUM)

    def get_candidate_list(self, user_id: str) -> list[Candidate] | None:
        return self._get_model(
            candidate_list_key(user_id), _candidate_list_adapter.validate_json
        )

    def set_candidate_list(self, user_id: str, candidates: list[Candidate]) -> None:
        self._set_model(candidate_list_key(user_id), candidates, CACHE_TTL_SHORT)

    def get_search_results(self, user_id: str, query: str) -> list[Candidate] | None:
        return self._get_model(
            search_key(user_id, query), _candidate_list_adapter.validate_json
        )

    def set_search_results(
        self, user_id: str, query: str, candidates: list[Candidate]
    ) -> None:
        self._set_model(search_key(user_id, query), candidates, CACHE_TTL_SHORT)

    def invalidate_candidate(self, candidate_id: str) -> None:
        """Drop the candidate record and every user's cached lists and searches.

        Candidates are shared, so any write invalidates every user's view.
        """
        self.delete(candidate_key(candidate_id))
        if self.client is None:
            return
        try:
            stale = [
                *self.client.scan_iter(match=candidate_list_key("*")),
                *self.client.scan_iter(match="search:*"),
            ]
        except redis.RedisError as exc:
            logger.warning(
                "cache_scan_failed",
                extra={"candidate_id": candidate_id, "error_message": str(exc)},
            )
            return
        self.delete(*stale)

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def get_notifications(self, user_id: str) -> list[Notification] | None:
        return self._get_model(
            notifications_key(user_id), _notification_list_adapter.validate_json
        )

    def set_notifications(self, user_id: str, notifications: list[Notification]) -> None:
        self._set_model(notifications_key(user_id), notifications, CACHE_TTL_SHORT)

    def invalidate_notifications(self, user_id: str) -> None:
        self.delete(notifications_key(user_id))

    # ------------------------------------------------------------------
    # Users and sessions
    # ------------------------------------------------------------------

    def get_user(self, user_id: str) -> User | None:
        return self._get_model(user_profile_key(user_id), User.model_validate_json)

    def set_user(self, user: User) -> None:
        self._set_model(user_profile_key(user.id), user, CACHE_TTL_LONG)

    def invalidate_user(self, user_id: str) -> None:
        self.delete(user_profile_key(user_id))

    def set_session(self, user_id: str, session: dict[str, Any]) -> None:
        self._set_raw(session_key(user_id), json.dumps(session), CACHE_TTL_DAY)

    def get_session(self, user_id: str) -> dict[str, Any] | None:
        return self._get_model(session_key(user_id), json.loads)

    def clear_user_cache(self, user_id: str) -> None:
        """Drop everything cached for a user, session included."""
        self.delete(
            user_profile_key(user_id),
            candidate_list_key(user_id),
            notifications_key(user_id),
            session_key(user_id),
            activity_key(user_id),
        )

    # ------------------------------------------------------------------
    # Recent activity
    # ------------------------------------------------------------------

    def add_activity(self, user_id: str, activity: dict[str, Any]) -> None:
        """Push an activity entry, keeping the newest ``RECENT_ACTIVITY_MAX``."""
        if self.client is None:
            return
        key = activity_key(user_id)
        entry = json.dumps({**activity, "timestamp": datetime.now(timezone.utc).isoformat()})
        try:
            pipe = self.client.pipeline()
            pipe.lpush(key, entry)
            pipe.ltrim(key, 0, RECENT_ACTIVITY_MAX - 1)
            pipe.expire(key, CACHE_TTL_WEEK)
            pipe.execute()
        except redis.RedisError as exc:
            logger.warning(
                "cache_activity_failed",
                extra={"user_id": user_id, "error_message": str(exc)},
            )

    def get_activity(self, user_id: str, limit: int = 10) -> list[dict[str, Any]]:
        if self.client is None:
            return []
        try:
            raw_entries = self.client.lrange(activity_key(user_id), 0, limit - 1)
        except redis.RedisError as exc:
            logger.warning(
                "cache_activity_read_failed",
                extra={"user_id": user_id, "error_message": str(exc)},
            )
            return []

        entries: list[dict[str, Any]] = []
        for raw in raw_entries:
            try:
                entries.append(json.loads(raw))
            except ValueError:
                entries.append({"activity": raw})
        return entries

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    def check_rate_limit(self, key: str, limit: int, window_seconds: int) -> bool:
        """Fixed-window counter.  Returns True when the call is allowed.

        Allows the call when the cache is disabled or unreachable.
        """
        if self.client is None:
            return True
        full_key = rate_limit_key(key)
        try:
            pipe = self.client.pipeline()
            pipe.set(full_key, 0, ex=window_seconds, nx=True)
            pipe.incr(full_key)
            _, count = pipe.execute()
        except redis.RedisError as exc:
            logger.warning(
                "rate_limit_check_failed",
                extra={"key": key, "error_message": str(exc)},
            )
            return True
        return int(count) <= limit

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health_check(self) -> str:
        """Return ``disabled``, ``connected`` or ``unavailable``."""
        if self.client is None:
            return "disabled"
        test_key = "health_check"
        test_value = datetime.now(timezone.utc).isoformat()
        try:
            self.client.setex(test_key, 10, test_value)
            retrieved = self.client.get(test_key)
            self.client.delete(test_key)
        except redis.RedisError:
            logger.warning("cache_health_check_failed", exc_info=True)
            return "unavailable"
        return "connected" if retrieved == test_value else "unavailable"
