"""User directory backed by the ``users`` table.

The directory is read fresh for every mention resolution and candidate
broadcast; only single-profile lookups go through the cache.
"""

from __future__ import annotations

import logging
from typing import Any

from supabase import Client

from app.core.exceptions import NotFoundError
from app.db.supabase import utc_now_iso
from app.models.user import User
from app.services.cache import CacheService

logger = logging.getLogger(__name__)


def _row_to_user(row: dict[str, Any]) -> User:
    return User(
        id=str(row["id"]),
        name=row.get("name") or "",
        email=row.get("email") or "",
        created_at=row.get("created_at"),
    )


def list_users(client: Client) -> list[User]:
    """Return every registered user."""
    result = client.table("users").select("id, name, email, created_at").execute()
    return [_row_to_user(row) for row in result.data or []]


def find_users(client: Client, query: str = "") -> list[User]:
    """Filter the directory by case-insensitive name/email substring.

    An empty query returns everyone (used by mention autocomplete).
    """
    users = list_users(client)
    needle = query.strip().lower()
    if not needle:
        return users
    return [
        user for user in users
        if needle in user.name.lower() or needle in user.email.lower()
    ]


def get_user(client: Client, user_id: str, cache: CacheService | None = None) -> User:
    """Fetch one profile, read-through the cache.  Raises NotFoundError."""
    if cache is not None:
        cached = cache.get_user(user_id)
        if cached is not None:
            return cached

    result = (
        client.table("users")
        .select("id, name, email, created_at")
        .eq("id", user_id)
        .limit(1)
        .execute()
    )
    rows = result.data or []
    if not rows:
        raise NotFoundError("User not found")

    user = _row_to_user(rows[0])
    if cache is not None:
        cache.set_user(user)
    return user


def create_profile(client: Client, user_id: str, name: str, email: str) -> User:
    """Insert the ``users`` row for a freshly signed-up identity."""
    row = {
        "id": user_id,
        "name": name,
        "email": email,
        "created_at": utc_now_iso(),
    }
    result = client.table("users").insert(row).execute()
    stored = (result.data or [row])[0]
    logger.info("user_profile_created", extra={"user_id": user_id})
    return _row_to_user(stored)


def update_display_name(
    client: Client,
    user_id: str,
    name: str,
    cache: CacheService | None = None,
) -> User:
    """Change a user's display name.  The only mutable profile field."""
    result = (
        client.table("users")
        .update({"name": name, "updated_at": utc_now_iso()})
        .eq("id", user_id)
        .execute()
    )
    rows = result.data or []
    if not rows:
        raise NotFoundError("User not found")

    if cache is not None:
        cache.invalidate_user(user_id)
    logger.info("user_display_name_updated", extra={"user_id": user_id})
    return _row_to_user(rows[0])
