"""Mention parsing and resolution.

``parse_mentions`` extracts ``@name`` tokens from note text.
``resolve_mention`` maps one token onto directory users using a
deliberately permissive, case-insensitive policy; any of these qualifies:

1. the user's display name equals the token,
2. the display name contains the token, or the token contains the
   display name,
3. the user's email contains the token.

All qualifying users are returned, so "Jan" resolves both "Jane" and
"Janet".  Ambiguous resolutions are logged for later tightening rather
than narrowed to one user.  The resolver knows nothing about the note's
author; suppressing self-notifications is the fan-out's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from app.core.constants import MENTION_PATTERN
from app.models.user import User

logger = logging.getLogger(__name__)


def parse_mentions(text: str) -> list[str]:
    """Return mention tokens (without ``@``) in order of appearance.

    Duplicates are kept.  A token runs across single spaces while more
    word characters follow, so ``"@John on this candidate"`` yields
    ``"John on this candidate"``; punctuation from ``. , ! ?`` ends it.
    """
    return [match.group(1) for match in MENTION_PATTERN.finditer(text)]


def _matches(mention: str, user: User) -> bool:
    name = user.name.lower()
    email = user.email.lower()

    if name == mention:
        return True
    if mention in name:
        return True
    if name and name in mention:
        return True
    return mention in email


def resolve_mention(mention: str, users: Iterable[User]) -> list[User]:
    """Return every directory user matching ``mention``."""
    needle = mention.strip().lower()
    if not needle:
        return []

    matched = [user for user in users if _matches(needle, user)]

    if len(matched) > 1:
        logger.warning(
            "mention_ambiguous",
            extra={
                "mention": mention,
                "match_count": len(matched),
                "user_ids": [u.id for u in matched],
            },
        )
    return matched


def resolve_mentions(mentions: Sequence[str], users: Sequence[User]) -> list[str]:
    """Resolve all tokens of a note into an ordered, de-duplicated ID list.

    This is the list stored on the note.  Unresolved tokens contribute
    nothing.
    """
    resolved: list[str] = []
    seen: set[str] = set()
    for mention in mentions:
        for user in resolve_mention(mention, users):
            if user.id not in seen:
                seen.add(user.id)
                resolved.append(user.id)
    return resolved
