"""Application constants.

Contains mention/notification limits, cache key prefixes and TTL tiers,
and pagination bounds.
"""

import re

# ---------------------------------------------------------------------------
# Mentions
# `@` + word chars, optionally extended by single spaces + word chars,
# terminated by whitespace, end of text, or . , ! ?
# ---------------------------------------------------------------------------
MENTION_PATTERN: re.Pattern[str] = re.compile(r"@(\w+(?: \w+)*)(?=\s|$|[.,!?])")

NOTIFICATION_PREVIEW_LENGTH: int = 100
NOTIFICATION_PREVIEW_SUFFIX: str = "..."

# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------
DEFAULT_PAGE_SIZE: int = 20
MAX_PAGE_SIZE: int = 100

# ---------------------------------------------------------------------------
# Cache TTL tiers (seconds)
# ---------------------------------------------------------------------------
CACHE_TTL_SHORT: int = 5 * 60
CACHE_TTL_MEDIUM: int = 30 * 60
CACHE_TTL_LONG: int = 2 * 60 * 60
CACHE_TTL_DAY: int = 24 * 60 * 60
CACHE_TTL_WEEK: int = 7 * 24 * 60 * 60

RECENT_ACTIVITY_MAX: int = 50

# ---------------------------------------------------------------------------
# Realtime channels
# ---------------------------------------------------------------------------
PRESENCE_CHANNEL: str = "presence"
CANDIDATES_CHANNEL: str = "candidates"
SUBSCRIPTION_QUEUE_SIZE: int = 100

# ---------------------------------------------------------------------------
# AI summary
# ---------------------------------------------------------------------------
FOLLOW_UP_FALLBACK: str = "Unable to generate follow-up questions at this time."
