"""Redis client factory.

The cache is optional: an empty ``REDIS_URL`` yields no client and the
cache layer treats every read as a miss.  ``redis.Redis.from_url`` does
not connect eagerly, so an unreachable server only surfaces on first use,
where the cache layer logs and fails open.
"""

import logging

import redis

logger = logging.getLogger(__name__)


def create_redis(url: str) -> redis.Redis | None:
    """Build a Redis client for ``url``, or None when caching is disabled."""
    if not url:
        logger.info("redis_disabled")
        return None
    try:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
    except ValueError:
        logger.warning("redis_invalid_url", exc_info=True)
        return None
    logger.info("redis_configured")
    return client
