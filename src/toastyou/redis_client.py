"""Shared Redis client for notification fan-out.

Redis is optional: with no URL configured the client stays None and
notifications are skipped.
"""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_client: redis.Redis | None = None


async def init_redis(url: str, max_connections: int = 20) -> redis.Redis | None:
    """Create the shared client, or leave notifications disabled when url is empty."""
    global _client  # noqa: PLW0603
    if not url:
        logger.info("No Redis URL configured; notifications disabled")
        return None
    _client = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=max_connections,
        health_check_interval=30,
    )
    return _client


async def close_redis() -> None:
    global _client  # noqa: PLW0603
    if _client is not None:
        await _client.aclose()
        _client = None


def get_redis() -> redis.Redis | None:
    """The shared client, or None when notifications are disabled."""
    return _client
