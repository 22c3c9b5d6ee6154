"""Redis client construction."""

import redis.asyncio as redis

from imguru.config import Settings


def create_redis_client(settings: Settings) -> redis.Redis:
    """Create async Redis client for the counter buffer.

    Args:
        settings: Application settings with Redis URL and timeouts

    Returns:
        Redis client returning decoded strings
    """
    return redis.from_url(
        settings.redis.url,
        decode_responses=True,
        socket_timeout=settings.redis.socket_timeout_seconds,
        socket_connect_timeout=settings.redis.socket_connect_timeout_seconds,
        health_check_interval=30,
    )
