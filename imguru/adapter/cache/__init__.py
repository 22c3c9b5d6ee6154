"""Counter buffer adapters."""

from .buffer import InMemoryCounterBuffer, RedisCounterBuffer
from .client import create_redis_client

__all__ = [
    "InMemoryCounterBuffer",
    "RedisCounterBuffer",
    "create_redis_client",
]
