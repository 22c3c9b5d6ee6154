"""Counter buffer infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import redis.asyncio as redis

from imguru.adapter.cache import RedisCounterBuffer, create_redis_client
from imguru.config import Settings
from imguru.domain.repository import CounterBuffer
from imguru.util.di.base import ProviderBase
from imguru.util.observability import instrument_redis


class BufferProvider(ProviderBase):
    """Counter buffer component base."""

    __mock_component__ = "buffer"


class ProdBufferProvider(BufferProvider):
    """Production counter buffer provider using Redis."""

    __is_mock__ = False

    @provide(scope=Scope.APP)
    async def get_redis_client(self, settings: Settings) -> AsyncIterator[redis.Redis]:
        """Provide Redis client, closed when the container closes."""
        instrument_redis()
        client = create_redis_client(settings)
        yield client
        await client.aclose()

    @provide(scope=Scope.APP)
    def get_counter_buffer(
        self, redis_client: redis.Redis, settings: Settings
    ) -> CounterBuffer:
        """Provide Redis-backed counter buffer."""
        return RedisCounterBuffer(redis_client, namespace=settings.redis.namespace)
