"""Counter buffer implementations.

Redis layout: one hash per entity at ``<namespace><kind>::<id>``, one
integer field per metric.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

import logfire
import redis.asyncio as redis
from redis.exceptions import RedisError, ResponseError

from imguru.domain.error import BufferUnavailableError, MalformedBufferKeyError
from imguru.domain.repository import CounterBuffer
from imguru.domain.value import CounterKey

# HINCRBY only when the field exists; nil otherwise
INCREMENT_EXISTING_SCRIPT = """
if redis.call('HEXISTS', KEYS[1], ARGV[1]) == 1 then
    return redis.call('HINCRBY', KEYS[1], ARGV[1], ARGV[2])
end
return false
"""

# HDEL only when the field still holds the expected value
DELETE_IF_EQUALS_SCRIPT = """
if redis.call('HGET', KEYS[1], ARGV[1]) == ARGV[2] then
    return redis.call('HDEL', KEYS[1], ARGV[1])
end
return 0
"""

_GLOB_SPECIAL = "\\*?[]"


def _escape_glob(value: str) -> str:
    return "".join(f"\\{c}" if c in _GLOB_SPECIAL else c for c in value)


def _parse_count(key: CounterKey, raw: object) -> int:
    try:
        return int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise MalformedBufferKeyError(f"{key} (value {raw!r})") from None


@contextmanager
def _redis_errors(operation: str, key: Optional[CounterKey] = None) -> Iterator[None]:
    """Translate redis client failures into counter errors.

    A command rejected for one key (e.g. WRONGTYPE on a key that is not a
    hash) is a MalformedBufferKeyError for that key; anything else means the
    buffer is unavailable.
    """
    try:
        yield
    except ResponseError as e:
        if key is None:
            raise BufferUnavailableError(f"Redis {operation} failed: {e}") from e
        raise MalformedBufferKeyError(f"{key} ({operation}: {e})") from e
    except RedisError as e:
        raise BufferUnavailableError(f"Redis {operation} failed: {e}") from e


class RedisCounterBuffer(CounterBuffer):
    """Counter buffer backed by Redis hashes."""

    def __init__(self, redis_client: redis.Redis, namespace: str = "") -> None:
        """Initialize Redis counter buffer.

        Args:
            redis_client: Async Redis client created with decode_responses=True
            namespace: Prefix prepended to every outer key
        """
        self.redis = redis_client
        self.namespace = namespace

    def _name(self, key: CounterKey) -> str:
        return f"{self.namespace}{key.buffer_key}"

    async def get(self, key: CounterKey) -> Optional[int]:
        """Read the buffered value (HGET)."""
        with _redis_errors("HGET", key):
            raw = await self.redis.hget(self._name(key), key.metric)
        return None if raw is None else _parse_count(key, raw)

    async def put(self, key: CounterKey, value: int) -> bool:
        """Seed the entry if absent (HSETNX)."""
        with _redis_errors("HSETNX", key):
            return bool(await self.redis.hsetnx(self._name(key), key.metric, value))

    async def increment_by(
        self, key: CounterKey, delta: int, create: bool = True
    ) -> Optional[int]:
        """Atomically increment (HINCRBY, or a guarded script when create is False)."""
        if create:
            with _redis_errors("HINCRBY", key):
                return int(await self.redis.hincrby(self._name(key), key.metric, delta))

        with _redis_errors("EVAL increment", key):
            raw = await self.redis.eval(
                INCREMENT_EXISTING_SCRIPT, 1, self._name(key), key.metric, delta
            )
        return None if raw is None else int(raw)

    async def delete(self, key: CounterKey) -> None:
        """Remove the field (HDEL); Redis drops the hash once it is empty."""
        with _redis_errors("HDEL", key):
            await self.redis.hdel(self._name(key), key.metric)

    async def delete_if_equals(self, key: CounterKey, expected: int) -> bool:
        """Compare-and-delete via a Lua script."""
        with _redis_errors("EVAL delete", key):
            removed = await self.redis.eval(
                DELETE_IF_EQUALS_SCRIPT, 1, self._name(key), key.metric, str(expected)
            )
        return bool(removed)

    async def scan_keys(self, prefix: str = "") -> list[str]:
        """List outer keys with SCAN (never KEYS, which blocks the server)."""
        pattern = f"{_escape_glob(self.namespace)}{_escape_glob(prefix)}*"
        keys: list[str] = []
        with _redis_errors("SCAN"):
            async for name in self.redis.scan_iter(match=pattern, count=500):
                keys.append(name[len(self.namespace) :])

        logfire.debug("Counter buffer scanned", pattern=pattern, count=len(keys))
        return keys

    async def ping(self) -> bool:
        """Check that Redis answers."""
        try:
            return bool(await self.redis.ping())
        except RedisError as e:
            logfire.warn("Counter buffer ping failed", error=str(e))
            return False


class InMemoryCounterBuffer(CounterBuffer):
    """Process-local counter buffer for tests and local runs.

    No method awaits while touching state, so each call is atomic on the
    event loop. Set ``available = False`` to simulate an outage.
    """

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, int]] = {}
        self.available = True

    def _check(self) -> None:
        if not self.available:
            raise BufferUnavailableError("In-memory counter buffer is offline")

    def put_raw(self, raw_key: str, metric: str, value: int) -> None:
        """Store a value under an arbitrary outer key, bypassing CounterKey."""
        self._entries.setdefault(raw_key, {})[metric] = value

    async def get(self, key: CounterKey) -> Optional[int]:
        """Read the buffered value."""
        self._check()
        return self._entries.get(key.buffer_key, {}).get(key.metric)

    async def put(self, key: CounterKey, value: int) -> bool:
        """Seed the entry if absent."""
        self._check()
        fields = self._entries.setdefault(key.buffer_key, {})
        if key.metric in fields:
            return False
        fields[key.metric] = value
        return True

    async def increment_by(
        self, key: CounterKey, delta: int, create: bool = True
    ) -> Optional[int]:
        """Increment the entry."""
        self._check()
        fields = self._entries.get(key.buffer_key, {})
        if key.metric not in fields and not create:
            return None
        fields = self._entries.setdefault(key.buffer_key, fields)
        fields[key.metric] = fields.get(key.metric, 0) + delta
        return fields[key.metric]

    async def delete(self, key: CounterKey) -> None:
        """Remove the entry."""
        self._check()
        self._remove(key)

    async def delete_if_equals(self, key: CounterKey, expected: int) -> bool:
        """Remove the entry if it still holds ``expected``."""
        self._check()
        if self._entries.get(key.buffer_key, {}).get(key.metric) != expected:
            return False
        self._remove(key)
        return True

    async def scan_keys(self, prefix: str = "") -> list[str]:
        """List outer keys starting with ``prefix``."""
        self._check()
        return [k for k in self._entries if k.startswith(prefix)]

    async def ping(self) -> bool:
        """Report availability."""
        return self.available

    def _remove(self, key: CounterKey) -> None:
        fields = self._entries.get(key.buffer_key)
        if fields is None:
            return
        fields.pop(key.metric, None)
        if not fields:
            del self._entries[key.buffer_key]
