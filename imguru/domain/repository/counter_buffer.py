"""Counter buffer store interface.

The buffer is a fast, shared key/value store with a two-level layout: an
outer key per entity (``<kind>::<id>``) holding one integer field per metric.
Every operation on a single (key, field) pair must be atomic.
"""

from abc import ABC, abstractmethod
from typing import Optional

from imguru.domain.value import CounterKey


class CounterBuffer(ABC):
    """Buffer for high-frequency counter increments.

    All methods raise BufferUnavailableError when the store cannot be reached.
    """

    @abstractmethod
    async def get(self, key: CounterKey) -> Optional[int]:
        """Read the buffered value, or None if absent."""
        pass

    @abstractmethod
    async def put(self, key: CounterKey, value: int) -> bool:
        """Seed an entry if it is absent.

        Returns:
            True if the value was written, False if an entry already existed
        """
        pass

    @abstractmethod
    async def increment_by(
        self, key: CounterKey, delta: int, create: bool = True
    ) -> Optional[int]:
        """Atomically add ``delta`` to the entry.

        Args:
            key: Counter key
            delta: Amount to add
            create: When True an absent entry is created with value ``delta``.
                When False an absent entry is left absent.

        Returns:
            The new value, or None if the entry was absent and create is False
        """
        pass

    @abstractmethod
    async def delete(self, key: CounterKey) -> None:
        """Remove the entry."""
        pass

    @abstractmethod
    async def delete_if_equals(self, key: CounterKey, expected: int) -> bool:
        """Atomically remove the entry only if it still holds ``expected``.

        Returns:
            True if the entry was removed
        """
        pass

    @abstractmethod
    async def scan_keys(self, prefix: str = "") -> list[str]:
        """List outer keys starting with ``prefix``.

        Keys are returned raw; callers parse them with CounterKey.from_buffer_key.
        """
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the store answers."""
        pass
