"""Durable counter store interface."""

from abc import ABC, abstractmethod
from typing import Optional


class CounterRepository(ABC):
    """Authoritative, persistent counter values.

    Implementations live in the persistence layer. Only the reconciliation
    worker writes through this interface.
    """

    @abstractmethod
    async def get_current_count(
        self, entity_kind: str, entity_id: int, metric: str
    ) -> Optional[int]:
        """Read the durable count for an entity's metric.

        Args:
            entity_kind: Kind of entity (e.g. "post")
            entity_id: Entity identifier
            metric: Metric name (e.g. "views")

        Returns:
            The current count, or None if the entity does not exist or is deleted
        """
        pass

    @abstractmethod
    async def set_count(
        self, entity_kind: str, entity_id: int, metric: str, value: int
    ) -> bool:
        """Overwrite the durable count with an absolute value.

        Must be safe to repeat with the same value.

        Args:
            entity_kind: Kind of entity
            entity_id: Entity identifier
            metric: Metric name
            value: New absolute total

        Returns:
            True if written, False if the entity no longer exists

        Raises:
            DurableWriteError: If the store fails the write
        """
        pass
