"""Buffered counter recording.

Reads of content call ``record_event``. The increment lands in the counter
buffer; the durable store is only read once per entry, to seed the
accumulator with the current durable total. The buffered value is therefore
always an absolute running total, which the reconciliation worker writes
back as-is.
"""

from typing import Optional

import logfire
from pydantic import ValidationError

from imguru.domain.error import CounterError
from imguru.domain.repository import CounterBuffer, CounterRepository
from imguru.domain.value import CounterKey

from .base import Service


class CounterBufferService(Service):
    """Records counter events into the buffer."""

    def __init__(
        self, counter_buffer: CounterBuffer, counter_repository: CounterRepository
    ) -> None:
        """Initialize counter buffer service.

        Args:
            counter_buffer: Buffer store absorbing increments
            counter_repository: Durable store used for seeding
        """
        self.counter_buffer = counter_buffer
        self.counter_repository = counter_repository

    async def record_event(
        self, entity_kind: str, entity_id: int, metric: str
    ) -> Optional[int]:
        """Record one occurrence of ``metric`` for an entity.

        Never raises: an invalid key or a buffer or durable store failure
        drops the event and logs it instead.

        Args:
            entity_kind: Kind of entity (e.g. "post")
            entity_id: Entity identifier
            metric: Metric name (e.g. "views")

        Returns:
            The buffered total after the increment, or None if the event was dropped
        """
        try:
            key = CounterKey(
                entity_kind=entity_kind, entity_id=entity_id, metric=metric
            )
        except ValidationError as e:
            logfire.warn(
                "Counter event dropped, invalid counter key",
                entity_kind=entity_kind,
                entity_id=entity_id,
                metric=metric,
                error=str(e),
            )
            return None

        with logfire.span("counter_buffer.record_event", key=str(key)):
            try:
                return await self._increment(key)
            except CounterError as e:
                logfire.warn(
                    "Counter event dropped",
                    key=str(key),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                return None

    async def _increment(self, key: CounterKey) -> Optional[int]:
        if await self.counter_buffer.get(key) is None:
            if not await self._seed(key):
                return None

        value = await self.counter_buffer.increment_by(key, 1, create=False)
        if value is not None:
            return value

        # Drained between seeding and incrementing; seed from the fresh durable total
        logfire.debug("Counter entry drained before increment, reseeding", key=str(key))
        if not await self._seed(key):
            return None

        value = await self.counter_buffer.increment_by(key, 1, create=False)
        if value is None:
            logfire.warn("Counter entry vanished twice, event dropped", key=str(key))
        return value

    async def _seed(self, key: CounterKey) -> bool:
        baseline = await self.counter_repository.get_current_count(
            key.entity_kind, key.entity_id, key.metric
        )
        if baseline is None:
            logfire.warn("Counted entity not found, event not recorded", key=str(key))
            return False

        written = await self.counter_buffer.put(key, baseline)
        logfire.debug(
            "Counter entry seeded" if written else "Counter entry already seeded",
            key=str(key),
            baseline=baseline,
        )
        return True
