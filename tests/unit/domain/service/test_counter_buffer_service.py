"""Unit tests for CounterBufferService."""

import asyncio
from typing import Optional

import pytest

from imguru.adapter.cache import InMemoryCounterBuffer
from imguru.domain.service import CounterBufferService
from imguru.domain.value import CounterKey
from imguru.persistence.repository.inmemory import (
    InMemoryCounterRepository,
    InMemoryPostRepository,
)
from tests.conftest import make_post
from tests.harness import create_env_fixture

# Unit test fixture - everything mocked, no docker needed
unit_env = create_env_fixture()


def views(post_id: int) -> CounterKey:
    return CounterKey(entity_kind="post", entity_id=post_id, metric="views")


class DrainingCounterBuffer(InMemoryCounterBuffer):
    """Buffer whose entry is drained right before the first guarded increment."""

    def __init__(self, post_repository: InMemoryPostRepository) -> None:
        super().__init__()
        self.post_repository = post_repository
        self.drained = False

    async def increment_by(
        self, key: CounterKey, delta: int, create: bool = True
    ) -> Optional[int]:
        if not create and not self.drained:
            self.drained = True
            value = await self.get(key)
            # A reconciliation pass writes the seeded total and clears it
            self.post_repository.set_view_count(key.entity_id, value)
            await self.delete(key)
        return await super().increment_by(key, delta, create)


class TestRecordEvent:
    """Tests for record_event."""

    @pytest.mark.asyncio
    async def test_first_event_seeds_from_durable_count(self, unit_env):
        """A missing entry is seeded with the durable total before incrementing."""
        # Arrange
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))

        # Act
        result = await service.record_event("post", 1, "views")

        # Assert
        assert result == 11
        assert await buffer.get(views(1)) == 11

        # Durable store untouched until reconciliation
        post = await posts.find_by_id(1)
        assert post.view_count == 10

    @pytest.mark.asyncio
    async def test_existing_entry_is_incremented_without_reseeding(self, unit_env):
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))
        await buffer.put(views(1), 50)

        result = await service.record_event("post", 1, "views")

        assert result == 51
        assert await buffer.get(views(1)) == 51

    @pytest.mark.asyncio
    async def test_sequential_events_accumulate(self, unit_env):
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))

        for _ in range(3):
            await service.record_event("post", 1, "views")

        assert await buffer.get(views(1)) == 13

    @pytest.mark.asyncio
    async def test_concurrent_events_are_all_counted(self, unit_env):
        """N concurrent events on an unseeded key raise the total by exactly N."""
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=100))

        results = await asyncio.gather(
            *(service.record_event("post", 1, "views") for _ in range(25))
        )

        assert await buffer.get(views(1)) == 125
        assert sorted(results) == list(range(101, 126))

    @pytest.mark.asyncio
    async def test_events_for_different_entities_are_independent(self, unit_env):
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=5))
        await posts.save(make_post(2, view_count=20))

        await service.record_event("post", 1, "views")
        await service.record_event("post", 2, "views")
        await service.record_event("post", 2, "views")

        assert await buffer.get(views(1)) == 6
        assert await buffer.get(views(2)) == 22

    @pytest.mark.asyncio
    async def test_buffer_unavailable_drops_event_silently(self, unit_env):
        """An unreachable buffer never surfaces to the caller."""
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))
        await posts.save(make_post(2, view_count=3))
        await buffer.put(views(2), 7)

        buffer.available = False
        result = await service.record_event("post", 1, "views")
        buffer.available = True

        assert result is None
        assert await buffer.get(views(1)) is None
        assert await buffer.get(views(2)) == 7

    @pytest.mark.asyncio
    async def test_missing_entity_is_not_recorded(self, unit_env):
        service = await unit_env.get(CounterBufferService)
        buffer = await unit_env.get(InMemoryCounterBuffer)

        result = await service.record_event("post", 404, "views")

        assert result is None
        assert await buffer.scan_keys() == []

    @pytest.mark.asyncio
    async def test_deleted_entity_is_not_recorded(self, unit_env):
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10, deleted=True))

        result = await service.record_event("post", 1, "views")

        assert result is None
        assert await buffer.get(views(1)) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "entity_kind, metric", [("post", ""), ("po::st", "views"), ("", "views")]
    )
    async def test_invalid_counter_key_is_dropped(self, unit_env, entity_kind, metric):
        """A key that fails validation never reaches the caller as an error."""
        service = await unit_env.get(CounterBufferService)
        buffer = await unit_env.get(InMemoryCounterBuffer)

        result = await service.record_event(entity_kind, 1, metric)

        assert result is None
        assert await buffer.scan_keys() == []

    @pytest.mark.asyncio
    async def test_unknown_counter_is_dropped(self, unit_env):
        """A durable read failure during seeding drops the event."""
        service = await unit_env.get(CounterBufferService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1))

        result = await service.record_event("post", 1, "likes")

        assert result is None
        assert await buffer.scan_keys() == []

    @pytest.mark.asyncio
    async def test_entry_drained_before_increment_is_reseeded(self):
        """A drain between seeding and incrementing reseeds from the new durable total."""
        posts = InMemoryPostRepository()
        buffer = DrainingCounterBuffer(posts)
        service = CounterBufferService(buffer, InMemoryCounterRepository(posts))
        await posts.save(make_post(1, view_count=10))

        result = await service.record_event("post", 1, "views")

        assert buffer.drained
        assert result == 11
        assert await buffer.get(views(1)) == 11
        post = await posts.find_by_id(1)
        assert post.view_count == 10
