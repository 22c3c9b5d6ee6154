"""Unit tests for ReconciliationService."""

import asyncio

import pytest

from imguru.adapter.cache import InMemoryCounterBuffer
from imguru.domain.error import DurableWriteError
from imguru.domain.service import (
    CounterBufferService,
    ReconciliationReport,
    ReconciliationService,
)
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


class SelectiveFailureCounterRepository(InMemoryCounterRepository):
    """Fails durable writes for the given entity ids only."""

    def __init__(self, post_repository, failing_ids: set[int]) -> None:
        super().__init__(post_repository)
        self.failing_ids = failing_ids

    async def set_count(self, entity_kind, entity_id, metric, value):
        if entity_id in self.failing_ids:
            raise DurableWriteError(entity_kind, entity_id, metric, "connection reset")
        return await super().set_count(entity_kind, entity_id, metric, value)


class ConcurrentViewCounterRepository(InMemoryCounterRepository):
    """Records one more view in the buffer while the durable write is in flight."""

    def __init__(self, post_repository, counter_buffer) -> None:
        super().__init__(post_repository)
        self.counter_buffer = counter_buffer

    async def set_count(self, entity_kind, entity_id, metric, value):
        key = CounterKey(entity_kind=entity_kind, entity_id=entity_id, metric=metric)
        await self.counter_buffer.increment_by(key, 1, create=False)
        return await super().set_count(entity_kind, entity_id, metric, value)


class SlowCounterRepository(InMemoryCounterRepository):
    """Durable writes that never finish in time."""

    async def set_count(self, entity_kind, entity_id, metric, value):
        await asyncio.sleep(10)
        return await super().set_count(entity_kind, entity_id, metric, value)


def build_service(buffer, counter_repository, timeout: float = 5.0):
    return ReconciliationService(
        counter_buffer=buffer,
        counter_repository=counter_repository,
        metrics=["views"],
        operation_timeout_seconds=timeout,
    )


class TestReconcileScenarios:
    """End-to-end record/reconcile flows through the container."""

    @pytest.mark.asyncio
    async def test_buffered_views_are_written_and_cleared(self, unit_env):
        """Durable 10, three views, one pass: durable 13, buffer empty."""
        # Arrange
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))

        for _ in range(3):
            await recorder.record_event("post", 1, "views")

        # Act
        report = await reconciler.reconcile()

        # Assert
        post = await posts.find_by_id(1)
        assert post.view_count == 13
        assert await buffer.get(views(1)) is None
        assert await buffer.scan_keys() == []
        assert report.scanned == 1
        assert report.flushed == 1
        assert report.failed == 0

    @pytest.mark.asyncio
    async def test_repeated_passes_are_idempotent(self, unit_env):
        """Durable 0, one view, two passes: durable stays 1."""
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(2, view_count=0))
        await recorder.record_event("post", 2, "views")

        first = await reconciler.reconcile()
        after_first = (await posts.find_by_id(2)).view_count
        assert await buffer.scan_keys() == []

        second = await reconciler.reconcile()
        after_second = (await posts.find_by_id(2)).view_count

        assert after_first == 1
        assert after_second == 1
        assert await buffer.scan_keys() == []
        assert first.flushed == 1
        assert second == ReconciliationReport()

    @pytest.mark.asyncio
    async def test_malformed_key_is_skipped(self, unit_env):
        """A garbage key is reported and the valid key is still reconciled."""
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(3, view_count=4))
        await recorder.record_event("post", 3, "views")
        buffer.put_raw("garbage", "views", 5)

        report = await reconciler.reconcile()

        assert (await posts.find_by_id(3)).view_count == 5
        assert await buffer.get(views(3)) is None
        assert report.malformed == 1
        assert report.flushed == 1

    @pytest.mark.asyncio
    async def test_views_after_a_pass_continue_from_durable_total(self, unit_env):
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        await posts.save(make_post(1, view_count=10))

        await recorder.record_event("post", 1, "views")
        await reconciler.reconcile()
        result = await recorder.record_event("post", 1, "views")
        await reconciler.reconcile()

        assert result == 12
        assert (await posts.find_by_id(1)).view_count == 12

    @pytest.mark.asyncio
    async def test_empty_buffer_is_a_noop(self, unit_env):
        reconciler = await unit_env.get(ReconciliationService)
        counters = await unit_env.get(InMemoryCounterRepository)

        report = await reconciler.reconcile()

        assert report == ReconciliationReport()
        assert counters.writes == []


class TestReconcileFailures:
    """Failure handling during a pass."""

    @pytest.mark.asyncio
    async def test_buffer_unavailable_skips_pass(self, unit_env):
        """No durable writes and no deletions while the buffer is down."""
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        counters = await unit_env.get(InMemoryCounterRepository)
        await posts.save(make_post(1, view_count=10))
        await recorder.record_event("post", 1, "views")

        buffer.available = False
        report = await reconciler.reconcile()
        buffer.available = True

        assert report.buffer_unavailable
        assert report.scanned == 0
        assert counters.writes == []
        assert await buffer.get(views(1)) == 11

        # Next pass after recovery picks the entry up
        report = await reconciler.reconcile()
        assert report.flushed == 1
        assert (await posts.find_by_id(1)).view_count == 11

    @pytest.mark.asyncio
    async def test_durable_failure_keeps_entry_for_next_pass(self, unit_env):
        recorder = await unit_env.get(CounterBufferService)
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        counters = await unit_env.get(InMemoryCounterRepository)
        await posts.save(make_post(1, view_count=10))
        await recorder.record_event("post", 1, "views")
        await recorder.record_event("post", 1, "views")

        counters.fail_writes = True
        report = await reconciler.reconcile()

        assert report.failed == 1
        assert report.flushed == 0
        assert await buffer.get(views(1)) == 12
        assert (await posts.find_by_id(1)).view_count == 10

        counters.fail_writes = False
        report = await reconciler.reconcile()

        assert report.flushed == 1
        assert (await posts.find_by_id(1)).view_count == 12
        assert await buffer.get(views(1)) is None

    @pytest.mark.asyncio
    async def test_one_failing_key_does_not_block_others(self):
        posts = InMemoryPostRepository()
        buffer = InMemoryCounterBuffer()
        counters = SelectiveFailureCounterRepository(posts, failing_ids={1})
        await posts.save(make_post(1, view_count=10))
        await posts.save(make_post(2, view_count=20))
        await buffer.put(views(1), 15)
        await buffer.put(views(2), 25)

        report = await build_service(buffer, counters).reconcile()

        assert report.failed == 1
        assert report.flushed == 1
        assert await buffer.get(views(1)) == 15
        assert await buffer.get(views(2)) is None
        assert (await posts.find_by_id(1)).view_count == 10
        assert (await posts.find_by_id(2)).view_count == 25

    @pytest.mark.asyncio
    async def test_slow_durable_write_times_out(self):
        posts = InMemoryPostRepository()
        buffer = InMemoryCounterBuffer()
        counters = SlowCounterRepository(posts)
        await posts.save(make_post(1, view_count=10))
        await buffer.put(views(1), 11)

        report = await build_service(buffer, counters, timeout=0.05).reconcile()

        assert report.failed == 1
        assert await buffer.get(views(1)) == 11
        assert (await posts.find_by_id(1)).view_count == 10

    @pytest.mark.asyncio
    async def test_entry_grown_during_write_is_retained(self):
        """A view landing mid-pass is never lost; the next pass writes it."""
        posts = InMemoryPostRepository()
        buffer = InMemoryCounterBuffer()
        counters = ConcurrentViewCounterRepository(posts, buffer)
        await posts.save(make_post(1, view_count=10))
        await buffer.put(views(1), 11)
        service = build_service(buffer, counters)

        report = await service.reconcile()

        assert report.retained == 1
        assert (await posts.find_by_id(1)).view_count == 11
        assert await buffer.get(views(1)) == 12

        # Stop the simulated traffic and drain
        counters.counter_buffer = InMemoryCounterBuffer()
        report = await service.reconcile()

        assert report.flushed == 1
        assert (await posts.find_by_id(1)).view_count == 12
        assert await buffer.get(views(1)) is None

    @pytest.mark.asyncio
    async def test_deleted_entity_entry_is_discarded(self, unit_env):
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10, deleted=True))
        await buffer.put(views(1), 14)

        report = await reconciler.reconcile()

        assert report.discarded == 1
        assert await buffer.get(views(1)) is None
        assert (await posts.find_by_id(1)).view_count == 10

    @pytest.mark.asyncio
    async def test_metrics_outside_scope_are_left_alone(self, unit_env):
        reconciler = await unit_env.get(ReconciliationService)
        posts = await unit_env.get(InMemoryPostRepository)
        buffer = await unit_env.get(InMemoryCounterBuffer)
        await posts.save(make_post(1, view_count=10))
        buffer.put_raw("post::1", "likes", 4)

        report = await reconciler.reconcile()

        assert report.skipped == 1
        assert report.flushed == 0
        assert await buffer.scan_keys() == ["post::1"]
