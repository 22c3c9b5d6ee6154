"""In-memory durable counter store for testing."""

from typing import Optional

from imguru.domain.error import DurableReadError, DurableWriteError
from imguru.domain.repository.counter import CounterRepository
from imguru.domain.value import CounterMetric, EntityKind, PostId
from imguru.persistence.repository.inmemory.post import InMemoryPostRepository


class InMemoryCounterRepository(CounterRepository):
    """Counter store over the in-memory post repository.

    Set ``fail_writes`` to make every set_count raise DurableWriteError.
    """

    def __init__(self, post_repository: InMemoryPostRepository) -> None:
        self.post_repository = post_repository
        self.fail_writes = False
        self.writes: list[tuple[str, int, str, int]] = []

    @staticmethod
    def _supported(entity_kind: str, metric: str) -> bool:
        return (entity_kind, metric) == (EntityKind.POST.value, CounterMetric.VIEWS.value)

    async def get_current_count(
        self, entity_kind: str, entity_id: int, metric: str
    ) -> Optional[int]:
        """Read the post's view count."""
        if not self._supported(entity_kind, metric):
            raise DurableReadError(f"No counter for {entity_kind}/{metric}")
        post = await self.post_repository.find_by_id(PostId(entity_id))
        if post is None or post.is_deleted:
            return None
        return post.view_count

    async def set_count(
        self, entity_kind: str, entity_id: int, metric: str, value: int
    ) -> bool:
        """Overwrite the post's view count."""
        if not self._supported(entity_kind, metric):
            raise DurableWriteError(entity_kind, entity_id, metric, "unsupported counter")
        if self.fail_writes:
            raise DurableWriteError(entity_kind, entity_id, metric, "simulated failure")
        self.writes.append((entity_kind, entity_id, metric, value))
        return self.post_repository.set_view_count(PostId(entity_id), value)
