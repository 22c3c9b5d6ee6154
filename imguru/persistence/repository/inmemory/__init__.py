"""In-memory repository implementations for testing."""

from .counter import InMemoryCounterRepository
from .post import InMemoryPostRepository

__all__ = [
    "InMemoryCounterRepository",
    "InMemoryPostRepository",
]
