"""Repository interfaces.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence and adapter layers.
"""

from imguru.domain.repository.counter import CounterRepository
from imguru.domain.repository.counter_buffer import CounterBuffer
from imguru.domain.repository.post import PostRepository

__all__ = [
    "CounterBuffer",
    "CounterRepository",
    "PostRepository",
]
