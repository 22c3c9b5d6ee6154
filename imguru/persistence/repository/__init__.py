"""PostgreSQL repository implementations."""

from imguru.persistence.repository.counter import PostgresCounterRepository
from imguru.persistence.repository.post import PostgresPostRepository

__all__ = [
    "PostgresCounterRepository",
    "PostgresPostRepository",
]
