"""Domain value objects."""

from imguru.domain.value.counter import KEY_SEPARATOR, CounterKey
from imguru.domain.value.identifiers import MemberId, PostId
from imguru.domain.value.types import CounterMetric, EntityKind

__all__ = [
    # Identifiers
    "PostId",
    "MemberId",
    # Types
    "CounterKey",
    "CounterMetric",
    "EntityKind",
    "KEY_SEPARATOR",
]
