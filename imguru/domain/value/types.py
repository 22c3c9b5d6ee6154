"""Domain value types."""

from enum import Enum


class EntityKind(str, Enum):
    """Kinds of content whose reads are counted."""

    POST = "post"


class CounterMetric(str, Enum):
    """Well-known counter metrics."""

    VIEWS = "views"
