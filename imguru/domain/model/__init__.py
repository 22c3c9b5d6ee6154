"""Domain model entities."""

from imguru.domain.model.post import Post

__all__ = [
    "Post",
]
