"""Post repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from imguru.domain.model.post import Post
from imguru.domain.value import PostId


class PostRepository(ABC):
    """Repository for Post aggregate.

    Only the read path the counters hang off is modelled here.
    """

    @abstractmethod
    async def find_by_id(self, post_id: PostId) -> Optional[Post]:
        """Find a post by ID.

        Args:
            post_id: The post's unique identifier

        Returns:
            The post if found (including soft-deleted posts), None otherwise
        """
        pass

    @abstractmethod
    async def save(self, post: Post) -> Post:
        """Save a post (create or update).

        Args:
            post: The post to save

        Returns:
            The saved post
        """
        pass
