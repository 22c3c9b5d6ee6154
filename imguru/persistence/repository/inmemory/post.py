"""In-memory post repository for testing."""

from typing import Optional

from imguru.domain.model.post import Post
from imguru.domain.repository.post import PostRepository
from imguru.domain.value import PostId


class InMemoryPostRepository(PostRepository):
    """In-memory implementation of PostRepository for testing."""

    def __init__(self) -> None:
        self._posts: dict[PostId, Post] = {}

    async def find_by_id(self, post_id: PostId) -> Optional[Post]:
        """Find a post by ID."""
        return self._posts.get(post_id)

    async def save(self, post: Post) -> Post:
        """Save or update a post (view_count of an existing post is kept)."""
        existing = self._posts.get(post.id)
        if existing is not None:
            post = post.model_copy(update={"view_count": existing.view_count})
        self._posts[post.id] = post
        return post

    def set_view_count(self, post_id: PostId, value: int) -> bool:
        """Overwrite a live post's view count."""
        post = self._posts.get(post_id)
        if post is None or post.is_deleted:
            return False
        self._posts[post_id] = post.model_copy(update={"view_count": value})
        return True
