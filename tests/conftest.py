"""Test configuration and fixtures."""

from datetime import datetime, timezone

from imguru.domain.model import Post
from imguru.domain.value import MemberId, PostId


def make_post(
    post_id: int,
    view_count: int = 0,
    deleted: bool = False,
    title: str | None = None,
) -> Post:
    """Helper function to build test posts.

    Args:
        post_id: Post identifier
        view_count: Durable view count to start from
        deleted: Whether the post is soft-deleted
        title: Optional title, derived from the id by default

    Returns:
        Post domain model
    """
    now = datetime.now(timezone.utc)
    return Post(
        id=PostId(post_id),
        title=title or f"Post {post_id}",
        content="Lorem ipsum",
        author_id=MemberId(1),
        view_count=view_count,
        created_at=now,
        updated_at=now,
        deleted_at=now if deleted else None,
    )
