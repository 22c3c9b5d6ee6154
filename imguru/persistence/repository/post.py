"""PostgreSQL implementation of Post repository."""

from typing import Optional

import logfire
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from imguru.domain.model import Post
from imguru.domain.repository.post import PostRepository
from imguru.domain.value import PostId
from imguru.persistence.mappers import post_to_dict, row_to_post
from imguru.persistence.tables import posts_table


class PostgresPostRepository(PostRepository):
    """PostgreSQL implementation of PostRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def find_by_id(self, post_id: PostId) -> Optional[Post]:
        """Find a post by ID."""
        with logfire.span("post_repository.find_by_id", post_id=post_id):
            stmt = select(posts_table).where(posts_table.c.id == post_id)
            result = await self.session.execute(stmt)
            row = result.fetchone()

            if not row:
                logfire.warn("Post not found", post_id=post_id)
                return None

            return row_to_post(row._asdict())

    async def save(self, post: Post) -> Post:
        """Save a post (create or update).

        Updates never touch view_count; the reconciliation worker owns it.
        """
        with logfire.span("post_repository.save", post_id=post.id, title=post.title):
            existing = await self.find_by_id(post.id)
            post_dict = post_to_dict(post)

            if existing:
                logfire.info("Updating existing post", post_id=post.id)
                post_dict.pop("view_count")
                stmt = (
                    posts_table.update()
                    .where(posts_table.c.id == post.id)
                    .values(**post_dict)
                )
            else:
                logfire.info("Inserting new post", post_id=post.id, title=post.title)
                stmt = posts_table.insert().values(**post_dict)

            await self.session.execute(stmt)
            return post
