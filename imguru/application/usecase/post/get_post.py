"""Get post use case."""

from datetime import datetime

from pydantic import BaseModel

from imguru.application.usecase.base import BaseUseCase
from imguru.domain.error import NotFoundError
from imguru.domain.repository import PostRepository
from imguru.domain.service import CounterBufferService
from imguru.domain.value import CounterMetric, EntityKind, PostId


class GetPostRequest(BaseModel):
    """Get post request."""

    post_id: int


class GetPostResponse(BaseModel):
    """Get post response."""

    post_id: int
    title: str
    content: str
    author_id: int
    view_count: int
    created_at: datetime
    updated_at: datetime


class GetPostUseCase(BaseUseCase):
    """Use case for reading a post, counting the read as a view."""

    def __init__(
        self,
        post_repository: PostRepository,
        counter_buffer_service: CounterBufferService,
    ) -> None:
        """Initialize get post use case.

        Args:
            post_repository: Post repository
            counter_buffer_service: Buffered view counter
        """
        self.post_repository = post_repository
        self.counter_buffer_service = counter_buffer_service

    async def execute(self, request: GetPostRequest) -> GetPostResponse:
        """Execute get post flow.

        The returned view count includes views still sitting in the buffer.
        If the view could not be recorded the durable count is returned.

        Raises:
            NotFoundError: If the post does not exist or is deleted
        """
        post = await self.post_repository.find_by_id(PostId(request.post_id))
        if post is None or post.is_deleted:
            raise NotFoundError("Post", str(request.post_id))

        live_views = await self.counter_buffer_service.record_event(
            EntityKind.POST.value, post.id, CounterMetric.VIEWS.value
        )

        return GetPostResponse(
            post_id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            view_count=live_views if live_views is not None else post.view_count,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
