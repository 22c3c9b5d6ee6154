"""Post aggregate root."""

from datetime import datetime
from typing import Optional

from pydantic import Field

from imguru.domain.model.common import DomainModel
from imguru.domain.value import MemberId, PostId


class Post(DomainModel):
    """Post aggregate root.

    ``view_count`` is the durable count. Views recorded since the last
    reconciliation live in the counter buffer, not here.
    """

    id: PostId
    title: str = Field(min_length=1, max_length=300)
    content: str = Field(default="", max_length=10000)
    author_id: MemberId
    view_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        """Whether the post has been soft-deleted."""
        return self.deleted_at is not None
