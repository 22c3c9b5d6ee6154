"""Post routes."""

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter, HTTPException, status

from imguru.application.usecase.post import (
    GetPostRequest,
    GetPostResponse,
    GetPostUseCase,
)
from imguru.domain.error import NotFoundError

router = APIRouter(prefix="/posts", tags=["posts"], route_class=DishkaRoute)


@router.get("/{post_id}", response_model=GetPostResponse)
async def get_post(
    post_id: int,
    get_post_use_case: FromDishka[GetPostUseCase],
) -> GetPostResponse:
    """Get a post by ID. Each call counts as one view.

    Raises:
        HTTPException: 404 if the post does not exist or is deleted
    """
    try:
        return await get_post_use_case.execute(GetPostRequest(post_id=post_id))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
