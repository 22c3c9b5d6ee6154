"""Health check routes."""

from datetime import datetime

from dishka.integrations.fastapi import DishkaRoute, FromDishka
from fastapi import APIRouter
from pydantic import BaseModel

from imguru.config import Settings
from imguru.domain.repository import CounterBuffer


router = APIRouter(tags=["health"], route_class=DishkaRoute)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    version: str
    git_sha: str
    counter_buffer: bool


@router.get("/health", response_model=HealthResponse)
async def health_check(
    settings: FromDishka[Settings], counter_buffer: FromDishka[CounterBuffer]
) -> HealthResponse:
    """Basic health check endpoint.

    A counter buffer outage only degrades view counting, so the service
    reports "degraded" rather than failing.
    """
    buffer_ok = await counter_buffer.ping()
    return HealthResponse(
        status="healthy" if buffer_ok else "degraded",
        timestamp=datetime.now(),
        version="0.1.0",
        git_sha=settings.git_sha,
        counter_buffer=buffer_ok,
    )
