"""FastAPI application."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import logfire
from dishka import AsyncContainer
from fastapi import FastAPI

from imguru.application.worker import ReconciliationWorker
from imguru.config import Settings
from imguru.interface.api.routes import health, posts
from imguru.util.di.container import create_container, setup_di
from imguru.util.observability import instrument_fastapi


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the reconciliation worker with the app; stop it and the container on exit."""
    container: AsyncContainer = app.state.dishka_container
    settings = await container.get(Settings)

    worker: ReconciliationWorker | None = None
    if settings.view_counter.enabled:
        worker = await container.get(ReconciliationWorker)
        await worker.start()
    else:
        logfire.info("Reconciliation worker disabled")

    try:
        yield
    finally:
        try:
            if worker is not None:
                await worker.stop()
        finally:
            await container.close()


def create_app(container: AsyncContainer | None = None) -> FastAPI:
    """Create FastAPI application.

    Note: Logfire should be configured before calling this function.
    In production, start_app.py handles this.

    Args:
        container: DI container to use; the production container by default
    """
    app_instance = FastAPI(
        title="imguru API",
        description="Backend API for imguru",
        version="0.1.0",
        lifespan=lifespan,
    )

    instrument_fastapi(app_instance)

    setup_di(app_instance, container or create_container())

    app_instance.include_router(health.router)
    app_instance.include_router(posts.router)

    return app_instance
