"""Application layer DI providers."""

from dishka import Scope, provide

from imguru.application.usecase.post import GetPostUseCase
from imguru.application.worker import ReconciliationWorker
from imguru.config import ViewCounterSettings
from imguru.domain.repository import PostRepository
from imguru.domain.service import CounterBufferService, ReconciliationService
from imguru.util.di.base import ProviderBase


class ProdApplicationProvider(ProviderBase):
    """Production application provider - concrete, no mocks needed."""

    # Post use cases
    @provide(scope=Scope.REQUEST)
    def get_get_post_use_case(
        self,
        post_repository: PostRepository,
        counter_buffer_service: CounterBufferService,
    ) -> GetPostUseCase:
        """Provide get post use case."""
        return GetPostUseCase(
            post_repository=post_repository,
            counter_buffer_service=counter_buffer_service,
        )

    # Background workers
    @provide(scope=Scope.APP)
    def get_reconciliation_worker(
        self,
        reconciliation_service: ReconciliationService,
        view_counter_settings: ViewCounterSettings,
    ) -> ReconciliationWorker:
        """Provide the counter reconciliation worker (started by the app lifespan)."""
        return ReconciliationWorker(
            reconciliation_service=reconciliation_service,
            interval_seconds=view_counter_settings.flush_interval_seconds,
            flush_on_shutdown=view_counter_settings.flush_on_shutdown,
        )
