"""Domain layer DI providers."""

from dishka import Scope, provide

from imguru.config import ViewCounterSettings
from imguru.domain.repository import CounterBuffer, CounterRepository
from imguru.domain.service import CounterBufferService, ReconciliationService
from imguru.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Counter services are APP-scoped: they hold no request state and the
    reconciliation worker outlives any request.
    """

    scope = Scope.APP

    @provide
    def get_counter_buffer_service(
        self, counter_buffer: CounterBuffer, counter_repository: CounterRepository
    ) -> CounterBufferService:
        """Provide buffered counter recording service."""
        return CounterBufferService(
            counter_buffer=counter_buffer, counter_repository=counter_repository
        )

    @provide
    def get_reconciliation_service(
        self,
        counter_buffer: CounterBuffer,
        counter_repository: CounterRepository,
        view_counter_settings: ViewCounterSettings,
    ) -> ReconciliationService:
        """Provide counter reconciliation service."""
        return ReconciliationService(
            counter_buffer=counter_buffer,
            counter_repository=counter_repository,
            metrics=view_counter_settings.metrics,
            operation_timeout_seconds=view_counter_settings.operation_timeout_seconds,
        )
