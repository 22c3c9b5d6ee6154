"""Core DI providers (non-mockable)."""

from dishka import Scope, provide

from imguru.config import Settings, ViewCounterSettings
from imguru.util.di.base import ProviderBase


class ProdConfigProvider(ProviderBase):
    """Production config provider - concrete, no mocks needed.

    Settings are loaded from environment variables and .env file automatically.
    """

    @provide(scope=Scope.APP)
    def provide_settings(self) -> Settings:
        """Provide application settings from environment."""
        return Settings()

    @provide(scope=Scope.APP)
    def provide_view_counter_settings(self, settings: Settings) -> ViewCounterSettings:
        """Provide view counter settings."""
        return settings.view_counter
