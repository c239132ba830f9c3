"""Lazy provider construction and process-wide disabling."""

from collections.abc import Callable

from odds_aggregator.config import Settings, get_settings
from odds_aggregator.monitoring import get_logger
from odds_aggregator.providers.arbitrage import ArbitrageProvider
from odds_aggregator.providers.base import BaseOddsProvider
from odds_aggregator.providers.errors import ProviderAuthError
from odds_aggregator.providers.primary import PrimaryOddsProvider
from odds_aggregator.providers.scoreboard import PublicScoreboardProvider
from odds_aggregator.providers.secondary import SecondaryOddsProvider

log = get_logger()

ProviderFactory = Callable[[Settings], BaseOddsProvider]

DEFAULT_FACTORIES: dict[str, ProviderFactory] = {
    PrimaryOddsProvider.name: lambda s: PrimaryOddsProvider(settings=s),
    SecondaryOddsProvider.name: lambda s: SecondaryOddsProvider(settings=s),
    PublicScoreboardProvider.name: lambda s: PublicScoreboardProvider(settings=s),
    ArbitrageProvider.name: lambda s: ArbitrageProvider(settings=s),
}


class ProviderRegistry:
    """Build providers on first use and remember which ones are unusable.

    A provider whose credential is missing or rejected is disabled until
    reset(); callers see it as unavailable instead of paying for a failing
    request on every sync.

    Attributes:
        disabled: Provider name -> reason it was disabled
    """

    def __init__(
        self,
        factories: dict[str, ProviderFactory] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._factories = dict(factories if factories is not None else DEFAULT_FACTORIES)
        self._instances: dict[str, BaseOddsProvider] = {}
        self.disabled: dict[str, str] = {}

    @property
    def names(self) -> list[str]:
        return list(self._factories)

    def get(self, name: str) -> BaseOddsProvider | None:
        """Return the provider, or None if unknown or disabled."""
        if name in self.disabled or name not in self._factories:
            return None
        if name not in self._instances:
            try:
                self._instances[name] = self._factories[name](self.settings)
            except ProviderAuthError as e:
                self.disable(name, str(e))
                return None
        return self._instances[name]

    def disable(self, name: str, reason: str) -> None:
        self.disabled[name] = reason
        self._instances.pop(name, None)
        log.warning("provider_disabled", provider=name, reason=reason)

    def reset(self) -> None:
        self.disabled.clear()
        self._instances.clear()
