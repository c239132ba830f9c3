"""Upstream odds provider adapters.

Each adapter knows only its own upstream shape and emits NormalizedEvent
lists; see odds_aggregator.normalization for the canonical models.
"""

from odds_aggregator.providers.arbitrage import ArbitrageProvider
from odds_aggregator.providers.base import BaseOddsProvider
from odds_aggregator.providers.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderRateLimitError,
    ProviderTransientError,
    ProviderUnavailableError,
)
from odds_aggregator.providers.primary import PrimaryOddsProvider
from odds_aggregator.providers.registry import ProviderRegistry
from odds_aggregator.providers.report import SyncReport
from odds_aggregator.providers.scoreboard import PublicScoreboardProvider
from odds_aggregator.providers.secondary import SecondaryOddsProvider

__all__ = [
    "BaseOddsProvider",
    "PrimaryOddsProvider",
    "SecondaryOddsProvider",
    "PublicScoreboardProvider",
    "ArbitrageProvider",
    "ProviderRegistry",
    "SyncReport",
    "ProviderError",
    "ProviderAuthError",
    "ProviderRateLimitError",
    "ProviderTransientError",
    "ProviderUnavailableError",
]
