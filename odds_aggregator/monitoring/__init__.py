"""Monitoring: structlog configuration and metrics dataclasses."""

from odds_aggregator.monitoring.logging import (
    bind_correlation_id,
    configure_logging,
    current_correlation_id,
    get_logger,
    unbind_correlation_id,
)
from odds_aggregator.monitoring.metrics import (
    CacheMetrics,
    ProviderMetrics,
    SportsbookMetrics,
    compute_sportsbook_metrics,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "bind_correlation_id",
    "current_correlation_id",
    "unbind_correlation_id",
    "SportsbookMetrics",
    "ProviderMetrics",
    "CacheMetrics",
    "compute_sportsbook_metrics",
]
