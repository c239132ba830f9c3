"""Canonical odds models and the shared helpers that produce them."""

from odds_aggregator.normalization.classification import OutcomeType, classify_outcome
from odds_aggregator.normalization.errors import ValidationSkip
from odds_aggregator.normalization.models import (
    MarketKey,
    NormalizedBookmakerQuote,
    NormalizedEvent,
    NormalizedMarket,
    NormalizedOutcome,
    SportDescriptor,
)
from odds_aggregator.normalization.odds import (
    american_to_decimal,
    decimal_to_american,
    decimal_to_implied_probability,
    normalize_odds,
)

__all__ = [
    "MarketKey",
    "OutcomeType",
    "NormalizedOutcome",
    "NormalizedMarket",
    "NormalizedBookmakerQuote",
    "NormalizedEvent",
    "SportDescriptor",
    "ValidationSkip",
    "classify_outcome",
    "american_to_decimal",
    "decimal_to_american",
    "decimal_to_implied_probability",
    "normalize_odds",
]
