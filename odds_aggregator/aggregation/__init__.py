"""Provider fallback and cross-provider merging."""

from odds_aggregator.aggregation.aggregator import AggregationResult, Aggregator
from odds_aggregator.aggregation.merge import match_key, merge_events

__all__ = ["Aggregator", "AggregationResult", "match_key", "merge_events"]
