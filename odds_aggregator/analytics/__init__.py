"""Read-side computations over stored odds and line movements."""

from odds_aggregator.analytics.best_odds import BestQuote, best_odds_summary, select_best_odds
from odds_aggregator.analytics.movers import filter_big_movers, movement_history

__all__ = [
    "BestQuote",
    "select_best_odds",
    "best_odds_summary",
    "filter_big_movers",
    "movement_history",
]
