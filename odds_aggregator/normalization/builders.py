"""Helpers that assemble canonical models from already-coerced values.

Adapters call these from their mapping functions so that classification,
price formatting and empty-container pruning happen the same way for every
upstream. Builders return None instead of raising when a piece is unusable;
the caller simply leaves it out.
"""

from datetime import datetime

from odds_aggregator.normalization.classification import classify_outcome
from odds_aggregator.normalization.coercion import format_american, format_point
from odds_aggregator.normalization.models import (
    NormalizedBookmakerQuote,
    NormalizedMarket,
    NormalizedOutcome,
)

MARKET_ALIASES: dict[str, str] = {
    "h2h": "h2h",
    "ml": "h2h",
    "moneyline": "h2h",
    "money_line": "h2h",
    "spreads": "spreads",
    "spread": "spreads",
    "sp": "spreads",
    "point_spread": "spreads",
    "pointspread": "spreads",
    "totals": "totals",
    "total": "totals",
    "ou": "totals",
    "over_under": "totals",
    "overunder": "totals",
    "point_total": "totals",
}


def canonical_market(raw: str | None) -> str | None:
    """Map an upstream market/bet type label to "h2h", "spreads" or "totals".

    Examples:
        >>> canonical_market("POINT_SPREAD")
        'spreads'
        >>> canonical_market("player_props") is None
        True
    """
    if not raw:
        return None
    return MARKET_ALIASES.get(str(raw).strip().lower().replace(" ", "_").replace("-", "_"))


def build_outcome(
    market: str,
    *,
    price,
    home_team: str,
    away_team: str,
    name: str | None = None,
    point=None,
    marker: str | None = None,
) -> NormalizedOutcome | None:
    """Classify and format one outcome; None when unclassifiable or unpriced."""
    american = format_american(price)
    if american is None:
        return None
    outcome_type = classify_outcome(market, name, home_team, away_team, marker=marker)
    if outcome_type is None:
        return None
    return NormalizedOutcome(
        outcome_type=outcome_type,
        price=american,
        point=format_point(point) if market != "h2h" else None,
        name=name,
    )


def build_market(key: str, outcomes: list[NormalizedOutcome | None]) -> NormalizedMarket | None:
    present = [o for o in outcomes if o is not None]
    if not present:
        return None
    market = NormalizedMarket(key=key, outcomes=present)
    return market if market.outcomes else None


def build_bookmaker(
    key: str,
    title: str | None,
    markets: list[NormalizedMarket | None],
    last_update: datetime | None = None,
) -> NormalizedBookmakerQuote | None:
    present = [m for m in markets if m is not None]
    if not present or not str(key).strip():
        return None
    fields = {"key": str(key), "title": title or str(key), "markets": present}
    if last_update is not None:
        fields["last_update"] = last_update
    return NormalizedBookmakerQuote(**fields)


class QuoteCollector:
    """Accumulate outcomes per (bookmaker, market) in discovery order.

    Feeds that emit one node per side or per sportsbook produce fragments of
    the same quote; the collector folds them into one quote per bookmaker.

    Example:
        >>> collector = QuoteCollector()
        >>> collector.add("DraftKings", "DraftKings", "h2h", None)
        >>> collector.quotes()
        []
    """

    def __init__(self) -> None:
        self._titles: dict[str, str] = {}
        self._updates: dict[str, datetime] = {}
        self._outcomes: dict[str, dict[str, list[NormalizedOutcome]]] = {}

    def add(
        self,
        book_key: str,
        title: str | None,
        market: str,
        outcome: NormalizedOutcome | None,
        last_update: datetime | None = None,
    ) -> None:
        if outcome is None:
            return
        key = str(book_key).strip().lower().replace(" ", "_")
        if not key:
            return
        self._titles.setdefault(key, title or str(book_key))
        self._outcomes.setdefault(key, {}).setdefault(market, []).append(outcome)
        if last_update is not None:
            previous = self._updates.get(key)
            if previous is None or last_update > previous:
                self._updates[key] = last_update

    def quotes(self) -> list[NormalizedBookmakerQuote]:
        quotes = []
        for key, by_market in self._outcomes.items():
            markets = [build_market(m, outcomes) for m, outcomes in by_market.items()]
            quote = build_bookmaker(key, self._titles[key], markets, self._updates.get(key))
            if quote is not None:
                quotes.append(quote)
        return quotes
