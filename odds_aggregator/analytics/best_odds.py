"""Best-price selection across bookmakers.

Quotes are compared by their numeric American price: higher is better for
the bettor regardless of sign, so +150 beats +130 and -105 beats -110.
Ties keep the first quote seen.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Protocol

from odds_aggregator.normalization.coercion import to_number_or_none
from odds_aggregator.normalization.odds import decimal_to_implied_probability, normalize_odds

SUMMARY_ORDER = ("home", "away", "over", "under")


class QuoteRow(Protocol):
    """Anything shaped like a stored odds row (e.g., OddsRecord)."""

    bookmaker_key: str
    bookmaker_title: str
    market: str
    outcome_type: str
    price: str
    point: str | None


@dataclass(frozen=True)
class BestQuote:
    """Best available price for one outcome type of a market.

    Attributes:
        price: Stored American price string (e.g., "150", "-105")
        decimal_price: Decimal equivalent, used for comparison displays
        implied_probability: 1 / decimal_price
        quote_count: Number of priced quotes in the outcome group
    """

    outcome_type: str
    market: str
    bookmaker_key: str
    bookmaker_title: str
    price: str
    point: str | None
    decimal_price: float
    implied_probability: float
    quote_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "outcomeType": self.outcome_type,
            "market": self.market,
            "bookmakerKey": self.bookmaker_key,
            "bookmakerTitle": self.bookmaker_title,
            "price": self.price,
            "point": self.point,
            "decimalPrice": round(self.decimal_price, 4),
            "impliedProbability": round(self.implied_probability, 4),
            "quoteCount": self.quote_count,
        }


def select_best_odds(rows: Iterable[QuoteRow]) -> list[BestQuote]:
    """Pick the highest-priced quote per outcome type.

    Rows whose price is not a usable American number (missing, zero) are
    ignored. Output groups follow the order in which each outcome type was
    first seen.

    Args:
        rows: Quotes for one (game, market)

    Returns:
        One BestQuote per outcome type; empty for empty input

    Example:
        Home quotes of -110 at one book and -105 at another yield a single
        BestQuote for "home" priced "-105" with quote_count 2.
    """
    best: dict[str, tuple[float, QuoteRow]] = {}
    counts: dict[str, int] = {}

    for row in rows:
        price = to_number_or_none(row.price)
        if price is None or price == 0:
            continue
        counts[row.outcome_type] = counts.get(row.outcome_type, 0) + 1
        current = best.get(row.outcome_type)
        # Strictly greater keeps the first-seen row on ties
        if current is None or price > current[0]:
            best[row.outcome_type] = (price, row)

    results = []
    for outcome_type, (_, row) in best.items():
        decimal_price = normalize_odds(row.price, "american")
        results.append(
            BestQuote(
                outcome_type=outcome_type,
                market=row.market,
                bookmaker_key=row.bookmaker_key,
                bookmaker_title=row.bookmaker_title,
                price=row.price,
                point=row.point,
                decimal_price=decimal_price,
                implied_probability=decimal_to_implied_probability(decimal_price),
                quote_count=counts[outcome_type],
            )
        )
    return results


def best_odds_summary(rows: Iterable[QuoteRow]) -> dict[str, BestQuote | None]:
    """Best home/away/over/under for a market, with None for absent sides."""
    by_type = {quote.outcome_type: quote for quote in select_best_odds(rows)}
    return {outcome_type: by_type.get(outcome_type) for outcome_type in SUMMARY_ORDER}
