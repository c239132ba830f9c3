"""Odds format conversion utilities.

Converts between different odds formats:
- American: +200, -150 (US betting standard, the stored representation)
- Decimal: 3.0, 1.67 (total payout per unit staked)
- Implied Probability: 0.33, 0.60 (break-even win rate)

Stored prices are American. Decimal odds are derived for display and for
feeds that quote decimal payouts.
"""


def american_to_decimal(american_odds: float) -> float:
    """Convert American odds to decimal odds.

    American odds use positive and negative values:
    - Positive (+200): Amount won on $100 bet
    - Negative (-200): Amount needed to bet to win $100

    Args:
        american_odds: American format odds (e.g., +200, -150, +100)

    Returns:
        Decimal odds (always > 1.0)

    Raises:
        ValueError: If american_odds is zero

    Examples:
        >>> american_to_decimal(200)
        3.0
        >>> american_to_decimal(-200)
        1.5
        >>> american_to_decimal(-110)
        1.9090909090909092
    """
    if american_odds == 0:
        raise ValueError("American odds cannot be zero")
    if american_odds > 0:
        return (american_odds / 100) + 1
    return (100 / abs(american_odds)) + 1


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to American odds, rounded to the nearest integer.

    Args:
        decimal_odds: Decimal format odds (must be > 1.0)

    Returns:
        American odds; positive for decimal >= 2.0, negative otherwise

    Raises:
        ValueError: If decimal_odds is not greater than 1.0

    Examples:
        >>> decimal_to_american(2.5)
        150
        >>> decimal_to_american(1.5)
        -200
        >>> decimal_to_american(1.909)
        -110
    """
    if decimal_odds <= 1.0:
        raise ValueError(
            f"Decimal odds must be > 1.0 (got {decimal_odds}); "
            "a payout at or below the stake has no American equivalent."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1) * 100)
    return round(-100 / (decimal_odds - 1))


def decimal_to_implied_probability(decimal_odds: float) -> float:
    """Convert decimal odds to implied probability.

    Bookmaker odds include vig, so implied probabilities across all outcomes
    of a market typically sum to more than 1.

    Examples:
        >>> decimal_to_implied_probability(2.0)
        0.5
        >>> round(decimal_to_implied_probability(1.5), 3)
        0.667
    """
    return 1 / decimal_odds


def normalize_odds(price: float | int | str, odds_format: str = "american") -> float:
    """Normalize any odds format to decimal.

    Args:
        price: The odds value in the given format
        odds_format: Format of the input odds ("american" or "decimal")

    Returns:
        Decimal odds

    Raises:
        ValueError: If odds_format is not recognized

    Examples:
        >>> normalize_odds("-200")
        1.5
        >>> normalize_odds(2.5, "decimal")
        2.5
    """
    if odds_format == "decimal":
        return float(price)
    elif odds_format == "american":
        return american_to_decimal(float(price))
    else:
        raise ValueError(
            f"Unknown odds format: '{odds_format}'. "
            "Supported formats: 'american', 'decimal'"
        )
