"""Outcome-type classification.

Every provider labels outcomes differently: an explicit side field, the
team name, an abbreviation, or just "Over 47.5". Classification runs an
ordered table of tiers. Each tier is a tuple of (predicate, outcome_type)
pairs; the first tier that matches exactly one outcome type decides. A tier
matching both sides is ambiguous and is skipped. When no tier decides, the
outcome is unclassifiable and callers drop it.

Examples:
    >>> classify_outcome("h2h", "Kansas City Chiefs", "Kansas City Chiefs", "Buffalo Bills")
    'home'
    >>> classify_outcome("totals", "Over 47.5", "Kansas City Chiefs", "Buffalo Bills")
    'over'
    >>> classify_outcome("h2h", "KC", "Kansas City Chiefs", "Buffalo Bills") is None
    True
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

OutcomeType = Literal["home", "away", "over", "under"]


@dataclass(frozen=True)
class OutcomeContext:
    """Everything a predicate may look at for one outcome."""

    market: str
    name: str
    marker: str
    home_team: str
    away_team: str

    def team(self, side: str) -> str:
        return self.home_team if side == "home" else self.away_team


Predicate = Callable[[OutcomeContext], bool]
Tier = tuple[tuple[Predicate, OutcomeType], ...]


def _clean(value: str | None) -> str:
    return (value or "").strip().lower()


def marker_is(expected: str) -> Predicate:
    """Upstream supplied an explicit side/direction field."""

    def predicate(ctx: OutcomeContext) -> bool:
        return ctx.marker == expected

    return predicate


def name_equals_team(side: str) -> Predicate:
    def predicate(ctx: OutcomeContext) -> bool:
        team = ctx.team(side)
        return bool(ctx.name) and bool(team) and ctx.name == team

    return predicate


def name_contains_team(side: str) -> Predicate:
    """Case-insensitive containment in either direction; empty never matches."""

    def predicate(ctx: OutcomeContext) -> bool:
        team = ctx.team(side)
        if not ctx.name or not team:
            return False
        return ctx.name in team or team in ctx.name

    return predicate


def name_has_word(word: str) -> Predicate:
    pattern = re.compile(rf"\b{re.escape(word)}\b")

    def predicate(ctx: OutcomeContext) -> bool:
        return bool(pattern.search(ctx.name))

    return predicate


SIDE_TIERS: tuple[Tier, ...] = (
    ((marker_is("home"), "home"), (marker_is("away"), "away")),
    ((name_equals_team("home"), "home"), (name_equals_team("away"), "away")),
    ((name_contains_team("home"), "home"), (name_contains_team("away"), "away")),
    ((name_has_word("home"), "home"), (name_has_word("away"), "away")),
)

TOTAL_TIERS: tuple[Tier, ...] = (
    ((marker_is("over"), "over"), (marker_is("under"), "under")),
    ((name_has_word("over"), "over"), (name_has_word("under"), "under")),
)


def tiers_for(market: str) -> tuple[Tier, ...]:
    return TOTAL_TIERS if market == "totals" else SIDE_TIERS


def classify_outcome(
    market: str,
    name: str | None,
    home_team: str,
    away_team: str,
    marker: str | None = None,
) -> OutcomeType | None:
    """Classify one outcome of a market.

    Args:
        market: Canonical market key ("h2h", "spreads" or "totals")
        name: Upstream outcome label (team name, "Over", "Home", ...)
        home_team: Event home team
        away_team: Event away team
        marker: Explicit side or direction field from upstream, if any
            (e.g., sideID "home", "over")

    Returns:
        The outcome type, or None when no tier resolves unambiguously.
        The result depends only on the arguments.
    """
    ctx = OutcomeContext(
        market=market,
        name=_clean(name),
        marker=_clean(marker),
        home_team=_clean(home_team),
        away_team=_clean(away_team),
    )
    for tier in tiers_for(market):
        matched = {outcome_type for predicate, outcome_type in tier if predicate(ctx)}
        if len(matched) == 1:
            return matched.pop()
    return None
