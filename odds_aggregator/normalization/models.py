"""Pydantic models for normalized odds data.

Every provider adapter emits these models and nothing downstream ever sees
upstream JSON. Prices are American odds kept as decimal strings ("150",
"-110") so that stored values compare exactly; use
odds_aggregator.normalization.odds for decimal conversion.

The canonical JSON form (to_canonical_json) uses camelCase keys.
"""

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from odds_aggregator.normalization.classification import OutcomeType
from odds_aggregator.normalization.coercion import format_american, format_point

MarketKey = Literal["h2h", "spreads", "totals"]

MARKET_OUTCOME_TYPES: dict[str, frozenset[str]] = {
    "h2h": frozenset({"home", "away"}),
    "spreads": frozenset({"home", "away"}),
    "totals": frozenset({"over", "under"}),
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CanonicalModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class NormalizedOutcome(CanonicalModel):
    """One side of a market.

    Attributes:
        outcome_type: "home", "away", "over" or "under"
        price: American odds as a decimal string, no plus sign
        point: Spread or total line as a decimal string, None for h2h
        name: Raw upstream label, for display only
    """

    outcome_type: OutcomeType
    price: str
    point: str | None = None
    name: str | None = None

    @field_validator("price", mode="before")
    @classmethod
    def validate_price(cls, v: object) -> str:
        price = format_american(v)
        if price is None:
            raise ValueError(f"Price must be a non-zero American odds number (got {v!r})")
        return price

    @field_validator("point", mode="before")
    @classmethod
    def validate_point(cls, v: object) -> str | None:
        if v is None:
            return None
        point = format_point(v)
        if point is None:
            raise ValueError(f"Point must be numeric (got {v!r})")
        return point


class NormalizedMarket(CanonicalModel):
    """Betting market with at most one outcome per outcome type.

    Alternate lines are discarded: the first outcome of each type wins, and
    outcome types that do not belong to the market are dropped.

    Attributes:
        key: "h2h" (moneyline), "spreads" or "totals"
        outcomes: Classified outcomes in upstream order
    """

    key: MarketKey
    outcomes: list[NormalizedOutcome]

    @field_validator("outcomes")
    @classmethod
    def first_outcome_per_type(
        cls, v: list[NormalizedOutcome], info: ValidationInfo
    ) -> list[NormalizedOutcome]:
        allowed = MARKET_OUTCOME_TYPES.get(info.data.get("key"), frozenset())
        seen: set[str] = set()
        kept = []
        for outcome in v:
            if outcome.outcome_type not in allowed or outcome.outcome_type in seen:
                continue
            seen.add(outcome.outcome_type)
            kept.append(outcome)
        return kept


class NormalizedBookmakerQuote(CanonicalModel):
    """Odds from a single sportsbook for an event.

    Attributes:
        key: Sportsbook identifier, lower-case with spaces as "_"
        title: Display name (e.g., "DraftKings")
        last_update: When these odds were last updated (ingestion time when
            upstream does not say)
        markets: Available markets
    """

    key: str
    title: str
    last_update: datetime = Field(default_factory=utc_now)
    markets: list[NormalizedMarket] = Field(default_factory=list)

    @field_validator("key")
    @classmethod
    def normalize_key(cls, v: str) -> str:
        key = v.strip().lower().replace(" ", "_")
        if not key:
            raise ValueError("Bookmaker key must not be empty")
        return key

    @field_validator("last_update")
    @classmethod
    def last_update_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class NormalizedEvent(CanonicalModel):
    """Complete odds for a single event across all sportsbooks.

    Attributes:
        id: Source-namespaced identifier (e.g., "sgo_abc", "espn_401547")
        sport_key: League identifier, upper-case (e.g., "NFL")
        home_team: Home team name
        away_team: Away team name
        commence_time: Scheduled start, timezone-aware UTC
        completed: Whether the event is final
        home_score: Home score when known
        away_score: Away score when known
        bookmakers: Quotes in discovery order
    """

    id: str
    sport_key: str
    home_team: str
    away_team: str
    commence_time: datetime
    completed: bool = False
    home_score: int | None = None
    away_score: int | None = None
    bookmakers: list[NormalizedBookmakerQuote] = Field(default_factory=list)

    @field_validator("id", "home_team", "away_team")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value must not be empty")
        return v

    @field_validator("sport_key")
    @classmethod
    def upper_sport_key(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("commence_time")
    @classmethod
    def commence_time_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)

    def to_canonical_json(self) -> dict:
        """Dump the event with camelCase keys and ISO 8601 timestamps."""
        return self.model_dump(by_alias=True, mode="json")


class SportDescriptor(CanonicalModel):
    """A league offered by a provider (e.g., key "NFL", title "NFL")."""

    key: str
    title: str
    group: str = ""
    active: bool = True

    @field_validator("key")
    @classmethod
    def upper_key(cls, v: str) -> str:
        return v.strip().upper()
