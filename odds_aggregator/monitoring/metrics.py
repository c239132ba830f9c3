"""Metrics dataclasses for observability.

Tracks:
- Sportsbook coverage across a batch of normalized events
- Per-provider call outcomes (successes, failures, latency)
- Odds read-cache performance
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from odds_aggregator.normalization.models import NormalizedEvent


@dataclass
class SportsbookMetrics:
    """Coverage of a single sportsbook within one batch of events.

    Attributes:
        name: Bookmaker key (e.g., "draftkings")
        games_with_odds: Number of events quoting this book
        markets_available: Market keys seen for this book
        last_seen: Most recent last_update reported for this book
        availability_pct: Share of events in the batch quoting this book
    """

    name: str
    games_with_odds: int = 0
    markets_available: list[str] = field(default_factory=list)
    last_seen: datetime | None = None
    availability_pct: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "games_with_odds": self.games_with_odds,
            "markets_available": self.markets_available,
            "last_seen": self.last_seen.isoformat() if self.last_seen else None,
            "availability_pct": self.availability_pct,
        }


def compute_sportsbook_metrics(
    events: list["NormalizedEvent"],
) -> dict[str, SportsbookMetrics]:
    """Aggregate per-book coverage across a batch of events.

    Args:
        events: Normalized events from one aggregation run

    Returns:
        Dict mapping bookmaker key to its SportsbookMetrics. Empty for an
        empty batch.
    """
    if not events:
        return {}

    total = len(events)
    game_counts: dict[str, int] = {}
    markets: dict[str, set[str]] = {}
    last_seen: dict[str, datetime] = {}

    for event in events:
        for book in event.bookmakers:
            game_counts[book.key] = game_counts.get(book.key, 0) + 1
            markets.setdefault(book.key, set()).update(m.key for m in book.markets)
            previous = last_seen.get(book.key)
            if previous is None or book.last_update > previous:
                last_seen[book.key] = book.last_update

    return {
        key: SportsbookMetrics(
            name=key,
            games_with_odds=count,
            markets_available=sorted(markets.get(key, set())),
            last_seen=last_seen.get(key),
            availability_pct=round(count / total * 100, 1),
        )
        for key, count in game_counts.items()
    }


@dataclass
class ProviderMetrics:
    """Call outcomes for one upstream provider over the process lifetime."""

    name: str
    calls: int = 0
    failures: int = 0
    empty_results: int = 0
    events_returned: int = 0
    last_duration_ms: int | None = None
    last_error: str | None = None

    def record_success(self, event_count: int, duration_ms: int) -> None:
        self.calls += 1
        self.events_returned += event_count
        self.last_duration_ms = duration_ms
        if event_count == 0:
            self.empty_results += 1

    def record_failure(self, error: str, duration_ms: int) -> None:
        self.calls += 1
        self.failures += 1
        self.last_duration_ms = duration_ms
        self.last_error = error

    @property
    def failure_rate(self) -> float:
        return round(self.failures / self.calls * 100, 1) if self.calls else 0.0


@dataclass
class CacheMetrics:
    """Track odds read-cache performance.

    Attributes:
        hits: Reads served from the disk cache
        misses: Reads that went to the database
        invalidations: Entries dropped after an odds upsert
    """

    hits: int = 0
    misses: int = 0
    invalidations: int = 0

    @property
    def hit_rate(self) -> float:
        """Hit rate as a percentage; 0.0 before any reads."""
        total = self.hits + self.misses
        return round(self.hits / total * 100, 1) if total > 0 else 0.0

    def to_dict(self) -> dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "invalidations": self.invalidations,
            "hit_rate": self.hit_rate,
        }
