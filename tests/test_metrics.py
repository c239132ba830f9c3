"""Tests for metrics dataclasses.

Tests CacheMetrics, ProviderMetrics and sportsbook coverage from the
monitoring module.
"""

from datetime import datetime, timezone

import pytest
from factories import make_event, make_outcome

from odds_aggregator.monitoring import (
    CacheMetrics,
    ProviderMetrics,
    SportsbookMetrics,
    compute_sportsbook_metrics,
)
from odds_aggregator.normalization import NormalizedBookmakerQuote, NormalizedMarket


class TestCacheMetrics:
    """Tests for CacheMetrics dataclass."""

    def test_cache_metrics_hit_rate(self):
        metrics = CacheMetrics(hits=80, misses=20)
        assert metrics.hit_rate == 80.0

    def test_cache_metrics_empty(self):
        """Empty metrics return 0.0 for the rate."""
        metrics = CacheMetrics()
        assert metrics.hits == 0
        assert metrics.misses == 0
        assert metrics.hit_rate == 0.0

    def test_cache_metrics_to_dict(self):
        metrics = CacheMetrics(hits=10, misses=5, invalidations=2)
        d = metrics.to_dict()

        assert d["hits"] == 10
        assert d["misses"] == 5
        assert d["invalidations"] == 2
        assert d["hit_rate"] == pytest.approx(66.7, rel=0.01)


class TestProviderMetrics:
    def test_success_and_failure(self):
        metrics = ProviderMetrics(name="primary")
        metrics.record_success(12, 340)
        metrics.record_success(0, 120)
        metrics.record_failure("HTTP 429 rate limited", 80)

        assert metrics.calls == 3
        assert metrics.events_returned == 12
        assert metrics.empty_results == 1
        assert metrics.last_error == "HTTP 429 rate limited"
        assert metrics.last_duration_ms == 80
        assert metrics.failure_rate == 33.3

    def test_no_calls(self):
        assert ProviderMetrics(name="secondary").failure_rate == 0.0


class TestSportsbookMetrics:
    def test_coverage_across_events(self, sample_event):
        late = datetime(2024, 9, 8, 15, 0, tzinfo=timezone.utc)
        second = make_event("sgo_game2", home_team="Denver Broncos")
        second.bookmakers.append(
            NormalizedBookmakerQuote(
                key="draftkings",
                title="DraftKings",
                last_update=late,
                markets=[NormalizedMarket(key="h2h", outcomes=[make_outcome("home", "120")])],
            )
        )

        metrics = compute_sportsbook_metrics([sample_event, second])

        draftkings = metrics["draftkings"]
        assert draftkings.games_with_odds == 2
        assert draftkings.availability_pct == 100.0
        assert draftkings.markets_available == ["h2h", "spreads", "totals"]
        assert draftkings.last_seen == late
        assert metrics["fanduel"].availability_pct == 50.0

    def test_empty_batch(self):
        assert compute_sportsbook_metrics([]) == {}

    def test_to_dict(self):
        metrics = SportsbookMetrics(name="fanduel", games_with_odds=3, markets_available=["h2h"])
        d = metrics.to_dict()

        assert d["name"] == "fanduel"
        assert d["last_seen"] is None
        assert d["markets_available"] == ["h2h"]
