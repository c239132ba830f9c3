"""Tests for the ESPN public scoreboard provider and its link expansion."""

import pytest

from odds_aggregator.config import Settings
from odds_aggregator.providers import PublicScoreboardProvider, SyncReport

SCOREBOARD_URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
CORE = "https://sports.core.api.espn.com/v2/sports/football/leagues/nfl"
ODDS_URL = f"{CORE}/events/401/competitions/401/odds"
ESPN_BET_URL = f"{ODDS_URL}/58"
BROKEN_URL = f"{ODDS_URL}/99"
TOTAL_MARKET_URL = f"{ODDS_URL}/40/markets/total"


def scoreboard_event(event_id="401", competition_id="401", home="Kansas City Chiefs"):
    competition = {
        "competitors": [
            {"homeAway": "home", "team": {"displayName": home}, "score": "27"},
            {"homeAway": "away", "team": {"displayName": "Baltimore Ravens"}, "score": "20"},
        ],
        "status": {"type": {"completed": True}},
    }
    if competition_id:
        competition["id"] = competition_id
    return {"id": event_id, "date": "2024-09-08T17:00Z", "competitions": [competition]}


ESPN_BET_ITEM = {
    "provider": {"name": "ESPN BET"},
    "moneyline": {"home": -150, "away": 130},
    "spread": {"home": -3.5, "homeOdds": -110, "away": 3.5, "awayOdds": -110},
    "total": {"total": 47.5, "overOdds": -108, "underOdds": -112},
}

DRAFTKINGS_ITEM = {
    "provider": {"name": "DraftKings"},
    "spread": -3,
    "homeTeamOdds": {"spreadOdds": -105, "moneyLine": -145},
    "awayTeamOdds": {"spreadOdds": -115, "moneyLine": 125},
    "markets": [{"$ref": TOTAL_MARKET_URL}],
}

TOTAL_MARKET = {
    "type": "total",
    "outcomes": [
        {"name": "Over", "price": -110, "total": 46.5},
        {"name": "Under", "price": -110, "total": 46.5},
    ],
}


@pytest.fixture
def provider(settings):
    return PublicScoreboardProvider(settings=settings)


def markets_of(quote):
    return {m.key: [(o.outcome_type, o.price, o.point) for o in m.outcomes] for m in quote.markets}


class TestFetchOdds:
    @pytest.mark.asyncio
    async def test_expands_links_and_skips_failed_hop(self, httpx_mock, provider):
        httpx_mock.add_response(url=SCOREBOARD_URL, json={"events": [scoreboard_event()]})
        httpx_mock.add_response(
            url=ODDS_URL,
            json={"items": [{"$ref": ESPN_BET_URL}, {"$ref": BROKEN_URL}, DRAFTKINGS_ITEM]},
        )
        httpx_mock.add_response(url=ESPN_BET_URL, json=ESPN_BET_ITEM)
        httpx_mock.add_response(url=BROKEN_URL, status_code=500)
        httpx_mock.add_response(url=TOTAL_MARKET_URL, json=TOTAL_MARKET)

        events = await provider.fetch_odds("NFL")

        assert len(events) == 1
        event = events[0]
        assert event.id == "espn_401"
        assert event.completed is True
        assert (event.home_score, event.away_score) == (27, 20)
        assert [b.key for b in event.bookmakers] == ["espn_bet", "draftkings"]
        assert event.bookmakers[0].title == "ESPN BET"

        assert markets_of(event.bookmakers[0]) == {
            "h2h": [("home", "-150", None), ("away", "130", None)],
            "spreads": [("home", "-110", "-3.5"), ("away", "-110", "3.5")],
            "totals": [("over", "-108", "47.5"), ("under", "-112", "47.5")],
        }
        assert markets_of(event.bookmakers[1]) == {
            "h2h": [("home", "-145", None), ("away", "125", None)],
            "spreads": [("home", "-105", "-3"), ("away", "-115", "3")],
            "totals": [("over", "-110", "46.5"), ("under", "-110", "46.5")],
        }

    @pytest.mark.asyncio
    async def test_hop_limit_leaves_deep_links_unexpanded(self, httpx_mock, settings):
        provider = PublicScoreboardProvider(settings=settings.model_copy(update={"max_link_hops": 1}))
        httpx_mock.add_response(url=SCOREBOARD_URL, json={"events": [scoreboard_event()]})
        httpx_mock.add_response(url=ODDS_URL, json={"items": [DRAFTKINGS_ITEM]})

        events = await provider.fetch_odds("NFL")

        assert "totals" not in markets_of(events[0].bookmakers[0])
        assert len(httpx_mock.get_requests()) == 2

    @pytest.mark.asyncio
    async def test_odds_failure_keeps_event(self, httpx_mock, provider):
        httpx_mock.add_response(url=SCOREBOARD_URL, json={"events": [scoreboard_event()]})
        httpx_mock.add_response(url=ODDS_URL, status_code=404)

        events = await provider.fetch_odds("NFL")

        assert events[0].bookmakers == []

    @pytest.mark.asyncio
    async def test_competition_id_is_resolved_when_missing(self, httpx_mock, provider):
        httpx_mock.add_response(
            url=SCOREBOARD_URL, json={"events": [scoreboard_event(competition_id=None)]}
        )
        httpx_mock.add_response(url=f"{CORE}/events/401", json={"competitions": [{"id": "777"}]})
        httpx_mock.add_response(url=f"{CORE}/events/401/competitions/777/odds", json={"items": []})

        events = await provider.fetch_odds("NFL")

        assert events[0].bookmakers == []
        assert len(httpx_mock.get_requests()) == 3

    @pytest.mark.asyncio
    async def test_event_without_teams_is_skipped(self, httpx_mock, provider):
        httpx_mock.add_response(url=SCOREBOARD_URL, json={"events": [scoreboard_event(home="")]})
        report = SyncReport()

        assert await provider.fetch_odds("NFL", report=report) == []
        assert report.skip_reasons == ["scoreboard: missing team names (espn_401)"]

    @pytest.mark.asyncio
    async def test_malformed_events_do_not_drop_the_batch(self, httpx_mock, provider):
        wrong_competitions = {"id": "402", "date": "2024-09-08T17:00Z", "competitions": "oops"}
        httpx_mock.add_response(
            url=SCOREBOARD_URL,
            json={"events": [scoreboard_event(), wrong_competitions, scoreboard_event("403", "403")]},
        )
        httpx_mock.add_response(url=ODDS_URL, json={"items": [{**DRAFTKINGS_ITEM, "markets": 7}]})
        httpx_mock.add_response(url=f"{CORE}/events/403/competitions/403/odds", json={"items": "n/a"})
        report = SyncReport()

        events = await provider.fetch_odds("NFL", report=report)

        assert [e.id for e in events] == ["espn_401", "espn_403"]
        assert markets_of(events[0].bookmakers[0]) == {
            "h2h": [("home", "-145", None), ("away", "125", None)],
            "spreads": [("home", "-105", "-3"), ("away", "-115", "3")],
        }
        assert events[1].bookmakers == []
        assert report.skip_reasons == ["scoreboard: missing team names (espn_402)"]

    @pytest.mark.asyncio
    async def test_unsupported_league(self, httpx_mock, provider):
        assert await provider.fetch_odds("CRICKET") == []
        assert httpx_mock.get_requests() == []


def test_needs_no_credential():
    provider = PublicScoreboardProvider(settings=Settings(_env_file=None))
    assert provider.api_key is None
