"""Tests for the odds-agg CLI commands.

The service and schema setup are replaced with in-process stubs; these
tests cover argument handling and rendering only.
"""

from datetime import datetime

import pytest
from rich.console import Console
from typer.testing import CliRunner

from odds_aggregator import __version__
from odds_aggregator.analytics import BestQuote
import odds_aggregator.cli.main as cli_main
from odds_aggregator.cli.formatters import format_movement, format_price
from odds_aggregator.cli.main import cli
from odds_aggregator.db.records import GameRecord, LineMovementRecord
from odds_aggregator.normalization import SportDescriptor
from odds_aggregator.service import CatalogResult, SyncResult

runner = CliRunner()

MOVE = LineMovementRecord(
    id=1,
    game_id="sgo_game1",
    market="spreads",
    outcome_type="home",
    bookmaker_key="draftkings",
    old_value="-3.5",
    new_value="-5",
    movement="-1.5",
    timestamp=datetime(2024, 9, 8, 11, 30),
    home_team="Kansas City Chiefs",
    away_team="Baltimore Ravens",
)


class StubService:
    def __init__(self, result=None, error=None):
        self.result = result or SyncResult(
            sport="NFL", source="scoreboard", games_updated=1, odds_updated=10, books_updated=2
        )
        self.error = error
        self.calls = []
        self.closed = 0

    async def sync_sport(self, sport, preference=None, combine=False, limit=50):
        self.calls.append(("sync_sport", sport, preference, combine, limit))
        if self.error:
            raise self.error
        return self.result

    async def sync_all(self, sports=None):
        self.calls.append(("sync_all", sports))
        return [SyncResult(sport=s, source="primary", games_updated=1) for s in sports or ["NFL"]]

    async def sync_sports(self):
        self.calls.append(("sync_sports",))
        return CatalogResult(sports=[], errors=["arbitrage: down"])

    async def list_sports(self):
        return [SportDescriptor(key="NFL", title="NFL", group="football")]

    async def get_upcoming_games(self, sport=None, limit=50):
        self.calls.append(("games", sport, limit))
        return [
            GameRecord(
                id="sgo_game1",
                sport_key="NFL",
                home_team="Kansas City Chiefs",
                away_team="Baltimore Ravens",
                commence_time=datetime(2024, 9, 8, 17, 0),
                completed=False,
                home_score=None,
                away_score=None,
            )
        ]

    async def get_best_odds(self, game_id, market="h2h"):
        self.calls.append(("best_odds", game_id, market))
        return [
            BestQuote("away", market, "draftkings", "DraftKings", "130", None, 2.3, 1 / 2.3, 2),
        ]

    async def get_big_movers(self, hours=None, min_movement=None, limit=None):
        self.calls.append(("movers", hours, min_movement, limit))
        return [MOVE]

    async def get_line_movements(self, game_id, hours=24):
        self.calls.append(("history", game_id, hours))
        return []


@pytest.fixture
def stub(monkeypatch):
    service = StubService()

    async def no_schema():
        return None

    async def closed():
        service.closed += 1

    monkeypatch.setattr(cli_main, "get_service", lambda: service)
    monkeypatch.setattr(cli_main, "init_database", no_schema)
    monkeypatch.setattr(cli_main, "close_database", closed)
    monkeypatch.setattr(cli_main, "console", Console(width=200, no_color=True))
    return service


class TestSync:
    def test_sync_prints_results(self, stub):
        result = runner.invoke(cli, ["sync", "NFL", "-p", "scoreboard, primary", "--combine", "-n", "20"])

        assert result.exit_code == 0
        assert "scoreboard" in result.stdout
        assert stub.calls == [("sync_sport", "NFL", ["scoreboard", "primary"], True, 20)]

    def test_sync_reports_no_data(self, stub):
        stub.result = SyncResult(sport="NFL", errors=["primary: HTTP 429 rate limited"])

        result = runner.invoke(cli, ["sync", "NFL"])

        assert result.exit_code == 0
        assert "No data stored for NFL" in result.stdout
        assert "rerun with --verbose" in result.stdout

    def test_sync_verbose_lists_errors(self, stub):
        stub.result = SyncResult(sport="NFL", errors=["primary: HTTP 429 rate limited"])

        result = runner.invoke(cli, ["sync", "NFL", "--verbose"])

        assert "HTTP 429 rate limited" in result.stdout

    def test_sync_failure_exits_nonzero(self, stub):
        stub.error = RuntimeError("database is locked")

        result = runner.invoke(cli, ["sync", "NFL"])

        assert result.exit_code == 1
        assert "database is locked" in result.stdout
        assert stub.closed == 1

    def test_engine_closed_after_command(self, stub):
        runner.invoke(cli, ["sync", "NFL"])
        runner.invoke(cli, ["history", "sgo_game1"])

        assert stub.closed == 2

    def test_sync_all(self, stub):
        result = runner.invoke(cli, ["sync-all", "--sports", "NFL,NBA"])

        assert result.exit_code == 0
        assert stub.calls == [("sync_all", ["NFL", "NBA"])]
        assert "NBA" in result.stdout


class TestQueries:
    def test_best_odds(self, stub):
        result = runner.invoke(cli, ["best-odds", "sgo_game1", "-m", "spreads"])

        assert result.exit_code == 0
        assert "+130" in result.stdout
        assert "43.5%" in result.stdout
        assert stub.calls == [("best_odds", "sgo_game1", "spreads")]

    def test_movers_use_service_defaults(self, stub):
        result = runner.invoke(cli, ["movers"])

        assert result.exit_code == 0
        assert stub.calls == [("movers", None, None, None)]
        assert "Baltimore Ravens @ Kansas City Chiefs" in result.stdout
        assert "-1.5" in result.stdout

    def test_history_empty(self, stub):
        result = runner.invoke(cli, ["history", "sgo_game1", "--hours", "6"])

        assert result.exit_code == 0
        assert "No line movements" in result.stdout
        assert stub.calls == [("history", "sgo_game1", 6.0)]

    def test_games(self, stub):
        result = runner.invoke(cli, ["games", "-s", "NFL", "-n", "5"])

        assert result.exit_code == 0
        assert "2024-09-08 17:00" in result.stdout
        assert stub.calls == [("games", "NFL", 5)]

    def test_sports_refresh_shows_errors(self, stub):
        result = runner.invoke(cli, ["sports", "--refresh"])

        assert result.exit_code == 0
        assert stub.calls == [("sync_sports",)]
        assert "football" in result.stdout
        assert "down" in result.stdout


def test_version(stub):
    result = runner.invoke(cli, ["version"])

    assert result.exit_code == 0
    assert f"Odds Aggregator v{__version__}" in result.stdout
    assert "scoreboard: no key needed" in result.stdout


class TestFormatters:
    @pytest.mark.parametrize("price,expected", [("150", "+150"), ("-110", "-110"), (None, "-"), ("100", "+100")])
    def test_format_price(self, price, expected):
        assert format_price(price) == expected

    def test_format_movement(self):
        assert format_movement("-1.5") == "[red]-1.5[/red]"
        assert format_movement("2") == "[green]+2[/green]"
