"""Tests for OddsRepository upserts, reads and the disk read-cache.

Tests verify:
- Upserts are idempotent on their natural keys
- Scores are never overwritten with nulls
- Reads come back as records in a stable order
- Failed writes roll back and raise PersistenceError
- Line-movement windows and big movers
- The L1 cache is hit on repeat reads and dropped on odds writes
"""

from datetime import datetime, timedelta, timezone

import pytest
from factories import KICKOFF, make_event, make_outcome

from odds_aggregator.config import get_settings
from odds_aggregator.db import OddsRepository, PersistenceError, close_database, init_database
from odds_aggregator.db.cache_toggle import get_cache_config
from odds_aggregator.db.session import get_engine, get_session_factory
from odds_aggregator.normalization import NormalizedOutcome, SportDescriptor

NOW = datetime(2024, 9, 8, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def repo(test_session):
    repository = OddsRepository(test_session)
    yield repository
    repository.close_cache()


async def seeded_game(repo, event=None):
    sport = await repo.ensure_sport("NFL")
    return await repo.upsert_game(event or make_event(), sport.id)


class TestSports:
    @pytest.mark.asyncio
    async def test_ensure_sport_is_idempotent(self, repo):
        first = await repo.ensure_sport("nfl")
        second = await repo.ensure_sport("NFL")

        assert first.id == second.id
        assert first.key == "NFL"

    @pytest.mark.asyncio
    async def test_upsert_sport_updates_title(self, repo):
        await repo.ensure_sport("NBA")
        await repo.upsert_sport(SportDescriptor(key="NBA", title="National Basketball Association", group="basketball"))

        sports = await repo.list_sports()

        assert [(s.key, s.title, s.group) for s in sports] == [
            ("NBA", "National Basketball Association", "basketball")
        ]

    @pytest.mark.asyncio
    async def test_list_sports_sorted(self, repo):
        for key in ("NHL", "MLB", "NFL"):
            await repo.ensure_sport(key)

        assert [s.key for s in await repo.list_sports()] == ["MLB", "NFL", "NHL"]


class TestGames:
    @pytest.mark.asyncio
    async def test_upsert_game_replaces_fields(self, repo):
        await seeded_game(repo)
        moved = make_event(commence_time=KICKOFF + timedelta(hours=3), completed=True)
        game = await seeded_game(repo, moved)

        assert game.commence_time == datetime(2024, 9, 8, 20, 0)
        assert game.completed is True
        assert len(await repo.get_games_by_sport("NFL")) == 1

    @pytest.mark.asyncio
    async def test_scores_are_not_overwritten_with_null(self, repo):
        await seeded_game(repo, make_event(home_score=27, away_score=20))
        game = await seeded_game(repo, make_event())

        assert (game.home_score, game.away_score) == (27, 20)

    @pytest.mark.asyncio
    async def test_get_game(self, repo):
        await seeded_game(repo)

        record = await repo.get_game("sgo_game1")

        assert record.sport_key == "NFL"
        assert record.home_team == "Kansas City Chiefs"
        assert await repo.get_game("missing") is None

    @pytest.mark.asyncio
    async def test_upcoming_games(self, repo):
        await seeded_game(repo, make_event("past", commence_time=NOW - timedelta(days=1)))
        await seeded_game(repo, make_event("later", commence_time=NOW + timedelta(days=2)))
        await seeded_game(repo, make_event("soon", commence_time=NOW + timedelta(hours=1)))

        games = await repo.get_upcoming_games("nfl", now=NOW)

        assert [g.id for g in games] == ["soon", "later"]
        assert await repo.get_upcoming_games("NBA", now=NOW) == []
        assert len(await repo.get_upcoming_games(limit=1, now=NOW)) == 1


class TestOdds:
    @pytest.mark.asyncio
    async def test_upsert_bookmaker_is_idempotent(self, repo):
        first = await repo.upsert_bookmaker("draftkings", "DraftKings")
        second = await repo.upsert_bookmaker("draftkings", "DraftKings Sportsbook")

        assert first.id == second.id
        assert second.title == "DraftKings Sportsbook"

    @pytest.mark.asyncio
    async def test_upsert_odds_keeps_one_row_per_outcome(self, repo):
        game = await seeded_game(repo)
        book = await repo.upsert_bookmaker("draftkings", "DraftKings")

        await repo.upsert_odds(game.id, book.id, "spreads", make_outcome("home", "-110", "-3.5"))
        row = await repo.upsert_odds(game.id, book.id, "spreads", make_outcome("home", "-105", "-2.5"))

        assert (row.price, row.point) == ("-105", "-2.5")
        records = await repo.get_odds_by_game(game.id)
        assert len(records) == 1
        assert records[0].bookmaker_key == "draftkings"

    @pytest.mark.asyncio
    async def test_get_odds_row_reads_fresh_values(self, repo):
        game = await seeded_game(repo)
        book = await repo.upsert_bookmaker("fanduel", "FanDuel")
        await repo.upsert_odds(game.id, book.id, "totals", make_outcome("over", "-110", "47.5"))
        before = await repo.get_odds_row(game.id, book.id, "totals", "over")

        await repo.upsert_odds(game.id, book.id, "totals", make_outcome("over", "-110", "48"))
        after = await repo.get_odds_row(game.id, book.id, "totals", "over")

        assert after.point == "48"
        assert before is after
        assert await repo.get_odds_row(game.id, book.id, "totals", "under") is None

    @pytest.mark.asyncio
    async def test_get_odds_by_game_filters_market(self, repo):
        game = await seeded_game(repo)
        book = await repo.upsert_bookmaker("draftkings", "DraftKings")
        await repo.upsert_odds(game.id, book.id, "h2h", make_outcome("home", "-150"))
        await repo.upsert_odds(game.id, book.id, "h2h", make_outcome("away", "130"))
        await repo.upsert_odds(game.id, book.id, "totals", make_outcome("over", "-108", "47.5"))

        h2h = await repo.get_odds_by_game(game.id, market="h2h")

        assert [(r.outcome_type, r.price) for r in h2h] == [("home", "-150"), ("away", "130")]
        assert await repo.get_odds_by_game("missing") == []

    @pytest.mark.asyncio
    async def test_failed_write_rolls_back(self, repo):
        game = await seeded_game(repo)
        book = await repo.upsert_bookmaker("draftkings", "DraftKings")
        game_id, book_id = game.id, book.id
        bad = NormalizedOutcome.model_construct(outcome_type="draw", price="250", point=None, name=None)

        with pytest.raises(PersistenceError) as exc_info:
            await repo.upsert_odds(game_id, book_id, "h2h", bad)

        assert exc_info.value.operation == "upsert_odds"
        # Session is usable again after the rollback
        await repo.upsert_odds(game_id, book_id, "h2h", make_outcome("home", "-150"))
        assert len(await repo.get_odds_by_game(game_id)) == 1


class TestLineMovements:
    @pytest.mark.asyncio
    async def test_movement_defaults_to_difference(self, repo):
        game = await seeded_game(repo)

        movement = await repo.create_line_movement(game.id, "spreads", "-3.5", "-2.5", timestamp=NOW)

        assert movement.movement == "1.0"

    @pytest.mark.asyncio
    async def test_history_window_newest_first(self, repo):
        game = await seeded_game(repo)
        book = await repo.upsert_bookmaker("draftkings", "DraftKings")
        for hours_ago, new in ((30, "-4"), (5, "-3"), (1, "-2.5")):
            await repo.create_line_movement(
                game.id, "spreads", "-3.5", new,
                bookmaker_id=book.id, outcome_type="home", timestamp=NOW - timedelta(hours=hours_ago),
            )

        history = await repo.get_line_movements(game.id, hours=24, now=NOW)

        assert [m.new_value for m in history] == ["-2.5", "-3"]
        assert history[0].bookmaker_key == "draftkings"
        assert history[0].home_team is None

    @pytest.mark.asyncio
    async def test_big_movers(self, repo):
        game = await seeded_game(repo)
        other = await seeded_game(repo, make_event("sgo_game2", home_team="Denver Broncos"))
        rows = [
            (game.id, "-3.5", "-1.5", "2", 6),
            (game.id, "47.5", "47", "-0.5", 4),
            (other.id, "-7", "-8.5", "-1.5", 2),
            (other.id, "-1", "2", "3", 30),
        ]
        for game_id, old, new, movement, hours_ago in rows:
            await repo.create_line_movement(
                game_id, "spreads", old, new, movement, timestamp=NOW - timedelta(hours=hours_ago)
            )

        movers = await repo.get_big_movers(hours=24, min_movement=1.0, limit=10, now=NOW)

        assert [m.movement for m in movers] == ["-1.5", "2"]
        assert movers[0].home_team == "Denver Broncos"
        assert len(await repo.get_big_movers(hours=24, min_movement=1.0, limit=1, now=NOW)) == 1


class TestReadCache:
    @pytest.fixture
    def cached_repo(self, test_session, tmp_path, monkeypatch):
        monkeypatch.setenv("ODDS_CACHE_ENABLED", "true")
        monkeypatch.setenv("ODDS_CACHE_DIR", str(tmp_path / "odds_cache"))
        get_cache_config.cache_clear()
        repository = OddsRepository(test_session)
        yield repository
        repository.close_cache()

    def test_cache_toggle(self, repo, cached_repo):
        assert repo.cache_enabled is False
        assert cached_repo.cache_enabled is True

    @pytest.mark.asyncio
    async def test_repeat_reads_hit_cache(self, cached_repo):
        game = await seeded_game(cached_repo)
        book = await cached_repo.upsert_bookmaker("draftkings", "DraftKings")
        await cached_repo.upsert_odds(game.id, book.id, "h2h", make_outcome("home", "-150"))

        first = await cached_repo.get_odds_by_game(game.id)
        second = await cached_repo.get_odds_by_game(game.id)

        assert first == second
        assert cached_repo.cache_metrics.misses == 1
        assert cached_repo.cache_metrics.hits == 1
        assert cached_repo.cache_metrics.hit_rate == 50.0

    @pytest.mark.asyncio
    async def test_odds_write_invalidates(self, cached_repo):
        game = await seeded_game(cached_repo)
        book = await cached_repo.upsert_bookmaker("draftkings", "DraftKings")
        await cached_repo.upsert_odds(game.id, book.id, "h2h", make_outcome("home", "-150"))
        await cached_repo.get_odds_by_game(game.id)

        await cached_repo.upsert_odds(game.id, book.id, "h2h", make_outcome("home", "-140"))
        records = await cached_repo.get_odds_by_game(game.id)

        assert records[0].price == "-140"
        assert cached_repo.cache_metrics.invalidations == 1
        assert cached_repo.cache_metrics.misses == 2

    @pytest.mark.asyncio
    async def test_first_read_populates_empty_cache(self, test_session, cached_repo):
        game = await seeded_game(cached_repo)
        book = await cached_repo.upsert_bookmaker("draftkings", "DraftKings")
        await cached_repo.upsert_odds(game.id, book.id, "h2h", make_outcome("home", "-150"))
        game_id = game.id

        await cached_repo.get_odds_by_game(game_id)

        # Same cache directory, fresh repository: the stored entry is served
        second_repo = OddsRepository(test_session)
        try:
            records = await second_repo.get_odds_by_game(game_id)
        finally:
            second_repo.close_cache()

        assert [r.price for r in records] == ["-150"]
        assert second_repo.cache_metrics.hits == 1
        assert second_repo.cache_metrics.misses == 0


class TestEngineLifecycle:
    @pytest.fixture
    def memory_database(self, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
        get_settings.cache_clear()
        get_engine.cache_clear()
        get_session_factory.cache_clear()
        yield
        get_session_factory.cache_clear()
        get_engine.cache_clear()
        get_settings.cache_clear()

    @pytest.mark.asyncio
    async def test_close_database_disposes_engine(self, memory_database):
        engine = get_engine()
        await init_database()

        await close_database()

        assert get_engine.cache_info().currsize == 0
        assert get_engine() is not engine
        await close_database()

    @pytest.mark.asyncio
    async def test_close_without_engine_is_noop(self, memory_database):
        await close_database()
        assert get_engine.cache_info().currsize == 0
