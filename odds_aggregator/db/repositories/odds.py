"""Repository for the odds store with a disk read-cache.

Two tiers for per-game odds reads:

- L1 (diskcache): TTL cache of get_odds_by_game results, dropped whenever
  odds for that game are upserted
- L2 (database): the authoritative store

Writes use dialect-specific INSERT ... ON CONFLICT DO UPDATE and commit per
row; a failed write is rolled back and raised as PersistenceError so the
caller can record it and continue.

Cache can be disabled via ODDS_CACHE_ENABLED=false.
"""

from dataclasses import asdict
from datetime import datetime, timedelta
from decimal import Decimal

from diskcache import FanoutCache
from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from odds_aggregator.analytics.movers import filter_big_movers
from odds_aggregator.db.cache_toggle import get_cache_config
from odds_aggregator.db.errors import PersistenceError
from odds_aggregator.db.models import (
    BookmakerModel,
    GameModel,
    LineMovementModel,
    OddsModel,
    SportModel,
    to_naive_utc,
    utc_now_naive,
)
from odds_aggregator.db.records import (
    GameRecord,
    LineMovementRecord,
    OddsRecord,
    model_to_game_record,
    model_to_movement_record,
    model_to_odds_record,
)
from odds_aggregator.monitoring import CacheMetrics, get_logger
from odds_aggregator.normalization import NormalizedEvent, NormalizedOutcome, SportDescriptor


class OddsRepository:
    """Store for sports, games, bookmakers, odds and line movements.

    Examples:
        >>> from odds_aggregator.db.session import get_session
        >>> async with get_session() as session:
        ...     repo = OddsRepository(session)
        ...     sport = await repo.ensure_sport("NFL")
        ...     game = await repo.upsert_game(event, sport.id)
        ...     rows = await repo.get_odds_by_game(game.id, market="h2h")
    """

    def __init__(self, session: AsyncSession):
        """Initialize repository with a database session.

        Args:
            session: AsyncSession used for every read and write
        """
        self.session = session
        self.logger = get_logger()
        self.cache_metrics = CacheMetrics()

        config = get_cache_config()
        self._cache_enabled = config["enabled"]
        self._cache_ttl = config["ttl"]

        if self._cache_enabled:
            self._disk_cache: FanoutCache | None = FanoutCache(
                directory=config["cache_dir"],
                shards=8,
                timeout=0.01,
            )
            self.logger.debug("odds_cache_initialized", ttl=self._cache_ttl, cache_dir=config["cache_dir"])
        else:
            self._disk_cache = None

    def _insert(self, model):
        dialect_name = self.session.bind.dialect.name if self.session.bind else "sqlite"
        if dialect_name == "postgresql":
            return pg_insert(model)
        return sqlite_insert(model)

    async def _write(self, operation: str, key: str, stmt) -> None:
        try:
            await self.session.execute(stmt)
            await self.session.commit()
        except SQLAlchemyError as e:
            self.logger.error(
                "store_write_failed",
                operation=operation,
                key=key,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.session.rollback()
            raise PersistenceError(operation, key, e) from e

    async def _fresh(self, stmt):
        """Execute a read that overwrites any stale rows in the identity map."""
        return await self.session.execute(stmt.execution_options(populate_existing=True))

    async def _fresh_scalar(self, stmt):
        return (await self._fresh(stmt)).scalar_one_or_none()

    async def _reselect(self, stmt):
        return (await self._fresh(stmt)).scalar_one()

    # Sports

    async def upsert_sport(self, sport: SportDescriptor) -> SportModel:
        """Insert or update a sport by key."""
        stmt = self._insert(SportModel).values(
            key=sport.key,
            title=sport.title,
            group=sport.group,
            active=sport.active,
            created_at=utc_now_naive(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={
                "title": stmt.excluded.title,
                "group": stmt.excluded.group,
                "active": stmt.excluded.active,
            },
        )
        await self._write("upsert_sport", sport.key, stmt)
        return await self._reselect(select(SportModel).where(SportModel.key == sport.key))

    async def ensure_sport(self, sport_key: str) -> SportModel:
        """Return the sport row for a key, creating a minimal one if missing."""
        sport_key = sport_key.upper()
        existing = await self._fresh_scalar(select(SportModel).where(SportModel.key == sport_key))
        if existing is not None:
            return existing

        stmt = self._insert(SportModel).values(
            key=sport_key, title=sport_key, group="", active=True, created_at=utc_now_naive()
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["key"])
        await self._write("ensure_sport", sport_key, stmt)
        return await self._reselect(select(SportModel).where(SportModel.key == sport_key))

    async def list_sports(self) -> list[SportDescriptor]:
        result = await self._fresh(select(SportModel).order_by(SportModel.key))
        return [
            SportDescriptor(key=s.key, title=s.title, group=s.group, active=s.active)
            for s in result.scalars().all()
        ]

    # Games

    async def upsert_game(self, event: NormalizedEvent, sport_id: int) -> GameModel:
        """Insert or update a game by event id.

        On conflict the teams, commence time and completion flag are
        replaced; scores are only replaced by non-null values.
        """
        stmt = self._insert(GameModel).values(
            id=event.id,
            sport_id=sport_id,
            home_team=event.home_team,
            away_team=event.away_team,
            commence_time=to_naive_utc(event.commence_time),
            completed=event.completed,
            home_score=event.home_score,
            away_score=event.away_score,
            last_update=utc_now_naive(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={
                "home_team": stmt.excluded.home_team,
                "away_team": stmt.excluded.away_team,
                "commence_time": stmt.excluded.commence_time,
                "completed": stmt.excluded.completed,
                "home_score": func.coalesce(stmt.excluded.home_score, GameModel.home_score),
                "away_score": func.coalesce(stmt.excluded.away_score, GameModel.away_score),
                "last_update": stmt.excluded.last_update,
            },
        )
        await self._write("upsert_game", event.id, stmt)
        return await self._reselect(select(GameModel).where(GameModel.id == event.id))

    async def get_game(self, game_id: str) -> GameRecord | None:
        game = await self._fresh_scalar(select(GameModel).where(GameModel.id == game_id))
        return model_to_game_record(game) if game is not None else None

    async def get_games_by_sport(self, sport_key: str) -> list[GameRecord]:
        stmt = (
            select(GameModel)
            .join(SportModel, GameModel.sport_id == SportModel.id)
            .where(SportModel.key == sport_key.upper())
            .order_by(GameModel.commence_time)
        )
        result = await self._fresh(stmt)
        return [model_to_game_record(g) for g in result.scalars().all()]

    async def get_upcoming_games(
        self,
        sport_key: str | None = None,
        limit: int = 50,
        now: datetime | None = None,
    ) -> list[GameRecord]:
        """Games starting at or after now, soonest first.

        Args:
            sport_key: Restrict to one league
            limit: Maximum number of games
            now: Reference time (defaults to the current UTC time)
        """
        cutoff = to_naive_utc(now) if now is not None else utc_now_naive()
        stmt = select(GameModel).where(GameModel.commence_time >= cutoff)
        if sport_key:
            stmt = stmt.join(SportModel, GameModel.sport_id == SportModel.id).where(
                SportModel.key == sport_key.upper()
            )
        stmt = stmt.order_by(GameModel.commence_time).limit(limit)
        result = await self._fresh(stmt)
        return [model_to_game_record(g) for g in result.scalars().all()]

    # Bookmakers

    async def upsert_bookmaker(
        self, key: str, title: str, last_update: datetime | None = None
    ) -> BookmakerModel:
        stmt = self._insert(BookmakerModel).values(
            key=key,
            title=title,
            last_update=to_naive_utc(last_update) if last_update else utc_now_naive(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["key"],
            set_={"title": stmt.excluded.title, "last_update": stmt.excluded.last_update},
        )
        await self._write("upsert_bookmaker", key, stmt)
        return await self._reselect(select(BookmakerModel).where(BookmakerModel.key == key))

    # Odds

    async def get_odds_row(
        self, game_id: str, bookmaker_id: int, market: str, outcome_type: str
    ) -> OddsModel | None:
        """Current stored quote for the four-tuple, read fresh from the database."""
        stmt = (
            select(OddsModel)
            .where(OddsModel.game_id == game_id)
            .where(OddsModel.bookmaker_id == bookmaker_id)
            .where(OddsModel.market == market)
            .where(OddsModel.outcome_type == outcome_type)
        )
        return await self._fresh_scalar(stmt)

    async def upsert_odds(
        self,
        game_id: str,
        bookmaker_id: int,
        market: str,
        outcome: NormalizedOutcome,
        last_update: datetime | None = None,
    ) -> OddsModel:
        """Insert or update the quote for (game, bookmaker, market, outcome_type)."""
        key = f"{game_id}/{bookmaker_id}/{market}/{outcome.outcome_type}"
        stmt = self._insert(OddsModel).values(
            game_id=game_id,
            bookmaker_id=bookmaker_id,
            market=market,
            outcome_type=outcome.outcome_type,
            outcome_name=outcome.name,
            price=outcome.price,
            point=outcome.point,
            last_update=to_naive_utc(last_update) if last_update else utc_now_naive(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["game_id", "bookmaker_id", "market", "outcome_type"],
            set_={
                "outcome_name": stmt.excluded.outcome_name,
                "price": stmt.excluded.price,
                "point": stmt.excluded.point,
                "last_update": stmt.excluded.last_update,
            },
        )
        await self._write("upsert_odds", key, stmt)
        self.invalidate_cache(game_id)
        row = await self.get_odds_row(game_id, bookmaker_id, market, outcome.outcome_type)
        if row is None:
            raise PersistenceError("upsert_odds", key)
        return row

    async def get_odds_by_game(self, game_id: str, market: str | None = None) -> list[OddsRecord]:
        """Stored quotes for a game, checking the L1 cache first.

        Args:
            game_id: Event id
            market: Restrict to one market key

        Returns:
            OddsRecord list in insertion order; empty if the game has none
        """
        records = self._cache_get(game_id)
        if records is None:
            stmt = select(OddsModel).where(OddsModel.game_id == game_id).order_by(OddsModel.id)
            result = await self._fresh(stmt)
            records = [model_to_odds_record(m) for m in result.scalars().all()]
            self._cache_set(game_id, records)

        if market is not None:
            records = [r for r in records if r.market == market]
        return records

    # Line movements

    async def create_line_movement(
        self,
        game_id: str,
        market: str,
        old_value: str,
        new_value: str,
        movement: str | None = None,
        *,
        bookmaker_id: int | None = None,
        outcome_type: str | None = None,
        timestamp: datetime | None = None,
    ) -> LineMovementModel:
        """Append a line movement; movement defaults to new - old."""
        if movement is None:
            movement = str(Decimal(new_value) - Decimal(old_value))
        model = LineMovementModel(
            game_id=game_id,
            bookmaker_id=bookmaker_id,
            market=market,
            outcome_type=outcome_type,
            old_value=old_value,
            new_value=new_value,
            movement=movement,
            timestamp=to_naive_utc(timestamp) if timestamp else utc_now_naive(),
        )
        try:
            self.session.add(model)
            await self.session.commit()
        except SQLAlchemyError as e:
            self.logger.error(
                "store_write_failed",
                operation="create_line_movement",
                key=game_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.session.rollback()
            raise PersistenceError("create_line_movement", game_id, e) from e
        return model

    async def get_line_movements(
        self, game_id: str, hours: float = 24, now: datetime | None = None
    ) -> list[LineMovementRecord]:
        """Movements for a game within the last `hours`, newest first."""
        cutoff = (to_naive_utc(now) if now is not None else utc_now_naive()) - timedelta(hours=hours)
        stmt = (
            select(LineMovementModel)
            .where(LineMovementModel.game_id == game_id)
            .where(LineMovementModel.timestamp >= cutoff)
            .order_by(LineMovementModel.timestamp.desc(), LineMovementModel.id.desc())
        )
        result = await self._fresh(stmt)
        return [model_to_movement_record(m) for m in result.scalars().all()]

    async def get_big_movers(
        self,
        hours: float = 24,
        min_movement: float = 1.0,
        limit: int = 10,
        now: datetime | None = None,
    ) -> list[LineMovementRecord]:
        """Largest movements within the window, joined to their games.

        Args:
            hours: Window size ending at now
            min_movement: Minimum absolute movement to qualify
            limit: Maximum number of movers
            now: Reference time (defaults to the current UTC time)

        Returns:
            Movers, most recent first
        """
        cutoff = (to_naive_utc(now) if now is not None else utc_now_naive()) - timedelta(hours=hours)
        stmt = (
            select(LineMovementModel, GameModel)
            .join(GameModel, LineMovementModel.game_id == GameModel.id)
            .where(LineMovementModel.timestamp >= cutoff)
            .order_by(LineMovementModel.timestamp.desc(), LineMovementModel.id.desc())
        )
        result = await self._fresh(stmt)
        records = [model_to_movement_record(m, game) for m, game in result.all()]
        return filter_big_movers(records, min_movement=min_movement, limit=limit)

    # Cache

    def _cache_key(self, game_id: str) -> str:
        return f"odds:{game_id}"

    def _cache_get(self, game_id: str) -> list[OddsRecord] | None:
        if self._disk_cache is None:
            return None
        cached = self._disk_cache.get(self._cache_key(game_id))
        if cached is None:
            self.cache_metrics.misses += 1
            return None
        self.cache_metrics.hits += 1
        self.logger.debug("cache_hit", source="disk", game_id=game_id)
        return [OddsRecord(**item) for item in cached]

    def _cache_set(self, game_id: str, records: list[OddsRecord]) -> None:
        if self._disk_cache is not None:
            self._disk_cache.set(
                self._cache_key(game_id), [asdict(r) for r in records], expire=self._cache_ttl
            )

    def invalidate_cache(self, game_id: str) -> None:
        """Drop the cached odds for a game."""
        if self._disk_cache is not None:
            if self._disk_cache.delete(self._cache_key(game_id)):
                self.cache_metrics.invalidations += 1
                self.logger.debug("cache_invalidated", game_id=game_id)

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    def close_cache(self) -> None:
        """Close disk cache to release file handles."""
        if self._disk_cache is not None:
            self._disk_cache.close()
            self._disk_cache = None
