"""Service facade: the operations an outer HTTP layer or the CLI calls.

OddsService wires the aggregator, persistence sync, repository and
analytics together. Each operation opens its own database session; sync
writes commit per row inside the repository.

Usage:
    service = OddsService()
    result = await service.sync_sport("NFL")
    best = await service.get_best_odds(result_game_id, "spreads")
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from odds_aggregator.aggregation import Aggregator
from odds_aggregator.analytics import BestQuote, best_odds_summary, select_best_odds
from odds_aggregator.config import Settings, get_settings
from odds_aggregator.db.records import GameRecord, LineMovementRecord
from odds_aggregator.db.repositories.odds import OddsRepository
from odds_aggregator.db.session import get_session
from odds_aggregator.monitoring import (
    bind_correlation_id,
    current_correlation_id,
    get_logger,
    unbind_correlation_id,
)
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor
from odds_aggregator.providers import ProviderError, SecondaryOddsProvider, SyncReport
from odds_aggregator.sync.persistence import ApplyResult, PersistenceSync

log = get_logger()

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


@dataclass
class SyncResult:
    """Summary of one sport sync.

    Attributes:
        source: Provider(s) the events came from, or "none"
        errors: Provider and store errors; a sync never raises for these
    """

    sport: str
    source: str = "none"
    games_updated: int = 0
    odds_updated: int = 0
    books_updated: int = 0
    movements_recorded: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def no_data(self) -> bool:
        return self.source == "none" or self.games_updated == 0

    def apply(self, applied: ApplyResult) -> None:
        self.games_updated += applied.games_updated
        self.odds_updated += applied.odds_updated
        self.books_updated += applied.books_updated
        self.movements_recorded += applied.movements_recorded
        self.errors.extend(applied.errors)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sport": self.sport,
            "source": self.source,
            "gamesUpdated": self.games_updated,
            "oddsUpdated": self.odds_updated,
            "booksUpdated": self.books_updated,
            "movementsRecorded": self.movements_recorded,
            "skipped": self.skipped,
            "errors": list(self.errors),
            "noData": self.no_data,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class CatalogResult:
    """Sports catalogue sync: the sports stored and the providers that failed."""

    sports: list[SportDescriptor] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class OddsService:
    """Facade over aggregation, persistence and analytics.

    Args:
        aggregator: Aggregator to fetch with (built from settings if omitted)
        session_factory: Zero-arg callable returning an async session
            context manager (defaults to get_session)
        settings: Application settings
    """

    def __init__(
        self,
        aggregator: Aggregator | None = None,
        session_factory: SessionFactory | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.aggregator = aggregator or Aggregator(settings=self.settings)
        self.session_factory = session_factory or get_session

    @asynccontextmanager
    async def _repository(self) -> AsyncIterator[OddsRepository]:
        async with self.session_factory() as session:
            repo = OddsRepository(session)
            try:
                yield repo
            finally:
                repo.close_cache()

    async def _persist(self, events: list[NormalizedEvent], sport_key: str) -> ApplyResult:
        async with self._repository() as repo:
            return await PersistenceSync(repo).apply_events(events, sport_key)

    # Sync

    async def sync_sport(
        self,
        sport_key: str,
        preference: list[str] | None = None,
        combine: bool = False,
        limit: int = 50,
    ) -> SyncResult:
        """Fetch a sport from the providers and persist what came back.

        Args:
            sport_key: League identifier (e.g., "NFL")
            preference: Provider order override
            combine: Merge all providers instead of first-non-empty
            limit: Maximum events per provider

        Returns:
            SyncResult; source "none" with errors when every provider failed
        """
        sport_key = sport_key.upper()
        # Scheduled cycles bind their own id for every sport in the cycle
        owns_correlation_id = current_correlation_id() is None
        if owns_correlation_id:
            bind_correlation_id()
        try:
            log.info("sync_sport_started", sport=sport_key, combine=combine)
            aggregated = await self.aggregator.fetch_events(
                sport_key, preference, combine=combine, limit=limit
            )
            result = SyncResult(
                sport=sport_key,
                source=aggregated.source,
                skipped=aggregated.skipped,
                errors=list(aggregated.errors),
            )
            if aggregated.events:
                result.apply(await self._persist(aggregated.events, sport_key))

            log.info(
                "sync_sport_completed",
                sport=sport_key,
                source=result.source,
                games=result.games_updated,
                odds=result.odds_updated,
                movements=result.movements_recorded,
                skipped=result.skipped,
                error_count=len(result.errors),
            )
            return result
        finally:
            if owns_correlation_id:
                unbind_correlation_id()

    async def sync_all(
        self, sports: list[str] | None = None, delay_seconds: float | None = None
    ) -> list[SyncResult]:
        """Sync several sports in sequence, each with its preferred providers.

        Args:
            sports: League keys (defaults to SYNC_SPORTS)
            delay_seconds: Pause between sports (defaults to SYNC_DELAY_SECONDS)
        """
        sports = sports if sports is not None else self.settings.sync_sports
        delay = self.settings.sync_delay_seconds if delay_seconds is None else delay_seconds

        results = []
        for index, sport_key in enumerate(sports):
            if index and delay > 0:
                await asyncio.sleep(delay)
            results.append(await self.sync_sport(sport_key))

        log.info(
            "sync_all_completed",
            sports=[r.sport for r in results],
            games=sum(r.games_updated for r in results),
            movements=sum(r.movements_recorded for r in results),
        )
        return results

    async def sync_sports(self, providers: list[str] | None = None) -> CatalogResult:
        """Fetch sport catalogues and upsert them; the first provider to list a key wins."""
        result = CatalogResult()
        seen: dict[str, SportDescriptor] = {}

        for name in providers or self.aggregator.registry.names:
            provider = self.aggregator.registry.get(name)
            if provider is None:
                continue
            try:
                sports = await provider.fetch_sports()
            except ProviderError as e:
                result.errors.append(f"{name}: {e}")
                continue
            for sport in sports:
                seen.setdefault(sport.key, sport)

        if not seen:
            return result

        async with self._repository() as repo:
            for sport in seen.values():
                await repo.upsert_sport(sport)
                result.sports.append(sport)

        log.info("sports_synced", count=len(result.sports), errors=len(result.errors))
        return result

    async def fetch_schedule(
        self, sport_key: str, report: SyncReport | None = None
    ) -> list[NormalizedEvent]:
        """Games for a league from the secondary provider's schedule, without odds."""
        provider = self.aggregator.registry.get(SecondaryOddsProvider.name)
        if provider is None:
            raise ProviderError(SecondaryOddsProvider.name, "provider unavailable")
        return await provider.fetch_games(sport_key, report)

    async def sync_schedule(self, sport_key: str) -> SyncResult:
        """Persist a league's schedule so games exist before odds arrive."""
        sport_key = sport_key.upper()
        result = SyncResult(sport=sport_key)
        report = SyncReport()
        try:
            events = await self.fetch_schedule(sport_key, report)
        except ProviderError as e:
            result.errors.append(f"{e.provider}: {e}")
            return result

        result.skipped = report.skipped
        if events:
            result.source = SecondaryOddsProvider.name
            result.apply(await self._persist(events, sport_key))
        return result

    # Queries

    async def get_best_odds(self, game_id: str, market: str = "h2h") -> list[BestQuote]:
        async with self._repository() as repo:
            rows = await repo.get_odds_by_game(game_id, market=market)
        return select_best_odds(rows)

    async def get_best_odds_summary(
        self, game_id: str, market: str = "h2h"
    ) -> dict[str, BestQuote | None]:
        async with self._repository() as repo:
            rows = await repo.get_odds_by_game(game_id, market=market)
        return best_odds_summary(rows)

    async def get_line_movements(
        self, game_id: str, hours: float = 24, now: datetime | None = None
    ) -> list[LineMovementRecord]:
        async with self._repository() as repo:
            return await repo.get_line_movements(game_id, hours=hours, now=now)

    async def get_big_movers(
        self,
        hours: float | None = None,
        min_movement: float | None = None,
        limit: int | None = None,
        now: datetime | None = None,
    ) -> list[LineMovementRecord]:
        """Big movers with BIG_MOVER_* settings as defaults."""
        async with self._repository() as repo:
            return await repo.get_big_movers(
                hours=self.settings.big_mover_hours if hours is None else hours,
                min_movement=(
                    self.settings.big_mover_min_movement if min_movement is None else min_movement
                ),
                limit=self.settings.big_mover_limit if limit is None else limit,
                now=now,
            )

    async def get_upcoming_games(
        self, sport: str | None = None, limit: int = 50, now: datetime | None = None
    ) -> list[GameRecord]:
        async with self._repository() as repo:
            return await repo.get_upcoming_games(sport, limit=limit, now=now)

    async def list_sports(self) -> list[SportDescriptor]:
        async with self._repository() as repo:
            return await repo.list_sports()
