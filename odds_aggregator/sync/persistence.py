"""Diff-and-upsert of normalized events into the odds store.

Every write is a per-row upsert committed on its own, so a cycle that fails
partway leaves earlier rows in place. A failed row is recorded on the
ApplyResult and the loop moves on to the next outcome, bookmaker or event.

Only the point (line) dimension is diffed: a price change with an unchanged
point updates the odds row but records no movement.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

from odds_aggregator.db.errors import PersistenceError
from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, NormalizedOutcome
from odds_aggregator.normalization.coercion import format_point

logger = get_logger()


class OddsStore(Protocol):
    """Persistence capability the sync writes through (see OddsRepository)."""

    async def ensure_sport(self, sport_key: str) -> Any: ...

    async def upsert_game(self, event: NormalizedEvent, sport_id: int) -> Any: ...

    async def upsert_bookmaker(
        self, key: str, title: str, last_update: datetime | None = None
    ) -> Any: ...

    async def get_odds_row(
        self, game_id: str, bookmaker_id: int, market: str, outcome_type: str
    ) -> Any: ...

    async def upsert_odds(
        self,
        game_id: str,
        bookmaker_id: int,
        market: str,
        outcome: NormalizedOutcome,
        last_update: datetime | None = None,
    ) -> Any: ...

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
    ) -> Any: ...


@dataclass
class ApplyResult:
    games_updated: int = 0
    odds_updated: int = 0
    books_updated: int = 0
    movements_recorded: int = 0
    errors: list[str] = field(default_factory=list)


def point_movement(old_point: str | None, new_point: str | None) -> str | None:
    """Signed new - old as a decimal string, or None when there is no movement.

    Examples:
        >>> point_movement("-3.5", "-2.5")
        '1'
        >>> point_movement("47.5", "47.50") is None
        True
        >>> point_movement(None, "-3") is None
        True
    """
    if old_point is None or new_point is None:
        return None
    try:
        delta = Decimal(new_point) - Decimal(old_point)
    except InvalidOperation:
        return None
    if delta == 0:
        return None
    return format_point(str(delta))


class PersistenceSync:
    """Apply a batch of NormalizedEvents to an OddsStore.

    Usage:
        async with get_session() as session:
            result = await PersistenceSync(OddsRepository(session)).apply_events(events, "NFL")
    """

    def __init__(self, store: OddsStore):
        self.store = store

    async def apply_events(self, events: list[NormalizedEvent], sport_key: str) -> ApplyResult:
        result = ApplyResult()
        if not events:
            return result

        try:
            sport = await self.store.ensure_sport(sport_key)
        except PersistenceError as e:
            self._record(result, e)
            return result

        sport_id = sport.id
        for event in events:
            await self._apply_event(event, sport_id, result)

        logger.info(
            "persistence_applied",
            sport=sport_key,
            games=result.games_updated,
            odds=result.odds_updated,
            bookmakers=result.books_updated,
            movements=result.movements_recorded,
            error_count=len(result.errors),
        )
        return result

    async def _apply_event(self, event: NormalizedEvent, sport_id: int, result: ApplyResult) -> None:
        try:
            game = await self.store.upsert_game(event, sport_id)
        except PersistenceError as e:
            self._record(result, e)
            return
        # A failed row rolls the session back and expires loaded rows
        game_id = game.id
        result.games_updated += 1

        for quote in event.bookmakers:
            try:
                bookmaker = await self.store.upsert_bookmaker(quote.key, quote.title, quote.last_update)
            except PersistenceError as e:
                self._record(result, e)
                continue
            bookmaker_id = bookmaker.id
            result.books_updated += 1

            for market in quote.markets:
                for outcome in market.outcomes:
                    try:
                        await self._apply_outcome(
                            game_id, bookmaker_id, market.key, outcome, quote.last_update, result
                        )
                    except PersistenceError as e:
                        self._record(result, e)

    async def _apply_outcome(
        self,
        game_id: str,
        bookmaker_id: int,
        market: str,
        outcome: NormalizedOutcome,
        last_update: datetime,
        result: ApplyResult,
    ) -> None:
        previous = await self.store.get_odds_row(game_id, bookmaker_id, market, outcome.outcome_type)
        old_point = previous.point if previous is not None else None

        await self.store.upsert_odds(game_id, bookmaker_id, market, outcome, last_update)
        result.odds_updated += 1

        movement = point_movement(old_point, outcome.point)
        if movement is None:
            return

        await self.store.create_line_movement(
            game_id,
            market,
            old_point,
            outcome.point,
            movement,
            bookmaker_id=bookmaker_id,
            outcome_type=outcome.outcome_type,
        )
        result.movements_recorded += 1
        logger.info(
            "line_movement_recorded",
            game_id=game_id,
            market=market,
            outcome_type=outcome.outcome_type,
            old_value=old_point,
            new_value=outcome.point,
            movement=movement,
        )

    def _record(self, result: ApplyResult, error: PersistenceError) -> None:
        result.errors.append(f"store: {error}")
        logger.warning("persistence_row_failed", operation=error.operation, key=error.key, error=str(error))
