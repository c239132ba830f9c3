"""Immutable read records and converters from ORM models.

Repository reads return these frozen dataclasses instead of live ORM
objects so that callers (analytics, CLI, cache) never touch a session.
"""

from dataclasses import dataclass
from datetime import datetime

from odds_aggregator.db.models import GameModel, LineMovementModel, OddsModel


@dataclass(frozen=True)
class OddsRecord:
    """Stored quote joined with its bookmaker."""

    game_id: str
    bookmaker_key: str
    bookmaker_title: str
    market: str
    outcome_type: str
    price: str
    point: str | None
    outcome_name: str | None
    last_update: datetime


@dataclass(frozen=True)
class GameRecord:
    id: str
    sport_key: str
    home_team: str
    away_team: str
    commence_time: datetime
    completed: bool
    home_score: int | None
    away_score: int | None


@dataclass(frozen=True)
class LineMovementRecord:
    """Stored line movement, optionally joined with its game.

    Attributes:
        movement: Signed change (new - old) as a decimal string
        home_team: Present when read through a game join (big movers)
        away_team: Present when read through a game join (big movers)
    """

    id: int
    game_id: str
    market: str
    outcome_type: str | None
    bookmaker_key: str | None
    old_value: str
    new_value: str
    movement: str
    timestamp: datetime
    home_team: str | None = None
    away_team: str | None = None


def model_to_odds_record(model: OddsModel) -> OddsRecord:
    return OddsRecord(
        game_id=model.game_id,
        bookmaker_key=model.bookmaker.key,
        bookmaker_title=model.bookmaker.title,
        market=model.market,
        outcome_type=model.outcome_type,
        price=model.price,
        point=model.point,
        outcome_name=model.outcome_name,
        last_update=model.last_update,
    )


def model_to_game_record(model: GameModel) -> GameRecord:
    return GameRecord(
        id=model.id,
        sport_key=model.sport.key,
        home_team=model.home_team,
        away_team=model.away_team,
        commence_time=model.commence_time,
        completed=model.completed,
        home_score=model.home_score,
        away_score=model.away_score,
    )


def model_to_movement_record(
    model: LineMovementModel, game: GameModel | None = None
) -> LineMovementRecord:
    return LineMovementRecord(
        id=model.id,
        game_id=model.game_id,
        market=model.market,
        outcome_type=model.outcome_type,
        bookmaker_key=model.bookmaker.key if model.bookmaker is not None else None,
        old_value=model.old_value,
        new_value=model.new_value,
        movement=model.movement,
        timestamp=model.timestamp,
        home_team=game.home_team if game is not None else None,
        away_team=game.away_team if game is not None else None,
    )
