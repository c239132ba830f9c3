"""SQLAlchemy ORM models for the odds store.

Tables:
- sports: leagues known to the system
- games: one row per event, keyed by the source-namespaced event id
- bookmakers: one row per sportsbook key
- odds: current quote per (game, bookmaker, market, outcome_type), upserted
  in place
- line_movements: append-only history of point changes

Prices, points and movements are stored as decimal strings exactly as the
normalized models carry them. Timestamps are naive UTC.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

OUTCOME_TYPES = ("home", "away", "over", "under")


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC for storage; naive passes through."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now_naive() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class SportModel(Base):
    __tablename__ = "sports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    group: Mapped[str] = mapped_column(String(50), nullable=False, default="")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now_naive)


class GameModel(Base):
    """One sporting event.

    Indexes:
        - (sport_id, commence_time): upcoming games per league
    """

    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    sport_id: Mapped[int] = mapped_column(ForeignKey("sports.id"), nullable=False)
    home_team: Mapped[str] = mapped_column(String(100), nullable=False)
    away_team: Mapped[str] = mapped_column(String(100), nullable=False)
    commence_time: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    home_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    away_score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    last_update: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now_naive)

    sport: Mapped[SportModel] = relationship(lazy="joined")

    __table_args__ = (Index("ix_games_sport_commence", "sport_id", "commence_time"),)


class BookmakerModel(Base):
    __tablename__ = "bookmakers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    last_update: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now_naive)


class OddsModel(Base):
    """Current quote for one outcome of one market at one bookmaker.

    Unique on (game_id, bookmaker_id, market, outcome_type); writes upsert.
    """

    __tablename__ = "odds"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    bookmaker_id: Mapped[int] = mapped_column(ForeignKey("bookmakers.id"), nullable=False)
    market: Mapped[str] = mapped_column(String(20), nullable=False)
    outcome_type: Mapped[str] = mapped_column(String(10), nullable=False)
    outcome_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    price: Mapped[str] = mapped_column(String(20), nullable=False)
    point: Mapped[str | None] = mapped_column(String(20), nullable=True)
    last_update: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now_naive)

    bookmaker: Mapped[BookmakerModel] = relationship(lazy="joined")

    __table_args__ = (
        UniqueConstraint(
            "game_id", "bookmaker_id", "market", "outcome_type", name="uq_odds_game_book_market_outcome"
        ),
        CheckConstraint(
            "outcome_type IN ('home', 'away', 'over', 'under')", name="ck_odds_outcome_type"
        ),
        Index("ix_odds_game_market", "game_id", "market"),
    )


class LineMovementModel(Base):
    """A change of point for one (game, bookmaker, market, outcome_type).

    movement is new_value - old_value, signed.

    Indexes:
        - (game_id, timestamp): movement history per game
        - timestamp: windowed big-mover scans
    """

    __tablename__ = "line_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id"), nullable=False)
    bookmaker_id: Mapped[int | None] = mapped_column(ForeignKey("bookmakers.id"), nullable=True)
    market: Mapped[str] = mapped_column(String(20), nullable=False)
    outcome_type: Mapped[str | None] = mapped_column(String(10), nullable=True)
    old_value: Mapped[str] = mapped_column(String(20), nullable=False)
    new_value: Mapped[str] = mapped_column(String(20), nullable=False)
    movement: Mapped[str] = mapped_column(String(20), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now_naive, index=True
    )

    bookmaker: Mapped[BookmakerModel | None] = relationship(lazy="joined")

    __table_args__ = (Index("ix_line_movements_game_timestamp", "game_id", "timestamp"),)
