"""Database layer for the odds aggregator.

Provides SQLAlchemy ORM models, async session management, frozen read
records, and the OddsRepository.

Public exports:
    - Base: SQLAlchemy declarative base
    - SportModel, GameModel, BookmakerModel, OddsModel, LineMovementModel
    - OddsRecord, GameRecord, LineMovementRecord: frozen read records
    - get_session / get_engine / get_database_url: session management
    - init_database: Create the schema if missing
    - close_database: Dispose the engine before the event loop ends
"""

from sqlalchemy.ext.asyncio import AsyncEngine

from odds_aggregator.db.errors import PersistenceError
from odds_aggregator.db.models import (
    Base,
    BookmakerModel,
    GameModel,
    LineMovementModel,
    OddsModel,
    SportModel,
)
from odds_aggregator.db.records import GameRecord, LineMovementRecord, OddsRecord
from odds_aggregator.db.repositories.odds import OddsRepository
from odds_aggregator.db.session import close_database, get_database_url, get_engine, get_session


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Create tables that don't exist yet.

    Production deployments run `alembic upgrade head` instead; this is for
    SQLite development databases and tests.

    Args:
        engine: Engine to initialize (defaults to the configured engine)
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


__all__ = [
    "Base",
    "SportModel",
    "GameModel",
    "BookmakerModel",
    "OddsModel",
    "LineMovementModel",
    "OddsRecord",
    "GameRecord",
    "LineMovementRecord",
    "PersistenceError",
    "OddsRepository",
    "get_session",
    "get_engine",
    "get_database_url",
    "init_database",
    "close_database",
]
