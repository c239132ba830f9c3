"""Shared pytest fixtures for odds aggregator tests."""

from contextlib import asynccontextmanager

import pytest
from factories import make_event, make_outcome
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from odds_aggregator.config import Settings
from odds_aggregator.db.cache_toggle import get_cache_config
from odds_aggregator.db.models import Base
from odds_aggregator.monitoring import configure_logging


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Configure structlog for test output."""
    configure_logging("development")


@pytest.fixture(autouse=True)
def disable_odds_cache(monkeypatch):
    """Repository reads go straight to the database unless a test opts in."""
    monkeypatch.setenv("ODDS_CACHE_ENABLED", "false")
    get_cache_config.cache_clear()
    yield
    get_cache_config.cache_clear()


@pytest.fixture
def settings():
    """Settings with every credential set and no waiting between retries or sports."""
    return Settings(
        _env_file=None,
        sportsgameodds_api_key="test-sgo-key",
        sportsdataio_api_key="test-sdio-key",
        rapidapi_key="test-rapid-key",
        rate_limit_max_attempts=2,
        rate_limit_backoff_seconds=0,
        sync_delay_seconds=0,
        sport_preferences={"NFL": ["scoreboard", "secondary", "primary"]},
        default_preference=["primary", "secondary"],
    )


@pytest.fixture
async def test_engine():
    """In-memory SQLite engine shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def session_factory(session_maker):
    """Zero-arg session context manager, shaped like db.session.get_session."""

    @asynccontextmanager
    async def factory():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return factory


@pytest.fixture
def sample_event():
    """One NFL game quoted by two books across all three markets."""
    return make_event(
        books={
            "draftkings": {
                "h2h": [make_outcome("home", "-150"), make_outcome("away", "130")],
                "spreads": [make_outcome("home", "-110", "-3.5"), make_outcome("away", "-110", "3.5")],
                "totals": [make_outcome("over", "-108", "47.5"), make_outcome("under", "-112", "47.5")],
            },
            "fanduel": {
                "h2h": [make_outcome("home", "-145"), make_outcome("away", "125")],
                "spreads": [make_outcome("home", "-105", "-3"), make_outcome("away", "-115", "3")],
            },
        }
    )
