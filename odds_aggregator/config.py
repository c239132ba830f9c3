"""Configuration management for the odds aggregator.

Settings are loaded from environment variables (and an optional .env file)
using pydantic-settings. Provider credentials are optional here: each
provider adapter decides whether a missing key is fatal for itself.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Provider credentials:
    - SPORTSGAMEODDS_API_KEY: primary odds provider (x-api-key header)
    - SPORTSDATAIO_API_KEY: secondary sports-data provider (key query param)
    - RAPIDAPI_KEY: arbitrage feed (x-rapidapi-key header)

    The public scoreboard provider needs no credential.
    """

    # Provider credentials
    sportsgameodds_api_key: str = Field(default="", description="SportsGameOdds API key")
    sportsdataio_api_key: str = Field(default="", description="SportsDataIO API key")
    rapidapi_key: str = Field(default="", description="RapidAPI key for the arbitrage feed")

    # Runtime
    environment: str = Field(default="development")
    log_mode: str = Field(default="development")
    database_url: str = Field(default="", description="SQLAlchemy async URL; SQLite when empty")

    # Database pool configuration (PostgreSQL only)
    db_pool_size: int = Field(default=10, ge=1, le=50)
    db_max_overflow: int = Field(default=20, ge=0, le=100)
    db_pool_recycle: int = Field(default=3600, ge=300, le=86400)

    # Upstream HTTP behaviour
    request_timeout: float = Field(default=15.0, gt=0)
    rate_limit_max_attempts: int = Field(
        default=3,
        ge=2,
        le=3,
        description="Total attempts for a request answered with HTTP 429",
    )
    rate_limit_backoff_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Base delay; the wait before retry n is base * n",
    )
    page_size: int = Field(default=50, ge=1, le=500)
    max_pages: int = Field(default=5, ge=1, le=50)
    max_link_hops: int = Field(default=2, ge=1, le=2)

    # Provider preference per sport; names match ProviderRegistry keys
    sport_preferences: dict[str, list[str]] = Field(
        default_factory=lambda: {
            "NFL": ["scoreboard", "secondary", "primary"],
        }
    )
    default_preference: list[str] = Field(
        default_factory=lambda: ["secondary", "primary"]
    )

    # Scheduled sync
    sync_interval_minutes: float = Field(default=5, gt=0)
    sync_sports: list[str] = Field(default_factory=lambda: ["NFL", "NBA", "MLB", "NHL"])
    sync_delay_seconds: float = Field(default=1.0, ge=0)
    auto_sync_odds: bool = Field(default=False)

    # Analytics defaults
    big_mover_hours: float = Field(default=24, gt=0)
    big_mover_min_movement: float = Field(default=1.0, ge=0)
    big_mover_limit: int = Field(default=10, ge=1, le=100)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def preference_for(self, sport_key: str) -> list[str]:
        """Provider preference order for a sport, falling back to the default."""
        return list(self.sport_preferences.get(sport_key.upper(), self.default_preference))


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (singleton).

    Returns:
        Settings instance with validated configuration
    """
    return Settings()
