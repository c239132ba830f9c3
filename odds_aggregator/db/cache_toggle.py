"""Odds read-cache configuration from environment variables.

The disk cache sits in front of OddsRepository.get_odds_by_game. It can be
disabled to troubleshoot stale reads.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_cache_config() -> dict:
    """Load cache configuration from environment.

    Environment variables:
        ODDS_CACHE_ENABLED: "true"/"1"/"yes"/"on" = enabled (default: true)
        ODDS_CACHE_TTL: seconds (default: 300)
        ODDS_CACHE_DIR: cache directory (default: .cache/odds_reads)

    Returns:
        Dictionary with enabled, ttl, and cache_dir keys.

    Examples:
        >>> os.environ["ODDS_CACHE_ENABLED"] = "false"
        >>> get_cache_config.cache_clear()
        >>> get_cache_config()["enabled"]
        False
    """
    enabled_str = os.getenv("ODDS_CACHE_ENABLED", "true").strip().lower() or "true"
    enabled = enabled_str in ("true", "1", "yes", "on")

    try:
        ttl = int(os.getenv("ODDS_CACHE_TTL", "300"))
    except ValueError:
        ttl = 300

    return {
        "enabled": enabled,
        "ttl": ttl,
        "cache_dir": os.getenv("ODDS_CACHE_DIR", ".cache/odds_reads"),
    }


def is_cache_enabled() -> bool:
    return get_cache_config()["enabled"]
