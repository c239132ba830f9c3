"""Persistence sync and the recurring sync scheduler."""

from odds_aggregator.sync.persistence import ApplyResult, OddsStore, PersistenceSync, point_movement
from odds_aggregator.sync.scheduler import (
    SingleFlightGuard,
    SyncScheduler,
    SyncState,
    start_auto_sync,
)

__all__ = [
    "ApplyResult",
    "OddsStore",
    "PersistenceSync",
    "point_movement",
    "SingleFlightGuard",
    "SyncScheduler",
    "SyncState",
    "start_auto_sync",
]
