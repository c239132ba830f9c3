"""Recurring odds sync with a single-flight guard.

The scheduler fires a sync cycle on a fixed interval using APScheduler's
AsyncIOScheduler. Every firing, scheduled or manual, goes through the same
SingleFlightGuard: a trigger that arrives while a cycle is in flight is
skipped rather than queued. A cycle is never cancelled once started.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypeVar

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from odds_aggregator.config import Settings, get_settings
from odds_aggregator.monitoring import bind_correlation_id, get_logger, unbind_correlation_id

log = get_logger()

T = TypeVar("T")

JOB_ID = "odds_sync"


class SyncState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class SingleFlightGuard:
    """Run at most one coroutine at a time; concurrent callers get None.

    Each scheduler owns its own guard (or is handed one), so independent
    schedulers in the same process never block each other.

    Usage:
        guard = SingleFlightGuard()
        result = await guard.run(service.sync_all)  # None if already running
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self.state = SyncState.IDLE

    @property
    def running(self) -> bool:
        return self.state is SyncState.RUNNING

    async def run(self, fn: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T | None:
        if self._lock.locked():
            return None
        async with self._lock:
            self.state = SyncState.RUNNING
            try:
                return await fn(*args, **kwargs)
            finally:
                self.state = SyncState.IDLE


class SyncScheduler:
    """Sync a list of sports every `interval_minutes`.

    Args:
        service: OddsService (anything with an async sync_all(sports, delay_seconds))
        sports: League keys per cycle (defaults to SYNC_SPORTS)
        interval_minutes: Minutes between firings (defaults to SYNC_INTERVAL_MINUTES)
        guard: Single-flight guard; a fresh one when omitted
        delay_seconds: Pause between sports within a cycle
    """

    def __init__(
        self,
        service: Any,
        sports: list[str] | None = None,
        interval_minutes: float | None = None,
        *,
        guard: SingleFlightGuard | None = None,
        delay_seconds: float | None = None,
        settings: Settings | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.service = service
        self.sports = list(sports if sports is not None else settings.sync_sports)
        self.interval_minutes = (
            interval_minutes if interval_minutes is not None else settings.sync_interval_minutes
        )
        self.delay_seconds = delay_seconds if delay_seconds is not None else settings.sync_delay_seconds
        self.guard = guard or SingleFlightGuard()
        self.last_sync: datetime | None = None
        self.last_results: list = []
        self._scheduler: AsyncIOScheduler | None = None

    @property
    def scheduled(self) -> bool:
        return self._scheduler is not None

    async def _run_cycle(self) -> list:
        correlation_id = bind_correlation_id()
        try:
            log.info("sync_cycle_started", sports=self.sports, correlation_id=correlation_id)
            results = await self.service.sync_all(self.sports, delay_seconds=self.delay_seconds)
            self.last_sync = datetime.now(timezone.utc)
            self.last_results = results
            log.info("sync_cycle_completed", sports=self.sports, result_count=len(results))
            return results
        finally:
            unbind_correlation_id()

    async def sync_now(self) -> list | None:
        """Run one cycle now unless one is already in flight.

        Returns:
            The cycle's SyncResults, or None when the trigger was skipped
        """
        results = await self.guard.run(self._run_cycle)
        if results is None:
            log.info("sync_cycle_skipped", reason="cycle already running")
        return results

    async def start(self) -> None:
        """Start firing: one cycle immediately, then one per interval."""
        if self._scheduler is not None:
            log.warning("sync_scheduler_already_started")
            return

        self._scheduler = AsyncIOScheduler(
            timezone="UTC",
            job_defaults={"coalesce": True, "max_instances": 1},
        )
        self._scheduler.add_job(
            self.sync_now,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id=JOB_ID,
            name="Sync odds",
            next_run_time=datetime.now(timezone.utc),
        )
        self._scheduler.start()
        log.info("sync_scheduler_started", interval_minutes=self.interval_minutes, sports=self.sports)

    async def stop(self) -> None:
        """Stop future firings; a cycle already running finishes on its own."""
        if self._scheduler is None:
            return
        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        log.info("sync_scheduler_stopped")

    def status(self) -> dict[str, Any]:
        return {
            "running": self.guard.running,
            "scheduled": self.scheduled,
            "last_sync": self.last_sync.isoformat() if self.last_sync else None,
            "interval_minutes": self.interval_minutes,
            "sports": list(self.sports),
        }


async def start_auto_sync(service: Any, settings: Settings | None = None) -> SyncScheduler | None:
    """Start a scheduler when AUTO_SYNC_ODDS is set; None otherwise."""
    settings = settings or get_settings()
    if not settings.auto_sync_odds:
        return None
    scheduler = SyncScheduler(service, settings=settings)
    await scheduler.start()
    return scheduler
