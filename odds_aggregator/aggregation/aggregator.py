"""Multi-provider fetch with fallback and circuit breaker resilience.

Two modes:
- Sequential (default): providers are tried in preference order and the
  first non-empty result wins. Failures are recorded and the next provider
  is tried; an empty result falls through silently.
- Combine: every provider is fetched concurrently (settle-all) and events are
  merged across providers by matchup.

Each provider call runs behind its own circuit breaker (3 failures, 300s
recovery). Provider errors never escape fetch_events; they are collected
in AggregationResult.errors.
"""

import asyncio
import time
from dataclasses import dataclass, field

from circuitbreaker import CircuitBreaker, CircuitBreakerError

from odds_aggregator.aggregation.merge import merge_events
from odds_aggregator.config import Settings, get_settings
from odds_aggregator.monitoring import (
    ProviderMetrics,
    SportsbookMetrics,
    compute_sportsbook_metrics,
    get_logger,
)
from odds_aggregator.normalization import NormalizedEvent
from odds_aggregator.providers import (
    ProviderAuthError,
    ProviderError,
    ProviderRegistry,
    ProviderUnavailableError,
    SyncReport,
)

log = get_logger()

NO_SOURCE = "none"


@dataclass
class AggregationResult:
    """Outcome of one aggregation run.

    Attributes:
        events: Normalized events to persist
        source: Winning provider name, "+"-joined names in combine mode, or
            "none" when nothing was found
        errors: "<provider>: <message>" per failed provider
        skipped: Records dropped during normalization
        skip_reasons: "<provider>: <reason>" per skipped record
        providers_tried: Providers actually called, in order
        sportsbook_metrics: Coverage per bookmaker across the events
    """

    events: list[NormalizedEvent] = field(default_factory=list)
    source: str = NO_SOURCE
    errors: list[str] = field(default_factory=list)
    skipped: int = 0
    skip_reasons: list[str] = field(default_factory=list)
    providers_tried: list[str] = field(default_factory=list)
    sportsbook_metrics: dict[str, SportsbookMetrics] = field(default_factory=dict)

    @property
    def no_data(self) -> bool:
        return not self.events

    def to_dict(self) -> dict:
        return {
            "events": [e.to_canonical_json() for e in self.events],
            "source": self.source,
            "errors": list(self.errors),
            "skipped": self.skipped,
            "skip_reasons": list(self.skip_reasons),
            "providers_tried": list(self.providers_tried),
            "sportsbook_metrics": {k: m.to_dict() for k, m in self.sportsbook_metrics.items()},
        }


class Aggregator:
    """Fetch normalized events for a sport from the configured providers.

    Attributes:
        registry: Provider registry (lazy construction, disabling)
        provider_metrics: Call metrics per provider name
    """

    def __init__(
        self,
        registry: ProviderRegistry | None = None,
        settings: Settings | None = None,
        *,
        failure_threshold: int = 3,
        recovery_timeout: int = 300,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry or ProviderRegistry(settings=self.settings)
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._breakers: dict[str, CircuitBreaker] = {}
        self.provider_metrics: dict[str, ProviderMetrics] = {}

    def breaker_for(self, name: str) -> CircuitBreaker:
        if name not in self._breakers:
            self._breakers[name] = CircuitBreaker(
                failure_threshold=self.failure_threshold,
                recovery_timeout=self.recovery_timeout,
                expected_exception=ProviderUnavailableError,
                name=f"odds_provider_{name}_{id(self)}",
            )
        return self._breakers[name]

    def _metrics_for(self, name: str) -> ProviderMetrics:
        return self.provider_metrics.setdefault(name, ProviderMetrics(name=name))

    async def fetch_events(
        self,
        sport_key: str,
        preference: list[str] | None = None,
        *,
        combine: bool = False,
        limit: int = 50,
    ) -> AggregationResult:
        """Fetch events for a sport with fallback or combine semantics.

        Args:
            sport_key: League identifier (e.g., "NFL")
            preference: Provider names in order; defaults to the configured
                preference for the sport (all providers in combine mode)
            combine: Fetch every provider concurrently and merge
            limit: Maximum events requested from each provider

        Returns:
            AggregationResult. Total failure is reported with source "none",
            never raised.
        """
        sport_key = sport_key.upper()
        if preference is None:
            preference = self.registry.names if combine else self.settings.preference_for(sport_key)

        log.info(
            "aggregation_started",
            sport=sport_key,
            preference=preference,
            mode="combine" if combine else "sequential",
        )

        if combine:
            result = await self._fetch_combined(sport_key, preference, limit)
        else:
            result = await self._fetch_sequential(sport_key, preference, limit)

        result.sportsbook_metrics = compute_sportsbook_metrics(result.events)
        log.info(
            "aggregation_completed",
            sport=sport_key,
            source=result.source,
            event_count=len(result.events),
            sportsbooks=sorted(result.sportsbook_metrics),
            errors=len(result.errors),
            skipped=result.skipped,
        )
        return result

    async def _fetch_sequential(
        self, sport_key: str, preference: list[str], limit: int
    ) -> AggregationResult:
        result = AggregationResult()
        report = SyncReport()

        for name in preference:
            result.providers_tried.append(name)
            events = await self._attempt(name, sport_key, limit, report)
            if events:
                result.events = events
                result.source = name
                break

        self._apply_report(result, report)
        return result

    async def _fetch_combined(
        self, sport_key: str, preference: list[str], limit: int
    ) -> AggregationResult:
        result = AggregationResult(providers_tried=list(preference))
        reports = [SyncReport() for _ in preference]

        outcomes = await asyncio.gather(
            *(
                self._attempt(name, sport_key, limit, report)
                for name, report in zip(preference, reports)
            ),
            return_exceptions=True,
        )

        batches: list[tuple[str, list[NormalizedEvent]]] = []
        for name, report, outcome in zip(preference, reports, outcomes):
            if isinstance(outcome, BaseException):
                report.error(name, f"{type(outcome).__name__}: {outcome}")
                continue
            if outcome:
                batches.append((name, outcome))

        combined = SyncReport()
        for report in reports:
            combined.merge(report)

        events, contributors = merge_events(batches)
        result.events = events
        result.source = "+".join(contributors) if contributors else NO_SOURCE
        self._apply_report(result, combined)
        return result

    async def _attempt(
        self, name: str, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent] | None:
        """Call one provider; None when it failed (the failure is on the report)."""
        provider = self.registry.get(name)
        if provider is None:
            reason = self.registry.disabled.get(name, "unknown provider")
            report.error(name, f"provider unavailable ({reason})")
            return None

        metrics = self._metrics_for(name)
        start_time = time.perf_counter()
        guarded_fetch = self.breaker_for(name).decorate(provider.fetch_odds)

        try:
            events = await guarded_fetch(sport_key, limit=limit, report=report)
        except CircuitBreakerError:
            message = "circuit breaker open, provider temporarily unavailable"
        except ProviderAuthError as e:
            self.registry.disable(name, str(e))
            message = str(e)
        except ProviderError as e:
            message = str(e)
        except Exception as e:
            log.error(
                "provider_unexpected_error",
                provider=name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            message = f"{type(e).__name__}: {e}"
        else:
            duration_ms = int((time.perf_counter() - start_time) * 1000)
            events = self._validate(name, events, report)
            metrics.record_success(len(events), duration_ms)
            if not events:
                log.info("provider_returned_no_events", provider=name, sport=sport_key)
            return events

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        metrics.record_failure(message, duration_ms)
        report.error(name, message)
        log.warning("provider_failed", provider=name, sport=sport_key, error=message)
        return None

    def _validate(
        self, name: str, events: list[NormalizedEvent], report: SyncReport
    ) -> list[NormalizedEvent]:
        valid = []
        for event in events:
            if not event.home_team.strip() or not event.away_team.strip():
                report.skip(name, "missing team names", event.id)
                continue
            valid.append(event)
        return valid

    @staticmethod
    def _apply_report(result: AggregationResult, report: SyncReport) -> None:
        result.errors.extend(report.errors)
        result.skipped += report.skipped
        result.skip_reasons.extend(report.skip_reasons)
