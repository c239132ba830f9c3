"""Base class shared by every upstream odds provider.

Subclasses implement two mapping-heavy methods (_fetch_odds and
fetch_sports) and use the helpers here for HTTP, rate-limit backoff,
cursor pagination and per-record skip handling. Nothing outside a provider
module ever sees upstream JSON.
"""

import time
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, ClassVar

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_incrementing,
)

from odds_aggregator.config import Settings, get_settings
from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor, ValidationSkip
from odds_aggregator.normalization.coercion import pick
from odds_aggregator.providers.errors import (
    ProviderAuthError,
    ProviderRateLimitError,
    ProviderTransientError,
)
from odds_aggregator.providers.report import SyncReport

log = get_logger()

PageFetcher = Callable[[str | None], Awaitable[tuple[list[Any], str | None]]]

# Wrong-typed upstream fields that get past a mapping function's own guards
MALFORMED_RECORD_ERRORS = (TypeError, AttributeError, KeyError, IndexError, ValueError)


def _record_id(record: Any) -> Any:
    if isinstance(record, list) and record:
        record = record[0]
    return pick(record, "eventID", "GameID", "GameId", "id", "key", "market.event.key")


class BaseOddsProvider(ABC):
    """Async client for one upstream odds source.

    Class attributes:
        name: Registry name used in preferences and error strings
        id_prefix: Prefix namespacing event ids from this source
        requires_credential: Whether construction fails without an API key
        credential_setting: Settings attribute holding the API key
        BASE_URL: Upstream root URL

    Attributes:
        api_key: Credential in use (None for public providers)
        timeout: Per-request timeout in seconds
        max_attempts: Total attempts for a rate-limited request (2 or 3)
        backoff_base: Seconds; the wait before retry n is backoff_base * n
    """

    name: ClassVar[str] = "base"
    id_prefix: ClassVar[str] = ""
    requires_credential: ClassVar[bool] = True
    credential_setting: ClassVar[str | None] = None
    BASE_URL: ClassVar[str] = ""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        settings: Settings | None = None,
        max_attempts: int | None = None,
        backoff_base: float | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            api_key: Credential for the upstream. Falls back to the Settings
                attribute named by credential_setting.
            settings: Settings instance; the cached one when omitted
            max_attempts: Override for RATE_LIMIT_MAX_ATTEMPTS (clamped to 2-3)
            backoff_base: Override for RATE_LIMIT_BACKOFF_SECONDS

        Raises:
            ProviderAuthError: If a required credential is absent.
        """
        self.settings = settings or get_settings()

        if api_key is None and self.credential_setting:
            api_key = getattr(self.settings, self.credential_setting, "") or None
        if self.requires_credential and not api_key:
            env_name = (self.credential_setting or "api_key").upper()
            raise ProviderAuthError(
                self.name,
                f"{env_name} not configured. Set it in .env or pass api_key parameter.",
            )
        self.api_key = api_key or None

        self.timeout = self.settings.request_timeout
        attempts = max_attempts or self.settings.rate_limit_max_attempts
        self.max_attempts = max(2, min(3, attempts))
        self.backoff_base = (
            self.settings.rate_limit_backoff_seconds if backoff_base is None else backoff_base
        )

    async def fetch_odds(
        self,
        sport_key: str,
        limit: int = 50,
        report: SyncReport | None = None,
    ) -> list[NormalizedEvent]:
        """Fetch current odds for a league as normalized events.

        Args:
            sport_key: League identifier (e.g., "NFL")
            limit: Maximum number of events to return
            report: Accumulator for skipped records; a throwaway one is used
                when omitted

        Returns:
            Normalized events. An empty list means the upstream had nothing.

        Raises:
            ProviderAuthError: Credential rejected.
            ProviderRateLimitError: Still rate limited after the last attempt.
            ProviderTransientError: Network failure or unexpected response.
        """
        report = report if report is not None else SyncReport()
        sport_key = sport_key.upper()
        start_time = time.perf_counter()

        log.info("provider_request_started", provider=self.name, sport=sport_key, limit=limit)

        events = await self._fetch_odds(sport_key, limit, report)
        events = events[:limit]

        duration_ms = int((time.perf_counter() - start_time) * 1000)
        log.info(
            "provider_request_completed",
            provider=self.name,
            sport=sport_key,
            event_count=len(events),
            skipped=report.skipped,
            duration_ms=duration_ms,
        )
        return events

    @abstractmethod
    async def _fetch_odds(
        self, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent]:
        """Provider-specific fetch and mapping."""

    @abstractmethod
    async def fetch_sports(self) -> list[SportDescriptor]:
        """List the leagues this provider covers."""

    def _headers(self) -> dict[str, str]:
        return {}

    async def _get_json(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET a JSON document, retrying only on HTTP 429.

        Retries stop after max_attempts; the wait grows linearly
        (backoff_base, then 2 * backoff_base). The last
        ProviderRateLimitError is re-raised.
        """
        merged_headers = {**self._headers(), **(headers or {})}
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_incrementing(start=self.backoff_base, increment=self.backoff_base),
            retry=retry_if_exception_type(ProviderRateLimitError),
            before_sleep=self._log_rate_limited,
            reraise=True,
        ):
            with attempt:
                data = await self._request_once(url, params, merged_headers)
        return data

    async def _request_once(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str],
    ) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderTransientError(
                self.name, f"Request to {self.name} failed: {type(e).__name__}: {e}"
            ) from e

        status = response.status_code
        if status in (401, 403):
            raise ProviderAuthError(
                self.name, f"HTTP {status} credential rejected", status=status, body=response.text
            )
        if status == 429:
            raise ProviderRateLimitError(
                self.name, "HTTP 429 rate limited", status=status, body=response.text
            )
        if not response.is_success:
            raise ProviderTransientError(
                self.name,
                f"HTTP {status} {response.reason_phrase}",
                status=status,
                body=response.text,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderTransientError(
                self.name, "Response body is not valid JSON", status=status, body=response.text
            ) from e

    def _log_rate_limited(self, retry_state: RetryCallState) -> None:
        log.warning(
            "provider_rate_limited",
            provider=self.name,
            attempt=retry_state.attempt_number,
            max_attempts=self.max_attempts,
            next_wait_s=retry_state.next_action.sleep if retry_state.next_action else None,
        )

    async def _paginate(
        self,
        fetch_page: PageFetcher,
        *,
        max_pages: int,
        max_items: int,
    ) -> list[Any]:
        """Follow a cursor until it is exhausted or a cap is reached.

        Args:
            fetch_page: Coroutine taking the cursor (None for the first page)
                and returning (items, next_cursor)
            max_pages: Page cap
            max_items: Item cap; the result is truncated to it

        Returns:
            Raw items across pages, in upstream order
        """
        items: list[Any] = []
        cursor: str | None = None
        for _ in range(max_pages):
            page_items, cursor = await fetch_page(cursor)
            items.extend(page_items)
            if len(items) >= max_items:
                return items[:max_items]
            if not cursor:
                return items
        log.info("pagination_page_cap_reached", provider=self.name, pages=max_pages)
        return items

    def _map_records(
        self,
        records: Iterable[Any],
        mapper: Callable[[Any], NormalizedEvent],
        report: SyncReport,
    ) -> list[NormalizedEvent]:
        """Apply a mapping function per record, recording skips on the report.

        One bad record never costs the rest of the batch.
        """
        events = []
        for record in records:
            try:
                events.append(mapper(record))
            except (ValidationSkip, *MALFORMED_RECORD_ERRORS) as e:
                self._skip_record(record, e, report)
        return events

    def _skip_record(self, record: Any, error: Exception, report: SyncReport) -> None:
        if isinstance(error, ValidationSkip):
            report.skip(self.name, error.reason, error.record_id)
        elif isinstance(error, ValidationError):
            report.skip(self.name, f"invalid event: {error.error_count()} error(s)", _record_id(record))
        else:
            report.skip(self.name, f"malformed record: {type(error).__name__}: {error}", _record_id(record))

    def event_id(self, raw_id: Any) -> str:
        if raw_id is None or str(raw_id).strip() == "":
            raise ValidationSkip("missing event id")
        return f"{self.id_prefix}{raw_id}"
