"""Provider error hierarchy.

Every adapter maps upstream failures onto these types so the aggregator can
decide what to do without knowing which upstream it talked to:

- ProviderAuthError: credential missing or rejected (401/403). Not retried;
  the provider is disabled for the rest of the process.
- ProviderRateLimitError: HTTP 429. Retried with linear backoff, then raised.
- ProviderTransientError: any other non-2xx, network failure or unreadable
  body. Counted by the circuit breaker; the aggregator falls back.
"""

BODY_LIMIT = 300


class ProviderError(Exception):
    """Base class for upstream provider failures.

    Attributes:
        provider: Provider name ("primary", "secondary", ...)
        message: Human readable description
        status: HTTP status code when the failure came from a response
        body: Raw response body, truncated to 300 characters
    """

    def __init__(
        self,
        provider: str,
        message: str,
        status: int | None = None,
        body: str | None = None,
    ):
        self.provider = provider
        self.message = message
        self.status = status
        self.body = body[:BODY_LIMIT] if body else body
        super().__init__(message)

    def __str__(self) -> str:
        if self.body:
            return f"{self.message} - {self.body}"
        return self.message


class ProviderAuthError(ProviderError):
    """Credential missing or rejected."""


class ProviderUnavailableError(ProviderError):
    """Failures that count against the provider's circuit breaker."""


class ProviderRateLimitError(ProviderUnavailableError):
    """Upstream answered HTTP 429."""


class ProviderTransientError(ProviderUnavailableError):
    """Network failure, unexpected status or unreadable payload."""
