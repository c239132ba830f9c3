"""Explicit accumulator for per-record problems found during a sync."""

from dataclasses import dataclass, field

from odds_aggregator.monitoring import get_logger

log = get_logger()


@dataclass
class SyncReport:
    """Skips and errors collected while fetching and normalizing.

    Adapters record a skip for every upstream record they could not
    normalize; the aggregator records provider failures as errors. Nothing
    here is ever raised.

    Attributes:
        skipped: Number of records dropped during normalization
        skip_reasons: "<provider>: <reason>" for each skipped record
        errors: "<provider>: <message>" for each provider failure
    """

    skipped: int = 0
    skip_reasons: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def skip(self, provider: str, reason: str, record_id: str | None = None) -> None:
        self.skipped += 1
        detail = f"{reason} ({record_id})" if record_id else reason
        self.skip_reasons.append(f"{provider}: {detail}")
        log.warning("event_skipped", provider=provider, reason=reason, record_id=record_id)

    def error(self, provider: str, message: str) -> None:
        self.errors.append(f"{provider}: {message}")

    def merge(self, other: "SyncReport") -> None:
        self.skipped += other.skipped
        self.skip_reasons.extend(other.skip_reasons)
        self.errors.extend(other.errors)
