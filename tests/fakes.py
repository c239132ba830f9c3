"""In-process provider doubles for aggregator and service tests."""

from odds_aggregator.normalization import SportDescriptor
from odds_aggregator.providers import BaseOddsProvider


class FakeProvider(BaseOddsProvider):
    """Provider that returns canned events or raises a canned error.

    Args:
        name: Registry name reported in errors
        events: Events returned by every fetch
        error: Exception raised by every fetch instead
        skips: Reasons recorded on the report per fetch
    """

    requires_credential = False

    def __init__(self, name, events=None, error=None, skips=(), sports=(), settings=None):
        super().__init__(settings=settings)
        self.name = name
        self.events = list(events or [])
        self.error = error
        self.skips = list(skips)
        self.sports = [SportDescriptor(key=key, title=key) for key in sports]
        self.calls = 0

    async def _fetch_odds(self, sport_key, limit, report):
        self.calls += 1
        for reason in self.skips:
            report.skip(self.name, reason)
        if self.error is not None:
            raise self.error
        return list(self.events)

    async def fetch_sports(self):
        if self.error is not None:
            raise self.error
        return list(self.sports)


def factories(*providers):
    """Registry factories returning the given provider instances."""
    return {provider.name: (lambda _settings, p=provider: p) for provider in providers}
