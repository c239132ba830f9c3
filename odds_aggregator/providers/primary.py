"""SportsGameOdds client (primary odds provider).

Endpoint: https://api.sportsgameodds.com/v2
Auth: x-api-key header (SPORTSGAMEODDS_API_KEY)

Events are paged with a nextCursor token. The per-event "odds" map has no
single fixed shape; three node layouts are understood:

- {"bookmaker": {...}, "betType": "spreads", "outcomes": [{name, price, point}]}
- {"bookmaker": {...}, "betType": "h2h", "name": "...", "price": ...}
- {"betTypeID": "ml", "sideID": "home", "byBookmaker": {"draftkings": {"odds": "-150"}}}
"""

from typing import Any

from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor, ValidationSkip
from odds_aggregator.normalization.builders import QuoteCollector, build_outcome, canonical_market
from odds_aggregator.normalization.coercion import parse_timestamp, pick, to_number_or_none
from odds_aggregator.normalization.models import NormalizedBookmakerQuote
from odds_aggregator.providers.base import BaseOddsProvider
from odds_aggregator.providers.errors import ProviderError
from odds_aggregator.providers.report import SyncReport

log = get_logger()

DEFAULT_USAGE = {"requests_used": 0, "requests_remaining": 1000}


def _team_name(team: Any) -> str:
    name = pick(team, "names.medium", "names.short", "names.long", "teamID", default="")
    return str(name).strip()


def _events_of(payload: Any) -> list[dict]:
    if not isinstance(payload, dict):
        return []
    data = payload.get("data")
    return [e for e in data if isinstance(e, dict)] if isinstance(data, list) else []


def _score(value: Any) -> int | None:
    number = to_number_or_none(value)
    return int(number) if number is not None else None


class PrimaryOddsProvider(BaseOddsProvider):
    """Async client for SportsGameOdds v2.

    Usage:
        provider = PrimaryOddsProvider(api_key="...")
        events = await provider.fetch_odds("NFL", limit=50)
    """

    name = "primary"
    id_prefix = "sgo_"
    credential_setting = "sportsgameodds_api_key"
    BASE_URL = "https://api.sportsgameodds.com/v2"

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self.api_key}

    async def fetch_sports(self) -> list[SportDescriptor]:
        """List leagues from /leagues; an unsuccessful payload yields []."""
        payload = await self._get_json(f"{self.BASE_URL}/leagues")
        if not isinstance(payload, dict) or not payload.get("success"):
            return []

        sports = []
        for league in _events_of(payload):
            key = league.get("leagueID")
            if not key:
                continue
            sports.append(
                SportDescriptor(
                    key=key,
                    title=pick(league, "shortName", "name", default=key),
                    group=league.get("sportID") or "",
                    active=bool(league.get("enabled")),
                )
            )
        return sports

    async def _fetch_odds(
        self, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent]:
        page_size = min(self.settings.page_size, limit)

        async def fetch_page(cursor: str | None) -> tuple[list[dict], str | None]:
            params: dict[str, Any] = {
                "leagueID": sport_key,
                "oddsAvailable": "true",
                "limit": page_size,
            }
            if cursor:
                params["cursor"] = cursor
            payload = await self._get_json(f"{self.BASE_URL}/events", params=params)
            next_cursor = payload.get("nextCursor") if isinstance(payload, dict) else None
            return _events_of(payload), next_cursor or None

        raw_events = await self._paginate(
            fetch_page, max_pages=self.settings.max_pages, max_items=limit
        )
        return self._map_records(raw_events, lambda e: self._map_event(e, sport_key), report)

    async def fetch_event(self, event_id: str) -> NormalizedEvent | None:
        """Fetch a single event by id.

        Args:
            event_id: Upstream eventID, with or without the "sgo_" prefix

        Returns:
            The normalized event, or None if upstream has no such event or it
            cannot be normalized
        """
        raw_id = event_id.removeprefix(self.id_prefix)
        payload = await self._get_json(f"{self.BASE_URL}/events", params={"eventID": raw_id})
        events = _events_of(payload)
        if not events:
            return None

        report = SyncReport()
        sport_key = str(events[0].get("leagueID") or "")
        mapped = self._map_records(events[:1], lambda e: self._map_event(e, sport_key), report)
        return mapped[0] if mapped else None

    async def get_usage(self) -> dict[str, int]:
        """Best-effort account usage; defaults are returned on any failure."""
        try:
            payload = await self._get_json(f"{self.BASE_URL}/account/usage")
        except ProviderError as e:
            log.warning("provider_usage_unavailable", provider=self.name, error=str(e))
            return dict(DEFAULT_USAGE)

        used = to_number_or_none(pick(payload, "requests_used", "data.requests_used"))
        remaining = to_number_or_none(
            pick(payload, "requests_remaining", "data.requests_remaining")
        )
        return {
            "requests_used": int(used) if used is not None else DEFAULT_USAGE["requests_used"],
            "requests_remaining": (
                int(remaining) if remaining is not None else DEFAULT_USAGE["requests_remaining"]
            ),
        }

    def _map_event(self, raw: dict, sport_key: str) -> NormalizedEvent:
        event_id = self.event_id(raw.get("eventID"))
        home_team = _team_name(pick(raw, "teams.home"))
        away_team = _team_name(pick(raw, "teams.away"))
        if not home_team or not away_team:
            raise ValidationSkip("missing team names", event_id)

        commence_time = parse_timestamp(pick(raw, "commenceTime", "status.startsAt"))
        if commence_time is None:
            raise ValidationSkip("missing or unparseable commence time", event_id)

        return NormalizedEvent(
            id=event_id,
            sport_key=raw.get("leagueID") or sport_key,
            home_team=home_team,
            away_team=away_team,
            commence_time=commence_time,
            completed=bool(pick(raw, "status.completed", "status.ended", default=False)),
            home_score=_score(pick(raw, "results.game.home.points", "teams.home.score")),
            away_score=_score(pick(raw, "results.game.away.points", "teams.away.score")),
            bookmakers=self._map_odds(raw.get("odds"), home_team, away_team),
        )

    def _map_odds(
        self, odds: Any, home_team: str, away_team: str
    ) -> list[NormalizedBookmakerQuote]:
        if not isinstance(odds, dict):
            return []

        collector = QuoteCollector()
        for node in odds.values():
            if not isinstance(node, dict):
                continue
            if isinstance(node.get("byBookmaker"), dict):
                self._collect_by_bookmaker(collector, node, home_team, away_team)
                continue

            market = canonical_market(pick(node, "betType", "betTypeID", default="h2h"))
            book_key = pick(node, "bookmaker.key", "bookmakerID")
            if market is None or not book_key:
                continue
            title = pick(node, "bookmaker.title", default=book_key)
            last_update = parse_timestamp(pick(node, "last_update", "lastUpdatedAt"))

            if isinstance(node.get("outcomes"), list):
                raw_outcomes = node["outcomes"]
            elif node.get("name") is not None and node.get("price") is not None:
                raw_outcomes = [node]
            else:
                raw_outcomes = []

            for raw_outcome in raw_outcomes:
                if not isinstance(raw_outcome, dict):
                    continue
                outcome = build_outcome(
                    market,
                    price=pick(raw_outcome, "price", "odds"),
                    name=pick(raw_outcome, "name"),
                    point=pick(raw_outcome, "point"),
                    marker=pick(raw_outcome, "sideID", "side"),
                    home_team=home_team,
                    away_team=away_team,
                )
                collector.add(book_key, title, market, outcome, last_update)

        return collector.quotes()

    def _collect_by_bookmaker(
        self, collector: QuoteCollector, node: dict, home_team: str, away_team: str
    ) -> None:
        market = canonical_market(pick(node, "betTypeID", "betType"))
        if market is None:
            return
        side = pick(node, "sideID")

        for book_id, quote in node["byBookmaker"].items():
            if not isinstance(quote, dict) or quote.get("available") is False:
                continue
            if market == "spreads":
                point = pick(quote, "spread")
            elif market == "totals":
                point = pick(quote, "overUnder")
            else:
                point = None
            outcome = build_outcome(
                market,
                price=pick(quote, "odds", "price"),
                name=side,
                point=point,
                marker=side,
                home_team=home_team,
                away_team=away_team,
            )
            collector.add(
                book_id, book_id, market, outcome, parse_timestamp(pick(quote, "lastUpdatedAt"))
            )
