"""ESPN public scoreboard client (no credential).

Scoreboard: https://site.api.espn.com/apis/site/v2/sports/{sport}/{league}/scoreboard
Odds: https://sports.core.api.espn.com/v2/sports/{sport}/leagues/{league}/events/{id}/competitions/{cid}/odds

Note: This is an unofficial API. The odds root lists provider items that are
often bare {"$ref": url} links; each provider item may in turn list markets
as links. Links are expanded at most max_link_hops levels below the odds
root (provider item = hop 1, market = hop 2). A failing hop drops that
provider item or market and the rest of the event continues.
"""

from typing import Any

from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor, ValidationSkip
from odds_aggregator.normalization.builders import QuoteCollector, build_outcome
from odds_aggregator.normalization.coercion import parse_timestamp, pick, pick_list, to_number_or_none
from odds_aggregator.normalization.models import NormalizedBookmakerQuote
from odds_aggregator.providers.base import MALFORMED_RECORD_ERRORS, BaseOddsProvider
from odds_aggregator.providers.errors import ProviderError
from odds_aggregator.providers.report import SyncReport

log = get_logger()

SITE_URL = "https://site.api.espn.com/apis/site/v2/sports"
CORE_URL = "https://sports.core.api.espn.com/v2/sports"

# League key -> (sport path, league path, display title)
LEAGUE_PATHS: dict[str, tuple[str, str, str]] = {
    "NFL": ("football", "nfl", "NFL"),
    "NCAAF": ("football", "college-football", "College Football"),
    "NBA": ("basketball", "nba", "NBA"),
    "NCAAB": ("basketball", "mens-college-basketball", "College Basketball"),
    "WNBA": ("basketball", "wnba", "WNBA"),
    "MLB": ("baseball", "mlb", "MLB"),
    "NHL": ("hockey", "nhl", "NHL"),
}


def _link(node: Any) -> str | None:
    ref = pick(node, "$ref", "href")
    if isinstance(ref, str) and ref.startswith("http"):
        return ref
    return None


def _market_type(raw: Any) -> str | None:
    label = str(pick(raw, "type", "key", "name", default="")).lower()
    if "moneyline" in label or label == "ml":
        return "h2h"
    if "spread" in label or "point" in label:
        return "spreads"
    if "total" in label or "over" in label:
        return "totals"
    return None


def _score(value: Any) -> int | None:
    number = to_number_or_none(pick(value, "value", "displayValue") if isinstance(value, dict) else value)
    return int(number) if number is not None else None


class PublicScoreboardProvider(BaseOddsProvider):
    """Client for ESPN's public scoreboard and core odds APIs."""

    name = "scoreboard"
    id_prefix = "espn_"
    requires_credential = False
    BASE_URL = SITE_URL

    @property
    def max_link_hops(self) -> int:
        return self.settings.max_link_hops

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def fetch_sports(self) -> list[SportDescriptor]:
        return [
            SportDescriptor(key=key, title=title, group=sport)
            for key, (sport, _league, title) in LEAGUE_PATHS.items()
        ]

    async def _fetch_odds(
        self, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent]:
        paths = LEAGUE_PATHS.get(sport_key)
        if paths is None:
            log.info("provider_sport_unsupported", provider=self.name, sport=sport_key)
            return []
        sport, league, _title = paths

        scoreboard = await self._get_json(f"{SITE_URL}/{sport}/{league}/scoreboard")
        raw_events = pick_list(scoreboard, "events")

        events: list[NormalizedEvent] = []
        for raw in raw_events[:limit]:
            if not isinstance(raw, dict):
                continue
            try:
                events.append(await self._map_event(raw, sport_key, sport, league))
            except (ValidationSkip, *MALFORMED_RECORD_ERRORS) as e:
                self._skip_record(raw, e, report)
        return events

    async def _map_event(
        self, raw: dict, sport_key: str, sport: str, league: str
    ) -> NormalizedEvent:
        raw_id = raw.get("id")
        event_id = self.event_id(raw_id)
        competitions = pick_list(raw, "competitions")
        competition = competitions[0] if competitions and isinstance(competitions[0], dict) else {}

        home, away = {}, {}
        for competitor in pick_list(competition, "competitors"):
            if not isinstance(competitor, dict):
                continue
            if competitor.get("homeAway") == "home":
                home = competitor
            elif competitor.get("homeAway") == "away":
                away = competitor

        home_team = str(pick(home, "team.displayName", "team.name", default="")).strip()
        away_team = str(pick(away, "team.displayName", "team.name", default="")).strip()
        if not home_team or not away_team:
            raise ValidationSkip("missing team names", event_id)

        commence_time = parse_timestamp(pick(raw, "date", default=competition.get("date")))
        if commence_time is None:
            raise ValidationSkip("missing or unparseable commence time", event_id)

        completed = bool(
            pick(competition, "status.type.completed", default=pick(raw, "status.type.completed"))
        )
        bookmakers = await self._fetch_event_odds(
            str(raw_id), competition.get("id"), home_team, away_team, sport, league
        )

        return NormalizedEvent(
            id=event_id,
            sport_key=sport_key,
            home_team=home_team,
            away_team=away_team,
            commence_time=commence_time,
            completed=completed,
            home_score=_score(home.get("score")),
            away_score=_score(away.get("score")),
            bookmakers=bookmakers,
        )

    async def resolve_competition_id(self, event_id: str, sport: str, league: str) -> str:
        """Find the competition id for an event; the event id when unresolvable."""
        try:
            event = await self._get_json(f"{CORE_URL}/{sport}/leagues/{league}/events/{event_id}")
        except ProviderError as e:
            log.warning("competition_lookup_failed", event_id=event_id, error=str(e))
            return event_id

        competitions = pick_list(event, "competitions")
        if not competitions:
            return event_id
        competition = competitions[0]
        if pick(competition, "id") is not None:
            return str(competition["id"])

        ref = _link(competition)
        if ref is None:
            return event_id
        expanded = await self._expand(competition, depth=1)
        if pick(expanded, "id") is not None:
            return str(expanded["id"])
        tail = ref.rstrip("/").split("/")[-1].split("?")[0]
        return tail if tail and tail != "competitions" else event_id

    async def _fetch_event_odds(
        self,
        event_id: str,
        competition_id: Any,
        home_team: str,
        away_team: str,
        sport: str,
        league: str,
    ) -> list[NormalizedBookmakerQuote]:
        if not competition_id:
            competition_id = await self.resolve_competition_id(event_id, sport, league)

        url = (
            f"{CORE_URL}/{sport}/leagues/{league}/events/{event_id}"
            f"/competitions/{competition_id}/odds"
        )
        try:
            root = await self._get_json(url)
        except ProviderError as e:
            log.warning("event_odds_unavailable", provider=self.name, event_id=event_id, error=str(e))
            return []

        if isinstance(root, list):
            items = root
        else:
            items = pick_list(root, "items")

        collector = QuoteCollector()
        for item in items:
            provider_item = await self._expand(item, depth=1)
            if not isinstance(provider_item, dict):
                continue
            await self._collect_provider_item(collector, provider_item, home_team, away_team)
        return collector.quotes()

    async def _expand(self, node: Any, depth: int) -> Any:
        """Replace a link node with the document it points to.

        Returns the node itself when it is not a link, and None when the link
        is deeper than max_link_hops or cannot be fetched.
        """
        ref = _link(node)
        if ref is None:
            return node
        if depth > self.max_link_hops:
            log.debug("link_hop_limit_reached", url=ref, depth=depth)
            return None
        try:
            return await self._get_json(ref)
        except ProviderError as e:
            log.warning("link_expansion_failed", provider=self.name, url=ref, depth=depth, error=str(e))
            return None

    async def _collect_provider_item(
        self, collector: QuoteCollector, item: dict, home_team: str, away_team: str
    ) -> None:
        book = str(
            pick(item, "provider.name", "provider.displayName", "name", "displayName", default="")
        ).strip()
        if not book:
            return
        updated = parse_timestamp(pick(item, "lastModified", "updated"))

        def add(market: str, marker: str | None, price: Any, point: Any = None, name: Any = None):
            outcome = build_outcome(
                market,
                price=price,
                name=name if name is not None else marker,
                point=point,
                marker=marker,
                home_team=home_team,
                away_team=away_team,
            )
            collector.add(book, book, market, outcome, updated)

        # Direct fields
        add("h2h", "home", pick(item, "moneyline.home", "homeTeamOdds.moneyLine"))
        add("h2h", "away", pick(item, "moneyline.away", "awayTeamOdds.moneyLine"))

        spread = item.get("spread")
        if isinstance(spread, dict):
            add("spreads", "home", pick(spread, "homeOdds"), pick(spread, "home"))
            add("spreads", "away", pick(spread, "awayOdds"), pick(spread, "away"))
        elif to_number_or_none(spread) is not None:
            line = to_number_or_none(spread)
            add("spreads", "home", pick(item, "homeTeamOdds.spreadOdds"), line)
            add("spreads", "away", pick(item, "awayTeamOdds.spreadOdds"), -line)

        total = pick(item, "total", "overUnder")
        if isinstance(total, dict):
            line = pick(total, "total", "value")
            add("totals", "over", pick(total, "overOdds"), line)
            add("totals", "under", pick(total, "underOdds"), line)
        elif to_number_or_none(total) is not None:
            add("totals", "over", pick(item, "overOdds"), total)
            add("totals", "under", pick(item, "underOdds"), total)

        # Markets arrays
        for raw_market in pick_list(item, "markets", "odds"):
            market_doc = await self._expand(raw_market, depth=2)
            market = _market_type(market_doc)
            if market is None:
                continue
            for raw_outcome in pick_list(market_doc, "outcomes"):
                if not isinstance(raw_outcome, dict) or _link(raw_outcome):
                    continue
                if market == "spreads":
                    point = pick(raw_outcome, "spread", "pointSpread", "line")
                elif market == "totals":
                    point = pick(raw_outcome, "total", "overUnder", default=pick(market_doc, "total"))
                else:
                    point = None
                marker = pick(raw_outcome, "homeAway")
                if market == "totals":
                    marker = None
                add(
                    market,
                    marker,
                    pick(raw_outcome, "price", "odds", "americanOdds", "moneyline"),
                    point,
                    name=pick(raw_outcome, "name", "type", default=""),
                )
