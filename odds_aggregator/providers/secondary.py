"""SportsDataIO client (secondary odds provider).

Endpoint: https://api.sportsdata.io/v3/{league}/...
Auth: "key" query parameter (SPORTSDATAIO_API_KEY)

Week-based leagues (NFL, NCAAF) use GameOddsByWeek with the week taken from
CurrentWeek; every other league uses GameOddsByDate for today (UTC). Each
PregameOdds entry becomes one bookmaker quote. Payloads that already carry
Odds-API-style "bookmakers" arrays are passed through and classified by
outcome name.
"""

from datetime import date, datetime, timezone
from typing import Any

from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor, ValidationSkip
from odds_aggregator.normalization.builders import QuoteCollector, build_outcome, canonical_market
from odds_aggregator.normalization.coercion import parse_timestamp, pick, pick_list, to_number_or_none
from odds_aggregator.providers.base import BaseOddsProvider
from odds_aggregator.providers.errors import ProviderError
from odds_aggregator.providers.report import SyncReport

log = get_logger()

# League key -> (URL segment, display title)
LEAGUES: dict[str, tuple[str, str]] = {
    "NFL": ("nfl", "NFL"),
    "NBA": ("nba", "NBA"),
    "MLB": ("mlb", "MLB"),
    "NHL": ("nhl", "NHL"),
    "NCAAF": ("cfb", "College Football"),
    "NCAAB": ("cbb", "College Basketball"),
    "MLS": ("soccer", "MLS"),
    "WNBA": ("wnba", "WNBA"),
}

WEEK_BASED = {"NFL", "NCAAF"}

# First month of a new season; before it the previous year's season is current
SEASON_START_MONTH = {
    "NFL": 8,
    "NCAAF": 8,
    "NBA": 10,
    "NCAAB": 10,
    "NHL": 9,
}


def current_season(sport_key: str, today: date) -> str:
    """Season label for a league on a given day.

    Examples:
        >>> current_season("NFL", date(2024, 9, 8))
        '2024'
        >>> current_season("NBA", date(2025, 2, 1))
        '2024'
        >>> current_season("MLB", date(2025, 2, 1))
        '2025'
    """
    start_month = SEASON_START_MONTH.get(sport_key.upper())
    if start_month is None or today.month >= start_month:
        return str(today.year)
    return str(today.year - 1)


def _score(value: Any) -> int | None:
    number = to_number_or_none(value)
    return int(number) if number is not None else None


def _is_completed(raw: dict) -> bool:
    return bool(
        raw.get("completed") or raw.get("IsClosed") is True or raw.get("Status") == "Final"
    )


class SecondaryOddsProvider(BaseOddsProvider):
    """Async client for SportsDataIO v3 odds and schedules."""

    name = "secondary"
    id_prefix = "sdio_"
    credential_setting = "sportsdataio_api_key"
    BASE_URL = "https://api.sportsdata.io/v3"

    def _today(self) -> date:
        return datetime.now(timezone.utc).date()

    async def _get_keyed(self, path: str) -> Any:
        return await self._get_json(f"{self.BASE_URL}/{path}", params={"key": self.api_key})

    async def fetch_sports(self) -> list[SportDescriptor]:
        return [
            SportDescriptor(key=key, title=title, group=segment)
            for key, (segment, title) in LEAGUES.items()
        ]

    async def current_week(self, segment: str) -> int:
        """Current week for a week-based league; 1 when upstream cannot say."""
        try:
            payload = await self._get_keyed(f"{segment}/scores/json/CurrentWeek")
        except ProviderError as e:
            log.warning("current_week_unavailable", provider=self.name, error=str(e))
            return 1
        week = payload if isinstance(payload, (int, float)) else pick(payload, "Week")
        number = to_number_or_none(week)
        return int(number) if number else 1

    async def _fetch_odds(
        self, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent]:
        league = LEAGUES.get(sport_key)
        if league is None:
            log.info("provider_sport_unsupported", provider=self.name, sport=sport_key)
            return []
        segment = league[0]
        today = self._today()

        if sport_key in WEEK_BASED:
            season = current_season(sport_key, today)
            week = await self.current_week(segment)
            path = f"{segment}/odds/json/GameOddsByWeek/{season}/{week}"
        else:
            path = f"{segment}/odds/json/GameOddsByDate/{today.isoformat()}"

        payload = await self._get_keyed(path)
        records = payload[:limit] if isinstance(payload, list) else []
        return self._map_records(records, lambda r: self._map_odds_event(r, sport_key), report)

    async def fetch_games(
        self, sport_key: str, report: SyncReport | None = None
    ) -> list[NormalizedEvent]:
        """Fetch the schedule for a league, without odds.

        Week-based leagues request GamesByWeek first and fall back to the
        season schedule when that week answers 404.

        Args:
            sport_key: League identifier (e.g., "NFL")
            report: Accumulator for skipped records

        Returns:
            Normalized events with no bookmakers; [] for unsupported leagues
        """
        report = report if report is not None else SyncReport()
        sport_key = sport_key.upper()
        league = LEAGUES.get(sport_key)
        if league is None:
            return []
        segment = league[0]
        season = current_season(sport_key, self._today())
        schedule_path = f"{segment}/scores/json/Schedules/{season}"

        if sport_key in WEEK_BASED:
            week = await self.current_week(segment)
            try:
                payload = await self._get_keyed(
                    f"{segment}/scores/json/GamesByWeek/{season}/{week}"
                )
            except ProviderError as e:
                if e.status != 404:
                    raise
                log.info("schedule_week_not_found", provider=self.name, season=season, week=week)
                payload = await self._get_keyed(schedule_path)
        else:
            payload = await self._get_keyed(schedule_path)

        records = payload if isinstance(payload, list) else []
        return self._map_records(records, lambda r: self._map_game(r, sport_key), report)

    def _base_fields(self, raw: dict, sport_key: str) -> dict:
        event_id = self.event_id(pick(raw, "id", "GameID", "GameId", "GlobalGameID", "GameKey"))
        home_team = str(pick(raw, "home_team", "homeTeam", "HomeTeam", "HomeTeamName", default=""))
        away_team = str(pick(raw, "away_team", "awayTeam", "AwayTeam", "AwayTeamName", default=""))
        if not home_team.strip() or not away_team.strip():
            raise ValidationSkip("missing team names", event_id)

        commence_time = parse_timestamp(
            pick(raw, "commence_time", "commenceTime", "DateTimeUTC", "DateTime", "Day")
        )
        if commence_time is None:
            raise ValidationSkip("missing or unparseable commence time", event_id)

        return {
            "id": event_id,
            "sport_key": sport_key,
            "home_team": home_team,
            "away_team": away_team,
            "commence_time": commence_time,
            "completed": _is_completed(raw),
            "home_score": _score(pick(raw, "home_score", "HomeScore", "HomeTeamScore")),
            "away_score": _score(pick(raw, "away_score", "AwayScore", "AwayTeamScore")),
        }

    def _map_game(self, raw: dict, sport_key: str) -> NormalizedEvent:
        return NormalizedEvent(**self._base_fields(raw, sport_key))

    def _map_odds_event(self, raw: dict, sport_key: str) -> NormalizedEvent:
        fields = self._base_fields(raw, sport_key)
        home_team, away_team = fields["home_team"], fields["away_team"]

        collector = QuoteCollector()
        self._collect_passthrough(collector, pick(raw, "bookmakers", "Bookmakers"), home_team, away_team)
        self._collect_pregame(collector, raw.get("PregameOdds"), home_team, away_team)
        return NormalizedEvent(**fields, bookmakers=collector.quotes())

    def _collect_passthrough(
        self, collector: QuoteCollector, bookmakers: Any, home_team: str, away_team: str
    ) -> None:
        if not isinstance(bookmakers, list):
            return
        for book in bookmakers:
            if not isinstance(book, dict):
                continue
            book_key = pick(book, "key", "Key")
            if not book_key:
                continue
            title = pick(book, "title", "Title", default=book_key)
            last_update = parse_timestamp(pick(book, "last_update", "LastUpdate"))
            for raw_market in pick_list(book, "markets", "Markets"):
                if not isinstance(raw_market, dict):
                    continue
                market = canonical_market(pick(raw_market, "key", "Key", default="h2h"))
                if market is None:
                    continue
                for raw_outcome in pick_list(raw_market, "outcomes", "Outcomes"):
                    if not isinstance(raw_outcome, dict):
                        continue
                    outcome = build_outcome(
                        market,
                        price=pick(raw_outcome, "price", "Price"),
                        name=pick(raw_outcome, "name", "Name"),
                        point=pick(raw_outcome, "point", "Point"),
                        home_team=home_team,
                        away_team=away_team,
                    )
                    collector.add(book_key, title, market, outcome, last_update)

    def _collect_pregame(
        self, collector: QuoteCollector, pregame: Any, home_team: str, away_team: str
    ) -> None:
        if not isinstance(pregame, list):
            return
        for po in pregame:
            if not isinstance(po, dict):
                continue
            book = str(pick(po, "Sportsbook", "SportsBook", "Source", default="SportsDataIO"))
            last_update = parse_timestamp(pick(po, "Updated", "LastUpdated"))

            def add(market: str, side: str, price: Any, point: Any = None) -> None:
                outcome = build_outcome(
                    market,
                    price=price,
                    name=side,
                    point=point,
                    marker=side,
                    home_team=home_team,
                    away_team=away_team,
                )
                collector.add(book, book, market, outcome, last_update)

            add("h2h", "home", pick(po, "HomeMoneyLine", "HomeLine", "MoneyLineHome"))
            add("h2h", "away", pick(po, "AwayMoneyLine", "AwayLine", "MoneyLineAway"))

            home_spread = pick(po, "HomePointSpread", "PointSpread")
            away_spread = pick(po, "AwayPointSpread")
            if away_spread is None and to_number_or_none(home_spread) is not None:
                away_spread = -to_number_or_none(home_spread)
            if home_spread is not None:
                add("spreads", "home", pick(po, "HomePointSpreadPayout"), home_spread)
            if away_spread is not None:
                add("spreads", "away", pick(po, "AwayPointSpreadPayout"), away_spread)

            total = pick(po, "OverUnder", "TotalNumber", "Total", "PointTotal")
            if total is not None:
                add("totals", "over", pick(po, "OverPayout", "OverOdds", "OverPrice"), total)
                add("totals", "under", pick(po, "UnderPayout", "UnderOdds", "UnderPrice"), total)
