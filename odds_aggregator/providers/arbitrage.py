"""RapidAPI sportsbook-api2 advantages feed (arbitrage provider).

Endpoint: https://sportsbook-api2.p.rapidapi.com/v0/advantages/?type=ARBITRAGE
Auth: x-rapidapi-host / x-rapidapi-key headers (RAPIDAPI_KEY)

The feed is a flat list of advantages, each describing one market of one
event with outcomes from several sportsbooks. Payouts are decimal and are
converted to American on the way in.
"""

import re
from typing import Any

from odds_aggregator.monitoring import get_logger
from odds_aggregator.normalization import NormalizedEvent, SportDescriptor, ValidationSkip
from odds_aggregator.normalization.builders import QuoteCollector, build_outcome, canonical_market
from odds_aggregator.normalization.coercion import parse_timestamp, pick, pick_list, to_number_or_none
from odds_aggregator.normalization.odds import decimal_to_american
from odds_aggregator.providers.base import BaseOddsProvider
from odds_aggregator.providers.report import SyncReport

log = get_logger()

RAPIDAPI_HOST = "sportsbook-api2.p.rapidapi.com"

COVERED_LEAGUES = ("NFL", "NBA", "MLB", "NHL", "NCAAF", "NCAAB")


def _league_matches(league: Any, sport_key: str) -> bool:
    """Token match so that "NBA" does not match "WNBA"."""
    if not league:
        return False
    tokens = re.split(r"[^A-Z0-9]+", str(league).upper())
    return sport_key in tokens


def _american_from_payout(payout: Any) -> int | None:
    decimal = to_number_or_none(payout)
    if decimal is None or decimal <= 1.0:
        return None
    return decimal_to_american(decimal)


def _split_event_name(name: str) -> tuple[str, str]:
    """"Away @ Home" -> (home, away); empty strings when the name has no "@"."""
    if "@" not in name:
        return "", ""
    away, home = name.split("@", 1)
    return home.strip(), away.strip()


class ArbitrageProvider(BaseOddsProvider):
    """Async client for the sportsbook-api2 advantages feed."""

    name = "arbitrage"
    id_prefix = "arb_"
    credential_setting = "rapidapi_key"
    BASE_URL = "https://sportsbook-api2.p.rapidapi.com/v0"

    def _headers(self) -> dict[str, str]:
        return {"x-rapidapi-host": RAPIDAPI_HOST, "x-rapidapi-key": self.api_key}

    async def fetch_sports(self) -> list[SportDescriptor]:
        return [SportDescriptor(key=key, title=key) for key in COVERED_LEAGUES]

    async def fetch_advantages(self, advantage_type: str = "ARBITRAGE") -> list[dict]:
        payload = await self._get_json(
            f"{self.BASE_URL}/advantages/", params={"type": advantage_type}
        )
        advantages = pick(payload, "advantages", default=[])
        return [a for a in advantages if isinstance(a, dict)] if isinstance(advantages, list) else []

    async def _fetch_odds(
        self, sport_key: str, limit: int, report: SyncReport
    ) -> list[NormalizedEvent]:
        advantages = await self.fetch_advantages()

        grouped: dict[str, list[dict]] = {}
        for advantage in advantages:
            event = pick(advantage, "market.event", default={})
            league = pick(
                event,
                "competitionInstance.competition.key",
                "competition.key",
                "league",
                "sport",
            )
            if not _league_matches(league, sport_key):
                continue
            key = pick(event, "key", "id")
            if key is None:
                report.skip(self.name, "missing event key")
                continue
            grouped.setdefault(str(key), []).append(advantage)

        return self._map_records(
            list(grouped.values())[:limit],
            lambda group: self._map_event(group, sport_key),
            report,
        )

    def _teams(self, event: dict) -> tuple[str, str, dict[str, str]]:
        """Return (home, away, participant key -> side)."""
        home, away = "", ""
        sides: dict[str, str] = {}
        for participant in pick_list(event, "participants"):
            if not isinstance(participant, dict):
                continue
            name = str(participant.get("name") or "").strip()
            flag = str(participant.get("homeAway") or "").lower()
            if flag == "home" or participant.get("home") is True:
                home = name
                side = "home"
            elif flag == "away" or participant.get("home") is False:
                away = name
                side = "away"
            else:
                continue
            if participant.get("key") is not None:
                sides[str(participant["key"])] = side

        if not home or not away:
            parsed_home, parsed_away = _split_event_name(str(event.get("name") or ""))
            home = home or parsed_home
            away = away or parsed_away
        return home, away, sides

    def _map_event(self, group: list[dict], sport_key: str) -> NormalizedEvent:
        event = pick(group[0], "market.event", default={})
        if not isinstance(event, dict):
            event = {}
        event_id = self.event_id(pick(event, "key", "id"))
        home_team, away_team, sides = self._teams(event)
        if not home_team or not away_team:
            raise ValidationSkip("missing team names", event_id)

        commence_time = parse_timestamp(pick(event, "startTime", "start_time", "commenceTime"))
        if commence_time is None:
            raise ValidationSkip("missing or unparseable commence time", event_id)

        collector = QuoteCollector()
        for advantage in group:
            market = canonical_market(pick(advantage, "market.type"))
            if market is None:
                continue
            for raw_outcome in pick_list(advantage, "outcomes"):
                if not isinstance(raw_outcome, dict):
                    continue
                source = raw_outcome.get("source")
                if not source:
                    continue
                if market == "totals":
                    marker = str(raw_outcome.get("type") or "").lower()
                else:
                    marker = sides.get(str(pick(raw_outcome, "participant.key", default="")))
                outcome = build_outcome(
                    market,
                    price=_american_from_payout(raw_outcome.get("payout")),
                    name=pick(raw_outcome, "participant.name", "type", "name"),
                    point=pick(raw_outcome, "modifier", "point"),
                    marker=marker,
                    home_team=home_team,
                    away_team=away_team,
                )
                collector.add(
                    source,
                    str(source).replace("_", " ").title(),
                    market,
                    outcome,
                    parse_timestamp(pick(raw_outcome, "lastFoundAt", "lastUpdated")),
                )

        return NormalizedEvent(
            id=event_id,
            sport_key=sport_key,
            home_team=home_team,
            away_team=away_team,
            commence_time=commence_time,
            bookmakers=collector.quotes(),
        )
