"""Cross-provider event merging for combine mode."""

from odds_aggregator.normalization import NormalizedEvent


def match_key(event: NormalizedEvent) -> tuple[str, str]:
    """Events from different providers match on exact, case-insensitive names.

    "KC Chiefs" and "Kansas City Chiefs" do not match.
    """
    return event.home_team.strip().lower(), event.away_team.strip().lower()


def merge_events(
    batches: list[tuple[str, list[NormalizedEvent]]],
) -> tuple[list[NormalizedEvent], list[str]]:
    """Merge per-provider batches into one event per matchup.

    Batches are processed in order. A later version of a matchup replaces the
    kept one only when it carries strictly more bookmakers, so on a tie the
    earlier provider wins.

    Args:
        batches: (provider name, events) pairs in preference order

    Returns:
        (merged events, names of providers that own at least one merged
        event, in batch order)
    """
    kept: dict[tuple[str, str], NormalizedEvent] = {}
    owner: dict[tuple[str, str], str] = {}

    for provider, events in batches:
        for event in events:
            key = match_key(event)
            existing = kept.get(key)
            if existing is None or len(event.bookmakers) > len(existing.bookmakers):
                kept[key] = event
                owner[key] = provider

    owners = set(owner.values())
    contributors = [provider for provider, _ in batches if provider in owners]
    return list(kept.values()), list(dict.fromkeys(contributors))
