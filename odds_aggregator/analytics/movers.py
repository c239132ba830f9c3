"""Line-movement filters.

Both functions are pure and work on any rows carrying `movement` (signed
decimal string) and `timestamp` attributes, such as LineMovementRecord.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, TypeVar

from odds_aggregator.normalization.coercion import to_number_or_none

T = TypeVar("T")


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _by_recency(rows: Iterable[T]) -> list[T]:
    return sorted(rows, key=lambda row: _naive_utc(row.timestamp), reverse=True)


def filter_big_movers(rows: Iterable[T], min_movement: float = 1.0, limit: int = 10) -> list[T]:
    """Keep movements with abs(movement) >= min_movement, most recent first.

    Args:
        rows: Line movements, any order
        min_movement: Threshold on the absolute signed movement
        limit: Maximum rows returned

    Returns:
        At most `limit` rows; rows with an unparseable movement are dropped

    Example:
        Movements of "-1.5", "0.5" and "2" with min_movement=1.0 keep the
        "-1.5" and "2" rows, newest first.
    """
    if limit <= 0:
        return []
    movers = []
    for row in _by_recency(rows):
        movement = to_number_or_none(row.movement)
        if movement is not None and abs(movement) >= min_movement:
            movers.append(row)
            if len(movers) >= limit:
                break
    return movers


def movement_history(rows: Iterable[T], hours: float = 24, now: datetime | None = None) -> list[T]:
    """Movements within the trailing window ending at now, newest first."""
    reference = _naive_utc(now) if now is not None else datetime.now(timezone.utc).replace(tzinfo=None)
    cutoff = reference - timedelta(hours=hours)
    return [row for row in _by_recency(rows) if _naive_utc(row.timestamp) >= cutoff]
