"""Field coercion helpers shared by every provider adapter.

Upstream feeds spell the same field several ways ("HomeMoneyLine" vs
"homeMoneyline"), send numbers as strings with a leading "+", and mix ISO
timestamps with epoch values. These helpers turn that into plain Python
values; anything they cannot interpret comes back as None.
"""

import math
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

_MISSING = object()


def _lookup(obj: Any, path: str) -> Any:
    current = obj
    for part in path.split("."):
        if not isinstance(current, dict):
            return _MISSING
        current = current.get(part, _MISSING)
        if current is _MISSING:
            return _MISSING
    return current


def pick(obj: Any, *paths: str, default: Any = None) -> Any:
    """Return the first non-null value found under any of the given keys.

    Paths are tried in order; a dotted path walks nested dicts.

    Args:
        obj: Upstream JSON object (anything that is not a dict yields default)
        *paths: Alternate keys or dotted paths, most preferred first
        default: Value returned when no path resolves to a non-null value

    Returns:
        The first non-null value, or default

    Examples:
        >>> pick({"HomeMoneyLine": -150}, "homeMoneyline", "HomeMoneyLine")
        -150
        >>> pick({"names": {"medium": "Chiefs"}}, "names.medium", "teamID")
        'Chiefs'
        >>> pick({}, "a", "b", default="n/a")
        'n/a'
    """
    for path in paths:
        value = _lookup(obj, path)
        if value is not _MISSING and value is not None:
            return value
    return default


def pick_list(obj: Any, *paths: str) -> list:
    """Like pick, but only a list counts as found; anything else yields [].

    Examples:
        >>> pick_list({"outcomes": 7}, "outcomes")
        []
        >>> pick_list({"Markets": [{"key": "h2h"}]}, "markets", "Markets")
        [{'key': 'h2h'}]
    """
    value = pick(obj, *paths)
    return value if isinstance(value, list) else []


def to_number_or_none(value: Any) -> float | None:
    """Coerce a number or numeric string to float.

    Accepts ints, floats and strings such as "+150", " -3.5 ". Booleans,
    empty strings, NaN and infinities are rejected.

    Examples:
        >>> to_number_or_none("+150")
        150.0
        >>> to_number_or_none("EVEN") is None
        True
        >>> to_number_or_none(float("nan")) is None
        True
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _to_decimal(value: Any) -> Decimal | None:
    number = to_number_or_none(value)
    if number is None:
        return None
    if isinstance(value, str):
        try:
            return Decimal(value.strip().lstrip("+"))
        except InvalidOperation:
            return None
    return Decimal(str(number))


def _decimal_text(number: Decimal) -> str:
    if number == 0:
        return "0"
    return format(number.normalize(), "f")


def format_american(value: Any) -> str | None:
    """Format American odds as a signed decimal string without a plus sign.

    Zero is not a valid American price and yields None.

    Examples:
        >>> format_american("+150")
        '150'
        >>> format_american(-110.0)
        '-110'
        >>> format_american(0) is None
        True
    """
    number = _to_decimal(value)
    if number is None or number == 0:
        return None
    return _decimal_text(number)


def format_point(value: Any) -> str | None:
    """Format a spread or total line as a decimal string.

    Examples:
        >>> format_point(-3.5)
        '-3.5'
        >>> format_point("47.50")
        '47.5'
        >>> format_point("+0")
        '0'
    """
    number = _to_decimal(value)
    if number is None:
        return None
    return _decimal_text(number)


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an upstream timestamp into a timezone-aware UTC datetime.

    Supports datetime objects, ISO 8601 strings (including a trailing "Z")
    and epoch seconds or milliseconds. Naive values are taken as UTC.

    Args:
        value: Raw timestamp value

    Returns:
        UTC datetime, or None if the value cannot be interpreted

    Examples:
        >>> parse_timestamp("2024-09-08T17:00:00Z").isoformat()
        '2024-09-08T17:00:00+00:00'
        >>> parse_timestamp("not a date") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        if math.isnan(value) or math.isinf(value):
            return None
        seconds = value / 1000 if abs(value) > 1e11 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
