"""Tests for upstream field coercion helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from odds_aggregator.normalization.coercion import (
    format_american,
    format_point,
    parse_timestamp,
    pick,
    pick_list,
    to_number_or_none,
)


class TestPick:
    def test_first_present_alias_wins(self):
        raw = {"homeMoneyline": None, "HomeMoneyLine": -150, "MoneyLineHome": -140}
        assert pick(raw, "homeMoneyline", "HomeMoneyLine", "MoneyLineHome") == -150

    def test_dotted_path_walks_nested_dicts(self):
        raw = {"teams": {"home": {"names": {"medium": "Chiefs"}}}}
        assert pick(raw, "teams.home.names.long", "teams.home.names.medium") == "Chiefs"

    def test_non_dict_yields_default(self):
        assert pick(None, "a") is None
        assert pick(["a"], "a", default="x") == "x"

    def test_falsy_values_are_kept(self):
        """Only None counts as missing; 0 and False are real values."""
        assert pick({"score": 0}, "score", default=7) == 0
        assert pick({"completed": False}, "completed", default=True) is False


class TestPickList:
    @pytest.mark.parametrize("value", [7, "n/a", {"key": "h2h"}, None])
    def test_wrong_type_yields_empty_list(self, value):
        assert pick_list({"outcomes": value}, "outcomes") == []

    def test_list_is_returned_as_is(self):
        outcomes = [{"name": "Over"}]
        assert pick_list({"Outcomes": outcomes}, "outcomes", "Outcomes") is outcomes


class TestToNumberOrNone:
    @pytest.mark.parametrize(
        "value,expected",
        [("+150", 150.0), (" -3.5 ", -3.5), (-110, -110.0), (47.5, 47.5), ("0", 0.0)],
    )
    def test_numeric_values(self, value, expected):
        assert to_number_or_none(value) == expected

    @pytest.mark.parametrize(
        "value", [None, "", "  ", "EVEN", "N/A", True, False, float("nan"), float("inf"), {}, []]
    )
    def test_rejected_values(self, value):
        assert to_number_or_none(value) is None


class TestFormatting:
    def test_format_american_drops_plus_sign(self):
        assert format_american("+150") == "150"
        assert format_american(150) == "150"

    def test_format_american_keeps_negative_sign(self):
        assert format_american("-110") == "-110"
        assert format_american(-110.0) == "-110"

    def test_format_american_rejects_zero_and_garbage(self):
        assert format_american(0) is None
        assert format_american("EVEN") is None
        assert format_american(None) is None

    def test_format_point(self):
        assert format_point(-3.5) == "-3.5"
        assert format_point("47.50") == "47.5"
        assert format_point(3) == "3"
        assert format_point("+0") == "0"
        assert format_point("pk") is None


class TestParseTimestamp:
    def test_iso_with_z_suffix(self):
        parsed = parse_timestamp("2024-09-08T17:00:00Z")
        assert parsed == datetime(2024, 9, 8, 17, 0, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        parsed = parse_timestamp("2024-09-08T13:00:00-04:00")
        assert parsed == datetime(2024, 9, 8, 17, 0, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_naive_is_taken_as_utc(self):
        parsed = parse_timestamp("2024-09-08T17:00:00")
        assert parsed.tzinfo is not None
        assert parsed.hour == 17

    def test_epoch_seconds_and_milliseconds(self):
        expected = datetime(2024, 9, 8, 17, 0, tzinfo=timezone.utc)
        seconds = int(expected.timestamp())
        assert parse_timestamp(seconds) == expected
        assert parse_timestamp(seconds * 1000) == expected

    @pytest.mark.parametrize("value", [None, "", "not a date", True, float("nan"), {}])
    def test_unparseable(self, value):
        assert parse_timestamp(value) is None
