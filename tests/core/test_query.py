"""Unit tests for inbound query parsing.

Pure function tests - no mocks needed.
"""

import json

import pytest
from datetime import datetime, timezone

from src.core.date_range import DateWindow
from src.core.earthquake import NativeIdentity, SortOrder, Source, build_record
from src.core.query import (
    QueryError,
    parse_feed_query,
    parse_sort,
    parse_sources,
    parse_stats_query,
    parse_viewport_query,
)


NOW = datetime(2024, 3, 10, 12, 0, tzinfo=timezone.utc)

BASE = int(datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc).timestamp() * 1000)


def make_record(key: str, magnitude: float, offset_ms: int, latitude: float = 39.0):
    return build_record(
        identity=NativeIdentity(source=Source.AFAD, key=key),
        timestamp_ms=BASE + offset_ms,
        latitude=latitude,
        longitude=35.0,
        depth=7.0,
        magnitude=magnitude,
        location="Test",
    )


VIEWPORT_PARAMS = {
    "zoom": "6.5",
    "south": "36.0",
    "north": "40.0",
    "west": "30.0",
    "east": "40.0",
}


class TestParseFeedQuery:
    """Tests for parse_feed_query()."""

    def test_date_only(self):
        query = parse_feed_query({"date": "2024-01-01"}, NOW)
        assert query.window == DateWindow(start="2024-01-01", end=None)

    def test_date_range(self):
        query = parse_feed_query({"date": "2024-01-01", "date_end": "2024-01-07"}, NOW)
        assert query.window == DateWindow(start="2024-01-01", end="2024-01-07")

    def test_range_preset(self):
        query = parse_feed_query({"range": "7days"}, NOW)
        assert query.window == DateWindow(start="2024-03-03", end="2024-03-10")

    def test_explicit_date_wins_over_preset(self):
        query = parse_feed_query({"date": "2024-01-01", "range": "7days"}, NOW)
        assert query.window.start == "2024-01-01"

    def test_missing_date(self):
        with pytest.raises(QueryError, match="date parameter is required"):
            parse_feed_query({}, NOW)

    def test_unknown_preset(self):
        with pytest.raises(QueryError, match="Unknown range"):
            parse_feed_query({"range": "forever"}, NOW)

    @pytest.mark.parametrize("params", [
        {"date": "01/01/2024"},
        {"date": "2024-01-01", "date_end": "soon"},
    ])
    def test_malformed_dates(self, params):
        with pytest.raises(QueryError):
            parse_feed_query(params, NOW)

    def test_end_before_start(self):
        with pytest.raises(QueryError, match="before"):
            parse_feed_query({"date": "2024-01-07", "date_end": "2024-01-01"}, NOW)

    def test_filters(self):
        query = parse_feed_query({
            "date": "2024-01-01",
            "min_magnitude": "3.5",
            "max_depth": "20",
            "sources": "afad",
        }, NOW)

        assert query.record_filter.min_magnitude == 3.5
        assert query.record_filter.max_magnitude is None
        assert query.record_filter.max_depth == 20.0
        assert query.record_filter.sources == (Source.AFAD,)

    @pytest.mark.parametrize("value", ["big", "nan", "inf"])
    def test_bad_number(self, value):
        with pytest.raises(QueryError, match="min_magnitude"):
            parse_feed_query({"date": "2024-01-01", "min_magnitude": value}, NOW)


    def test_sort_defaults_to_newest_first(self):
        query = parse_feed_query({"date": "2024-01-01"}, NOW)
        assert query.sort == SortOrder.DATE_DESC

    def test_sort_parsed(self):
        query = parse_feed_query({"date": "2024-01-01", "sort": "magnitude-desc"}, NOW)
        assert query.sort == SortOrder.MAGNITUDE_DESC

    def test_unknown_sort(self):
        with pytest.raises(QueryError, match="Unknown sort"):
            parse_feed_query({"date": "2024-01-01", "sort": "loudest"}, NOW)

    def test_select_filters_then_sorts(self):
        records = [
            make_record("weak", 2.0, 0),
            make_record("strong", 5.5, 60_000),
            make_record("mid", 4.0, 120_000),
        ]
        query = parse_feed_query(
            {"date": "2024-01-01", "min_magnitude": "3", "sort": "magnitude-asc"}, NOW,
        )

        assert [r.identity.key for r in query.select(records)] == ["mid", "strong"]


class TestParseSort:
    """Tests for parse_sort()."""

    @pytest.mark.parametrize("raw, expected", [
        ("magnitude-desc", SortOrder.MAGNITUDE_DESC),
        ("magnitude-asc", SortOrder.MAGNITUDE_ASC),
        ("date-desc", SortOrder.DATE_DESC),
        (" Date-Asc ", SortOrder.DATE_ASC),
        (None, SortOrder.DATE_DESC),
        ("", SortOrder.DATE_DESC),
    ])
    def test_values(self, raw, expected):
        assert parse_sort(raw) == expected

class TestParseSources:
    """Tests for parse_sources()."""

    def test_comma_separated(self):
        assert parse_sources("kandilli, AFAD") == (Source.KANDILLI, Source.AFAD)

    def test_empty(self):
        assert parse_sources(None) == ()
        assert parse_sources("") == ()

    def test_unknown(self):
        with pytest.raises(QueryError, match="Unknown source"):
            parse_sources("usgs")


class TestParseViewportQuery:
    """Tests for parse_viewport_query()."""

    def test_parses_bounds(self):
        query = parse_viewport_query(VIEWPORT_PARAMS)

        assert query.zoom == 6.5
        assert query.bounds.min_latitude == 36.0
        assert query.bounds.max_latitude == 40.0
        assert query.bounds.min_longitude == 30.0
        assert query.bounds.max_longitude == 40.0
        assert query.size_multiplier == 1.0

    @pytest.mark.parametrize("missing", ["zoom", "south", "north", "west", "east"])
    def test_required(self, missing):
        params = {k: v for k, v in VIEWPORT_PARAMS.items() if k != missing}
        with pytest.raises(QueryError, match=missing):
            parse_viewport_query(params)

    def test_explicit_multiplier(self):
        query = parse_viewport_query({**VIEWPORT_PARAMS, "size_multiplier": "2"})
        assert query.size_multiplier == 2.0

    def test_multiplier_out_of_range(self):
        with pytest.raises(QueryError, match="size_multiplier"):
            parse_viewport_query({**VIEWPORT_PARAMS, "size_multiplier": "9"})

    def test_multiplier_from_preferences(self):
        blob = json.dumps({"marker_size_multiplier": 1.5})
        query = parse_viewport_query({**VIEWPORT_PARAMS, "preferences": blob})
        assert query.size_multiplier == 1.5

    def test_malformed_preferences_use_default(self):
        query = parse_viewport_query({**VIEWPORT_PARAMS, "preferences": "{oops"})
        assert query.size_multiplier == 1.0


class TestParseStatsQuery:
    """Tests for parse_stats_query()."""

    def test_without_area(self):
        query = parse_stats_query({"date": "2024-01-01", "min_magnitude": "4"}, NOW)

        assert query.area is None
        assert query.feed.record_filter.min_magnitude == 4.0

    def test_with_area(self):
        params = {"date": "2024-01-01", "south": "38", "north": "40", "west": "34", "east": "36"}
        query = parse_stats_query(params, NOW)

        assert query.area.min_latitude == 38.0
        assert query.area.max_longitude == 36.0

    def test_partial_area(self):
        with pytest.raises(QueryError, match="area"):
            parse_stats_query({"date": "2024-01-01", "south": "38", "north": "40"}, NOW)

    def test_select_narrows_to_area(self):
        records = [
            make_record("inside", 4.0, 0, latitude=39.0),
            make_record("outside", 6.0, 0, latitude=41.5),
        ]
        params = {"date": "2024-01-01", "south": "38", "north": "40", "west": "34", "east": "36"}

        selected = parse_stats_query(params, NOW).select(records)

        assert [r.identity.key for r in selected] == ["inside"]
