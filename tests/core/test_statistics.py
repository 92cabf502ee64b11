"""Unit tests for record statistics.

Pure function tests - no mocks needed.
"""

import pytest
from datetime import datetime, timezone

from src.core.earthquake import NativeIdentity, Source, build_record
from src.core.statistics import (
    UNNAMED_LOCATION,
    RecordStatistics,
    compute_statistics,
    hourly_activity,
    intervals_hours,
    location_group,
    top_locations,
)


def at(day: int, hour: int, minute: int = 0) -> int:
    return int(datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc).timestamp() * 1000)


def make_record(
    key: str,
    magnitude: float = 3.0,
    depth: float = 10.0,
    timestamp: int | None = None,
    location: str = "SINDIRGI (BALIKESIR)",
    source: Source = Source.AFAD,
):
    return build_record(
        identity=NativeIdentity(source=source, key=key),
        timestamp_ms=at(1, 12) if timestamp is None else timestamp,
        latitude=39.2,
        longitude=28.2,
        depth=depth,
        magnitude=magnitude,
        location=location,
    )


@pytest.fixture
def records():
    """Two days of activity from both providers."""
    return [
        make_record("a", 5.2, 7.0, at(1, 2, 15)),
        make_record(
            "b", 3.4, 12.0, at(1, 4, 15),
            location="SINDIRGI (BALIKESIR), Merkez",
            source=Source.KANDILLI,
        ),
        make_record("c", 2.4, 55.0, at(2, 2, 45), location="AKDENIZ"),
    ]


def counts(buckets):
    return {b.label: b.count for b in buckets}


class TestComputeStatistics:
    """Tests for compute_statistics()."""

    def test_extremes_and_means(self, records):
        stats = compute_statistics(records)

        assert stats.count == 3
        assert stats.min_magnitude == 2.4
        assert stats.max_magnitude == 5.2
        assert stats.avg_magnitude == pytest.approx(11.0 / 3)
        assert stats.min_depth == 7.0
        assert stats.max_depth == 55.0
        assert stats.avg_depth == pytest.approx(74.0 / 3)

    def test_magnitude_distribution(self, records):
        stats = compute_statistics(records)

        assert counts(stats.magnitude_distribution) == {
            "M 7.0+": 0,
            "M 6.0-6.9": 0,
            "M 5.0-5.9": 1,
            "M 4.0-4.9": 0,
            "M 3.0-3.9": 1,
            "M < 3.0": 1,
        }

    def test_band_edges_are_lower_inclusive(self):
        stats = compute_statistics([make_record("a", 7.0), make_record("b", 6.99), make_record("c", 3.0)])

        assert counts(stats.magnitude_distribution)["M 7.0+"] == 1
        assert counts(stats.magnitude_distribution)["M 6.0-6.9"] == 1
        assert counts(stats.magnitude_distribution)["M 3.0-3.9"] == 1

    def test_source_distribution(self, records):
        stats = compute_statistics(records)
        assert counts(stats.source_distribution) == {"kandilli": 1, "afad": 2}

    def test_depth_ranges(self, records):
        stats = compute_statistics(records)

        assert counts(stats.depth_ranges) == {
            "0-10 km": 1,
            "10-20 km": 1,
            "20-30 km": 0,
            "30-50 km": 0,
            "50+ km": 1,
        }

    def test_daily_activity_oldest_first(self, records):
        daily = compute_statistics(list(reversed(records))).daily

        assert [d.date for d in daily] == ["2024-03-01", "2024-03-02"]
        assert daily[0].count == 2
        assert daily[0].avg_magnitude == pytest.approx(4.3)
        assert daily[0].avg_depth == pytest.approx(9.5)
        assert daily[1].count == 1

    def test_indicators(self, records):
        stats = compute_statistics(records)

        assert stats.avg_interval_hours == pytest.approx(12.25)
        assert stats.risk_score == pytest.approx(1.1)
        assert stats.activity_level == pytest.approx(1.5)
        assert stats.strong_count == 1
        assert stats.shallow_count == 1

    def test_top_locations_group_by_leading_name(self, records):
        stats = compute_statistics(records)
        assert counts(stats.top_locations) == {"SINDIRGI (BALIKESIR)": 2, "AKDENIZ": 1}

    def test_single_record_has_no_interval(self):
        stats = compute_statistics([make_record("only", 4.0)])

        assert stats.avg_interval_hours == 0.0
        assert stats.activity_level == 1.0

    def test_empty(self):
        stats = compute_statistics([])

        assert stats == RecordStatistics()
        assert stats.to_dict()["count"] == 0
        assert stats.to_dict()["hourly"] == []
        assert stats.to_dict()["magnitude_distribution"] == []

    def test_to_dict(self, records):
        data = compute_statistics(records).to_dict()

        assert data["count"] == 3
        assert data["source_distribution"] == [
            {"label": "kandilli", "count": 1},
            {"label": "afad", "count": 2},
        ]
        assert data["daily"][1] == {
            "date": "2024-03-02",
            "count": 1,
            "avg_magnitude": 2.4,
            "avg_depth": 55.0,
        }
        assert len(data["hourly"]) == 24


class TestHourlyActivity:
    """Tests for hourly_activity()."""

    def test_all_hours_present(self, records):
        hourly = hourly_activity(records)

        assert [b.label for b in hourly][:3] == ["00:00", "01:00", "02:00"]
        assert len(hourly) == 24
        assert hourly[2].count == 2
        assert hourly[4].count == 1
        assert sum(b.count for b in hourly) == 3


class TestTopLocations:
    """Tests for top_locations()."""

    def test_limited_to_ten(self):
        records = [make_record(str(i), location=f"PLACE {i}") for i in range(12)]
        assert len(top_locations(records)) == 10

    def test_ties_keep_first_seen(self):
        records = [
            make_record("1", location="B"),
            make_record("2", location="A"),
            make_record("3", location="A"),
            make_record("4", location="C"),
        ]

        assert [b.label for b in top_locations(records)] == ["A", "B", "C"]


class TestLocationGroup:
    """Tests for location_group()."""

    @pytest.mark.parametrize("location, expected", [
        ("SINDIRGI (BALIKESIR), Merkez", "SINDIRGI (BALIKESIR)"),
        ("AKDENIZ", "AKDENIZ"),
        ("", UNNAMED_LOCATION),
        ("   ", UNNAMED_LOCATION),
    ])
    def test_groups(self, location, expected):
        assert location_group(location) == expected


class TestIntervalsHours:
    """Tests for intervals_hours()."""

    def test_chronological_gaps(self, records):
        assert intervals_hours(list(reversed(records))) == [2.0, 22.5]

    def test_fewer_than_two(self):
        assert intervals_hours([]) == []
        assert intervals_hours([make_record("a")]) == []
