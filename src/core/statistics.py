"""Record statistics - Pure functions.

Summarizes a record set (typically the filtered feed, or the records inside
a user-selected map area) for the statistics panel: magnitude and depth
extremes, distributions, daily and hourly activity, busiest locations, and
a few derived activity indicators.
"""

from dataclasses import dataclass, field
from typing import Any

from src.core.earthquake import CanonicalRecord, Source


# (label, lower bound inclusive, upper bound exclusive), strongest first
MAGNITUDE_BANDS: tuple[tuple[str, float, float], ...] = (
    ("M 7.0+", 7.0, float("inf")),
    ("M 6.0-6.9", 6.0, 7.0),
    ("M 5.0-5.9", 5.0, 6.0),
    ("M 4.0-4.9", 4.0, 5.0),
    ("M 3.0-3.9", 3.0, 4.0),
    ("M < 3.0", float("-inf"), 3.0),
)

DEPTH_RANGES: tuple[tuple[str, float, float], ...] = (
    ("0-10 km", 0.0, 10.0),
    ("10-20 km", 10.0, 20.0),
    ("20-30 km", 20.0, 30.0),
    ("30-50 km", 30.0, 50.0),
    ("50+ km", 50.0, float("inf")),
)

STRONG_MAGNITUDE = 5.0
SHALLOW_DEPTH_KM = 10.0
TOP_LOCATIONS = 10

# Location group for records whose title has no usable place name
UNNAMED_LOCATION = "Bilinmeyen"

_MS_PER_HOUR = 3_600_000


@dataclass(frozen=True)
class Bucket:
    """A labelled count."""
    label: str
    count: int

    def to_dict(self) -> dict[str, Any]:
        return {"label": self.label, "count": self.count}


@dataclass(frozen=True)
class DailyActivity:
    """Activity on one UTC calendar day.

    Attributes:
        date: Day as YYYY-MM-DD
        count: Records on that day
        avg_magnitude: Mean magnitude of those records
        avg_depth: Mean depth in km of those records
    """
    date: str
    count: int
    avg_magnitude: float
    avg_depth: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "count": self.count,
            "avg_magnitude": self.avg_magnitude,
            "avg_depth": self.avg_depth,
        }


@dataclass(frozen=True)
class RecordStatistics:
    """Summary of a record set.

    An empty record set yields zeros and empty sequences throughout.

    Attributes:
        count: Number of records
        min_magnitude, max_magnitude, avg_magnitude: Magnitude summary
        min_depth, max_depth, avg_depth: Depth summary in km
        magnitude_distribution: Counts per MAGNITUDE_BANDS entry
        source_distribution: Counts per provider
        depth_ranges: Counts per DEPTH_RANGES entry
        daily: Per-day activity, oldest day first
        hourly: Counts per UTC hour of day, 00:00 to 23:00
        top_locations: Busiest location groups, busiest first
        avg_interval_hours: Mean gap between consecutive events
        risk_score: count * avg_magnitude / 10
        activity_level: Records per active day
        strong_count: Records at or above STRONG_MAGNITUDE
        shallow_count: Records shallower than SHALLOW_DEPTH_KM
    """
    count: int = 0
    min_magnitude: float = 0.0
    max_magnitude: float = 0.0
    avg_magnitude: float = 0.0
    min_depth: float = 0.0
    max_depth: float = 0.0
    avg_depth: float = 0.0
    magnitude_distribution: tuple[Bucket, ...] = field(default_factory=tuple)
    source_distribution: tuple[Bucket, ...] = field(default_factory=tuple)
    depth_ranges: tuple[Bucket, ...] = field(default_factory=tuple)
    daily: tuple[DailyActivity, ...] = field(default_factory=tuple)
    hourly: tuple[Bucket, ...] = field(default_factory=tuple)
    top_locations: tuple[Bucket, ...] = field(default_factory=tuple)
    avg_interval_hours: float = 0.0
    risk_score: float = 0.0
    activity_level: float = 0.0
    strong_count: int = 0
    shallow_count: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict."""
        return {
            "count": self.count,
            "min_magnitude": self.min_magnitude,
            "max_magnitude": self.max_magnitude,
            "avg_magnitude": self.avg_magnitude,
            "min_depth": self.min_depth,
            "max_depth": self.max_depth,
            "avg_depth": self.avg_depth,
            "magnitude_distribution": [b.to_dict() for b in self.magnitude_distribution],
            "source_distribution": [b.to_dict() for b in self.source_distribution],
            "depth_ranges": [b.to_dict() for b in self.depth_ranges],
            "daily": [d.to_dict() for d in self.daily],
            "hourly": [b.to_dict() for b in self.hourly],
            "top_locations": [b.to_dict() for b in self.top_locations],
            "avg_interval_hours": self.avg_interval_hours,
            "risk_score": self.risk_score,
            "activity_level": self.activity_level,
            "strong_count": self.strong_count,
            "shallow_count": self.shallow_count,
        }


def _mean(values: list[float]) -> float:
    return sum(values) / len(values)


def _count_in_ranges(
    values: list[float],
    ranges: tuple[tuple[str, float, float], ...],
) -> tuple[Bucket, ...]:
    return tuple(
        Bucket(label=label, count=sum(1 for v in values if low <= v < high))
        for label, low, high in ranges
    )


def location_group(location: str) -> str:
    """Reduce a location title to its leading place name.

    "SINDIRGI (BALIKESIR), Merkez" groups as "SINDIRGI (BALIKESIR)".
    """
    head = location.split(",")[0].strip()
    if head:
        return head
    head = location.split("-")[0].strip()
    return head or UNNAMED_LOCATION


def daily_activity(records: list[CanonicalRecord]) -> tuple[DailyActivity, ...]:
    """Group records by UTC day, oldest day first."""
    by_date: dict[str, list[CanonicalRecord]] = {}
    for record in records:
        by_date.setdefault(record.date, []).append(record)

    return tuple(
        DailyActivity(
            date=date,
            count=len(day),
            avg_magnitude=_mean([r.magnitude for r in day]),
            avg_depth=_mean([r.depth for r in day]),
        )
        for date, day in sorted(by_date.items())
    )


def hourly_activity(records: list[CanonicalRecord]) -> tuple[Bucket, ...]:
    """Count records per UTC hour of day; all 24 hours are present."""
    counts = [0] * 24
    for record in records:
        counts[int(record.time[:2])] += 1
    return tuple(Bucket(label=f"{hour:02d}:00", count=counts[hour]) for hour in range(24))


def top_locations(
    records: list[CanonicalRecord],
    limit: int = TOP_LOCATIONS,
) -> tuple[Bucket, ...]:
    """Busiest location groups. Ties keep first-seen order."""
    counts: dict[str, int] = {}
    for record in records:
        key = location_group(record.location)
        counts[key] = counts.get(key, 0) + 1

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(Bucket(label=label, count=count) for label, count in ranked[:limit])


def intervals_hours(records: list[CanonicalRecord]) -> list[float]:
    """Gaps between consecutive events in chronological order, in hours."""
    timestamps = sorted(r.timestamp for r in records)
    return [
        (later - earlier) / _MS_PER_HOUR
        for earlier, later in zip(timestamps, timestamps[1:])
    ]


def compute_statistics(records: list[CanonicalRecord]) -> RecordStatistics:
    """Summarize a record set.

    Pure function.

    Args:
        records: Records to summarize, in any order

    Returns:
        RecordStatistics for the set
    """
    if not records:
        return RecordStatistics()

    magnitudes = [r.magnitude for r in records]
    depths = [r.depth for r in records]
    daily = daily_activity(records)
    gaps = intervals_hours(records)
    avg_magnitude = _mean(magnitudes)

    return RecordStatistics(
        count=len(records),
        min_magnitude=min(magnitudes),
        max_magnitude=max(magnitudes),
        avg_magnitude=avg_magnitude,
        min_depth=min(depths),
        max_depth=max(depths),
        avg_depth=_mean(depths),
        magnitude_distribution=_count_in_ranges(magnitudes, MAGNITUDE_BANDS),
        source_distribution=tuple(
            Bucket(label=source.value, count=sum(1 for r in records if r.source == source))
            for source in Source
        ),
        depth_ranges=_count_in_ranges(depths, DEPTH_RANGES),
        daily=daily,
        hourly=hourly_activity(records),
        top_locations=top_locations(records),
        avg_interval_hours=_mean(gaps) if gaps else 0.0,
        risk_score=len(records) * avg_magnitude / 10,
        activity_level=len(records) / len(daily),
        strong_count=sum(1 for m in magnitudes if m >= STRONG_MAGNITUDE),
        shallow_count=sum(1 for d in depths if d < SHALLOW_DEPTH_KM),
    )
