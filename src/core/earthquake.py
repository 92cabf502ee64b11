"""Earthquake record model - Pure functions.

This module defines the canonical record every provider is normalized into,
plus the record identity types and the user-facing record filters.
All functions are pure with no side effects.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Iterable, Union


# Label used when a provider sends no location text
UNKNOWN_LOCATION = "Konum belirtilmemiş"


class Source(str, Enum):
    """Upstream providers. Adding a member requires adding an adapter."""
    KANDILLI = "kandilli"
    AFAD = "afad"


class LoadingStatus(str, Enum):
    """Per-provider state of one aggregation cycle."""
    PENDING = "pending"
    LOADED = "loaded"
    ERROR = "error"


@dataclass(frozen=True)
class NativeIdentity:
    """Identity taken from the provider's own event key.

    Attributes:
        source: Provider that issued the key
        key: Provider-native event ID
    """
    source: Source
    key: str

    @property
    def value(self) -> str:
        return f"{self.source.value}-{self.key}"

    @property
    def is_recognizable(self) -> bool:
        return True


@dataclass(frozen=True)
class SyntheticIdentity:
    """Identity minted at ingestion when the provider sent no event key.

    A synthetic identity differs on every fetch, so the same event cannot
    be recognized again by ID on a later cycle.

    Attributes:
        source: Provider the record came from
        timestamp: Ingestion time (epoch milliseconds)
        nonce: Random suffix
    """
    source: Source
    timestamp: int
    nonce: str

    @property
    def value(self) -> str:
        return f"{self.source.value}-{self.timestamp}-{self.nonce}"

    @property
    def is_recognizable(self) -> bool:
        return False


Identity = Union[NativeIdentity, SyntheticIdentity]


@dataclass(frozen=True)
class CanonicalRecord:
    """Immutable, provider-agnostic seismic event.

    Attributes:
        identity: Native or synthetic identity
        date: Civil date of the event (UTC, YYYY-MM-DD)
        time: Time of day of the event (UTC, HH:MM:SS)
        timestamp: Event instant in epoch milliseconds
        latitude: Epicenter latitude
        longitude: Epicenter longitude
        depth: Depth in kilometers (never negative)
        magnitude: Event magnitude
        location: Provider-supplied location label
        source: Provider the record came from
    """
    identity: Identity
    date: str
    time: str
    timestamp: int
    latitude: float
    longitude: float
    depth: float
    magnitude: float
    location: str
    source: Source

    @property
    def id(self) -> str:
        """Provider-namespaced record ID."""
        return self.identity.value

    @property
    def coordinates(self) -> tuple[float, float]:
        """Return (latitude, longitude) tuple."""
        return (self.latitude, self.longitude)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-serializable shape served to consumers."""
        return {
            "id": self.id,
            "date": self.date,
            "time": self.time,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "depth": self.depth,
            "magnitude": self.magnitude,
            "location": self.location,
            "source": self.source.value,
            "timestamp": self.timestamp,
        }


def split_timestamp(timestamp_ms: int) -> tuple[str, str]:
    """Decompose an epoch-millisecond instant into UTC (date, time) strings.

    Pure function.

    Args:
        timestamp_ms: Instant in epoch milliseconds

    Returns:
        Tuple of ("YYYY-MM-DD", "HH:MM:SS")
    """
    moment = datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d"), moment.strftime("%H:%M:%S")


def coerce_float(value: Any) -> float | None:
    """Convert a provider value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_depth(value: Any) -> float:
    """Depth in km; missing or unparseable depth becomes 0, negatives clamp to 0."""
    depth = coerce_float(value)
    if depth is None:
        return 0.0
    return max(depth, 0.0)


def build_record(
    identity: Identity,
    timestamp_ms: int,
    latitude: float,
    longitude: float,
    depth: float,
    magnitude: float,
    location: str | None,
) -> CanonicalRecord:
    """Assemble a CanonicalRecord, deriving date and time from the instant.

    Pure function.
    """
    date, time = split_timestamp(timestamp_ms)
    return CanonicalRecord(
        identity=identity,
        date=date,
        time=time,
        timestamp=int(timestamp_ms),
        latitude=latitude,
        longitude=longitude,
        depth=depth,
        magnitude=magnitude,
        location=location or UNKNOWN_LOCATION,
        source=identity.source,
    )


def filter_by_magnitude(
    records: list[CanonicalRecord],
    min_magnitude: float | None = None,
    max_magnitude: float | None = None,
) -> list[CanonicalRecord]:
    """Filter records by magnitude range.

    Pure function.

    Args:
        records: Records to filter
        min_magnitude: Minimum magnitude (inclusive), None for no minimum
        max_magnitude: Maximum magnitude (inclusive), None for no maximum

    Returns:
        Filtered list of records
    """
    result = records

    if min_magnitude is not None:
        result = [r for r in result if r.magnitude >= min_magnitude]

    if max_magnitude is not None:
        result = [r for r in result if r.magnitude <= max_magnitude]

    return result


def filter_by_depth(
    records: list[CanonicalRecord],
    min_depth: float | None = None,
    max_depth: float | None = None,
) -> list[CanonicalRecord]:
    """Filter records by depth range (km, inclusive).

    Pure function.
    """
    result = records

    if min_depth is not None:
        result = [r for r in result if r.depth >= min_depth]

    if max_depth is not None:
        result = [r for r in result if r.depth <= max_depth]

    return result


def filter_by_source(
    records: list[CanonicalRecord],
    sources: Iterable[Source] | None = None,
) -> list[CanonicalRecord]:
    """Keep records from the given providers. None or empty keeps everything.

    Pure function.
    """
    if not sources:
        return records
    allowed = set(sources)
    return [r for r in records if r.source in allowed]


@dataclass(frozen=True)
class RecordFilter:
    """User-selected narrowing of the aggregated record set.

    Attributes:
        min_magnitude: Minimum magnitude (inclusive)
        max_magnitude: Maximum magnitude (inclusive)
        min_depth: Minimum depth in km (inclusive)
        max_depth: Maximum depth in km (inclusive)
        sources: Providers to keep (empty keeps all)
    """
    min_magnitude: float | None = None
    max_magnitude: float | None = None
    min_depth: float | None = None
    max_depth: float | None = None
    sources: tuple[Source, ...] = field(default_factory=tuple)

    def apply(self, records: list[CanonicalRecord]) -> list[CanonicalRecord]:
        """Apply magnitude, depth and source filters in that order."""
        result = filter_by_magnitude(records, self.min_magnitude, self.max_magnitude)
        result = filter_by_depth(result, self.min_depth, self.max_depth)
        return filter_by_source(result, self.sources)


class SortOrder(str, Enum):
    """Orderings offered for the record list."""
    MAGNITUDE_DESC = "magnitude-desc"
    MAGNITUDE_ASC = "magnitude-asc"
    DATE_DESC = "date-desc"
    DATE_ASC = "date-asc"


def sort_records(
    records: list[CanonicalRecord],
    order: SortOrder = SortOrder.DATE_DESC,
) -> list[CanonicalRecord]:
    """Order records by magnitude or by instant.

    Pure function. The sort is stable, so equal keys keep their input order.

    Args:
        records: Records to order
        order: Requested ordering

    Returns:
        New sorted list
    """
    if order is SortOrder.MAGNITUDE_DESC:
        return sorted(records, key=lambda r: r.magnitude, reverse=True)
    if order is SortOrder.MAGNITUDE_ASC:
        return sorted(records, key=lambda r: r.magnitude)
    if order is SortOrder.DATE_ASC:
        return sorted(records, key=lambda r: r.timestamp)
    return sorted(records, key=lambda r: r.timestamp, reverse=True)
