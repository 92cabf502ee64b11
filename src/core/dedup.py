"""Deduplication logic - Pure functions.

Providers do not share an ID space, so the same physical event reported by
two providers is matched on place and time instead of on ID. Events whose
epicenters fall in the same ~0.1 degree cell and whose instants round to the
same minute are treated as one event.

This is a heuristic: two distinct small events close together in the same
minute are merged. That false-merge rate is accepted.
"""

import math
from dataclasses import dataclass

from src.core.earthquake import CanonicalRecord


DedupKey = tuple[int, int, int]


@dataclass(frozen=True)
class DedupGranularity:
    """Cell sizes of the dedup key.

    Attributes:
        coordinate_scale: Coordinates are multiplied by this and rounded
            (10 means 0.1 degree cells)
        time_bucket_ms: Width of the time bucket in milliseconds
    """
    coordinate_scale: float = 10.0
    time_bucket_ms: int = 60_000


DEFAULT_GRANULARITY = DedupGranularity()


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def dedup_key(
    record: CanonicalRecord,
    granularity: DedupGranularity = DEFAULT_GRANULARITY,
) -> DedupKey:
    """Compute the spatial-temporal identity key of a record.

    Pure function.

    Args:
        record: Record to key
        granularity: Cell sizes

    Returns:
        (latitude cell, longitude cell, time bucket)
    """
    scale = granularity.coordinate_scale
    return (
        _round_half_up(record.latitude * scale),
        _round_half_up(record.longitude * scale),
        _round_half_up(record.timestamp / granularity.time_bucket_ms),
    )


def remove_duplicates(
    records: list[CanonicalRecord],
    granularity: DedupGranularity = DEFAULT_GRANULARITY,
) -> list[CanonicalRecord]:
    """Collapse records sharing a dedup key to the highest magnitude.

    Pure function. A later candidate replaces the kept one only with a
    strictly greater magnitude, so ties keep the first seen. The result is
    ordered by first appearance of each key.

    Args:
        records: Records in concatenation order
        granularity: Cell sizes

    Returns:
        One record per dedup key
    """
    seen: dict[DedupKey, CanonicalRecord] = {}

    for record in records:
        key = dedup_key(record, granularity)
        kept = seen.get(key)
        if kept is None or record.magnitude > kept.magnitude:
            seen[key] = record

    return list(seen.values())


def sort_newest_first(records: list[CanonicalRecord]) -> list[CanonicalRecord]:
    """Sort records by timestamp, most recent first (stable)."""
    return sorted(records, key=lambda r: r.timestamp, reverse=True)
