"""Geographic bounds - Pure functions.

This module provides the bounding-box type used for both the fixed
geographic admission filter and the map viewport.
All functions are pure with no side effects.
"""

from dataclasses import dataclass

from src.core.earthquake import CanonicalRecord


@dataclass(frozen=True)
class BoundingBox:
    """Geographic bounding box.

    A box whose min exceeds its max on either axis is degenerate and
    contains nothing.

    Attributes:
        min_latitude: Southern boundary
        max_latitude: Northern boundary
        min_longitude: Western boundary
        max_longitude: Eastern boundary
    """
    min_latitude: float
    max_latitude: float
    min_longitude: float
    max_longitude: float

    def contains(self, latitude: float, longitude: float) -> bool:
        """Check if a point is within this bounding box (edges inclusive)."""
        return (
            self.min_latitude <= latitude <= self.max_latitude
            and self.min_longitude <= longitude <= self.max_longitude
        )

    def to_dict(self) -> dict[str, float]:
        """Convert to a plain dict."""
        return {
            "min_latitude": self.min_latitude,
            "max_latitude": self.max_latitude,
            "min_longitude": self.min_longitude,
            "max_longitude": self.max_longitude,
        }


# Region of interest: mainland Turkey plus surrounding seas
TURKEY_BOUNDS = BoundingBox(
    min_latitude=35.5,
    max_latitude=42.0,
    min_longitude=25.5,
    max_longitude=45.0,
)


def is_within_bounds(record: CanonicalRecord, bounds: BoundingBox) -> bool:
    """Check if a record's epicenter is within a bounding box.

    Pure function.

    Args:
        record: Record to check
        bounds: Bounding box to check against

    Returns:
        True if the record is within bounds
    """
    return bounds.contains(record.latitude, record.longitude)


def filter_by_bounds(
    records: list[CanonicalRecord],
    bounds: BoundingBox,
) -> list[CanonicalRecord]:
    """Filter records to only those within a bounding box.

    Pure function. Order is preserved.

    Args:
        records: Records to filter
        bounds: Bounding box to filter by

    Returns:
        Records within the bounds
    """
    return [r for r in records if is_within_bounds(r, bounds)]
