"""Map marker styling - Pure functions.

Turns the records chosen by the viewport filter into marker descriptions a
map renderer can draw directly. The renderer must not filter further.
"""

import math
from dataclasses import dataclass, field
from typing import Any

from src.core.earthquake import CanonicalRecord


# Smallest marker drawn, in pixels
MIN_MARKER_SIZE = 6


@dataclass(frozen=True)
class MarkerStyle:
    """Immutable appearance of one marker.

    Attributes:
        color: Hex fill color
        color_darker: Hex gradient end color
        size: Diameter in pixels
    """
    color: str
    color_darker: str
    size: int


MarkerKey = tuple[float, int, float]


@dataclass
class MarkerCache:
    """Session-owned memo of marker styles.

    Keys are quantized (magnitude, zoom, size multiplier) tuples. Entries
    are only ever added, never invalidated; the key space is small.
    """
    _styles: dict[MarkerKey, MarkerStyle] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self._styles)

    def get_or_create(
        self,
        magnitude: float,
        zoom: float,
        size_multiplier: float = 1.0,
    ) -> MarkerStyle:
        """Return the cached style for the quantized key, creating it once."""
        key = marker_key(magnitude, zoom, size_multiplier)
        style = self._styles.get(key)
        if style is None:
            style = create_marker_style(magnitude, zoom, size_multiplier)
            self._styles[key] = style
        return style


def get_magnitude_color(magnitude: float) -> str:
    """Get hex color for magnitude visualization.

    Pure function.

    Args:
        magnitude: Event magnitude

    Returns:
        Hex color string (e.g., "#dc2626")
    """
    if magnitude >= 7.0:
        return "#dc2626"  # red-600
    elif magnitude >= 6.0:
        return "#ea580c"  # orange-600
    elif magnitude >= 5.0:
        return "#f59e0b"  # amber-500
    elif magnitude >= 4.0:
        return "#eab308"  # yellow-500
    elif magnitude >= 3.0:
        return "#84cc16"  # lime-500
    return "#22c55e"  # green-500


def get_magnitude_color_darker(magnitude: float) -> str:
    """Darker companion of get_magnitude_color, for the marker gradient.

    Pure function.
    """
    if magnitude >= 7.0:
        return "#991b1b"
    elif magnitude >= 6.0:
        return "#9a3412"
    elif magnitude >= 5.0:
        return "#d97706"
    elif magnitude >= 4.0:
        return "#ca8a04"
    elif magnitude >= 3.0:
        return "#65a30d"
    return "#16a34a"


def get_marker_size(
    magnitude: float,
    zoom: float,
    size_multiplier: float = 1.0,
) -> int:
    """Determine marker diameter from magnitude and zoom.

    Pure function. Markers shrink as the map zooms in so dense areas stay
    readable.

    Args:
        magnitude: Event magnitude
        zoom: Current zoom level
        size_multiplier: User preference scale factor

    Returns:
        Diameter in pixels, at least MIN_MARKER_SIZE
    """
    if magnitude >= 7.0:
        base_size = 24
    elif magnitude >= 6.0:
        base_size = 20
    elif magnitude >= 5.0:
        base_size = 18
    elif magnitude >= 4.0:
        base_size = 16
    elif magnitude >= 3.0:
        base_size = 14
    else:
        base_size = 8

    if zoom >= 10:
        scale = 0.65
    elif zoom >= 9:
        scale = 0.75
    elif zoom >= 8:
        scale = 0.85
    else:
        scale = 1.0

    return max(MIN_MARKER_SIZE, round(base_size * scale * size_multiplier))


def marker_key(magnitude: float, zoom: float, size_multiplier: float = 1.0) -> MarkerKey:
    """Quantize style inputs to a cache key.

    Pure function.
    """
    return (round(magnitude, 1), math.floor(zoom), round(size_multiplier, 1))


def create_marker_style(
    magnitude: float,
    zoom: float,
    size_multiplier: float = 1.0,
) -> MarkerStyle:
    """Create a marker style.

    Pure function.
    """
    return MarkerStyle(
        color=get_magnitude_color(magnitude),
        color_darker=get_magnitude_color_darker(magnitude),
        size=get_marker_size(magnitude, zoom, size_multiplier),
    )


def build_markers(
    records: list[CanonicalRecord],
    zoom: float,
    size_multiplier: float,
    cache: MarkerCache,
) -> list[dict[str, Any]]:
    """Describe one marker per record, in record order.

    Args:
        records: Output of the viewport filter
        zoom: Current zoom level
        size_multiplier: User preference scale factor
        cache: Session marker cache (filled as a side effect)

    Returns:
        Marker dicts with id, position, magnitude and style
    """
    markers = []
    for record in records:
        style = cache.get_or_create(record.magnitude, zoom, size_multiplier)
        markers.append({
            "id": record.id,
            "latitude": record.latitude,
            "longitude": record.longitude,
            "magnitude": record.magnitude,
            "color": style.color,
            "color_darker": style.color_darker,
            "size": style.size,
        })
    return markers
