"""Display preferences - Pure functions.

User display settings are round-tripped through an opaque JSON blob owned
by the client. A missing or malformed blob, or any malformed field, falls
back to the defaults below without raising.
"""

import json
from dataclasses import asdict, dataclass, fields
from typing import Any


MAP_STYLES = ("light", "satellite", "terrain")

MIN_SIZE_MULTIPLIER = 0.5
MAX_SIZE_MULTIPLIER = 3.0


@dataclass(frozen=True)
class DisplayPreferences:
    """Map display settings.

    Attributes:
        map_style: Base map style (light, satellite or terrain)
        marker_size_multiplier: Marker scale factor
        show_legend: Show the magnitude legend
        show_tectonic_plates: Show the tectonic plate layer
        show_turkey_faults: Show the fault line layer
        show_wave_animation: Animate waves for recent events
        show_cities: Show city labels
        is_list_open: Keep the event list panel open
    """
    map_style: str = "light"
    marker_size_multiplier: float = 1.0
    show_legend: bool = True
    show_tectonic_plates: bool = True
    show_turkey_faults: bool = True
    show_wave_animation: bool = True
    show_cities: bool = True
    is_list_open: bool = True


DEFAULT_PREFERENCES = DisplayPreferences()

_BOOLEAN_FIELDS = tuple(
    f.name for f in fields(DisplayPreferences) if f.type in (bool, "bool")
)


def _parse_multiplier(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not MIN_SIZE_MULTIPLIER <= value <= MAX_SIZE_MULTIPLIER:
        return None
    return float(value)


def preferences_from_dict(data: Any) -> DisplayPreferences:
    """Build preferences from a decoded blob, keeping defaults for bad fields.

    Pure function.
    """
    if not isinstance(data, dict):
        return DEFAULT_PREFERENCES

    values: dict[str, Any] = {}

    if data.get("map_style") in MAP_STYLES:
        values["map_style"] = data["map_style"]

    multiplier = _parse_multiplier(data.get("marker_size_multiplier"))
    if multiplier is not None:
        values["marker_size_multiplier"] = multiplier

    for name in _BOOLEAN_FIELDS:
        if isinstance(data.get(name), bool):
            values[name] = data[name]

    return DisplayPreferences(**values)


def load_preferences(blob: str | bytes | None) -> DisplayPreferences:
    """Decode a stored preferences blob.

    Pure function.

    Args:
        blob: JSON text as stored by the client, or None

    Returns:
        Parsed preferences, defaults where absent or malformed
    """
    if not blob:
        return DEFAULT_PREFERENCES

    try:
        data = json.loads(blob)
    except (TypeError, ValueError):
        return DEFAULT_PREFERENCES

    return preferences_from_dict(data)


def dump_preferences(preferences: DisplayPreferences) -> str:
    """Encode preferences as a JSON blob.

    Pure function.
    """
    return json.dumps(asdict(preferences), sort_keys=True)
