"""Inbound query parsing - Pure functions.

Both HTTP entry points (the Flask handlers and the FastAPI service) turn
their raw query parameters into the typed queries below, so validation
rules live in one place.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from src.core.date_range import (
    PRESETS,
    DateWindow,
    is_valid_date,
    parse_date,
    resolve_preset,
)
from src.core.earthquake import (
    CanonicalRecord,
    RecordFilter,
    SortOrder,
    Source,
    sort_records,
)
from src.core.geo import BoundingBox, filter_by_bounds
from src.core.preferences import (
    MAX_SIZE_MULTIPLIER,
    MIN_SIZE_MULTIPLIER,
    load_preferences,
)


class QueryError(ValueError):
    """Raised when inbound query parameters are invalid."""


@dataclass(frozen=True)
class FeedQuery:
    """A request for the aggregated record set.

    Attributes:
        window: Date window to aggregate
        record_filter: User filters applied after aggregation
        sort: Ordering applied after filtering
    """
    window: DateWindow
    record_filter: RecordFilter
    sort: SortOrder = SortOrder.DATE_DESC

    def select(self, records: list[CanonicalRecord]) -> list[CanonicalRecord]:
        """Apply the filters, then the ordering."""
        return sort_records(self.record_filter.apply(records), self.sort)


@dataclass(frozen=True)
class StatsQuery:
    """A request for statistics over the filtered feed.

    Attributes:
        feed: Window, filters and ordering
        area: Selected map rectangle, or None for the whole feed
    """
    feed: FeedQuery
    area: BoundingBox | None = None

    def select(self, records: list[CanonicalRecord]) -> list[CanonicalRecord]:
        """Filtered feed records, narrowed to the area when one is set."""
        selected = self.feed.select(records)
        if self.area is not None:
            selected = filter_by_bounds(selected, self.area)
        return selected


@dataclass(frozen=True)
class ViewportQuery:
    """A request for the records visible on the map.

    Attributes:
        zoom: Current zoom level
        bounds: Visible map rectangle
        size_multiplier: Marker scale factor
    """
    zoom: float
    bounds: BoundingBox
    size_multiplier: float = 1.0


def _optional_float(params: Mapping[str, str], name: str) -> float | None:
    raw = params.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        raise QueryError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise QueryError(f"{name} must be finite, got {raw!r}")
    return value


def _required_float(params: Mapping[str, str], name: str) -> float:
    value = _optional_float(params, name)
    if value is None:
        raise QueryError(f"{name} parameter is required")
    return value


def parse_sources(raw: str | None) -> tuple[Source, ...]:
    """Parse a comma-separated provider list.

    Raises:
        QueryError: If a provider name is unknown
    """
    if not raw:
        return ()

    sources = []
    for name in raw.split(","):
        name = name.strip().lower()
        if not name:
            continue
        try:
            sources.append(Source(name))
        except ValueError:
            known = ", ".join(s.value for s in Source)
            raise QueryError(f"Unknown source {name!r} (known: {known})") from None
    return tuple(sources)


def parse_sort(raw: str | None) -> SortOrder:
    """Parse the list ordering; newest first when absent.

    Raises:
        QueryError: If the ordering is unknown
    """
    if not raw:
        return SortOrder.DATE_DESC
    try:
        return SortOrder(raw.strip().lower())
    except ValueError:
        known = ", ".join(o.value for o in SortOrder)
        raise QueryError(f"Unknown sort {raw!r} (known: {known})") from None


def parse_window(params: Mapping[str, str], now: datetime) -> DateWindow:
    """Resolve the date window from date/date_end or a range preset.

    Raises:
        QueryError: If neither is given or a date is malformed
    """
    date = params.get("date")
    date_end = params.get("date_end") or None
    preset = params.get("range")

    if not date:
        if preset:
            if preset not in PRESETS:
                raise QueryError(
                    f"Unknown range {preset!r} (known: {', '.join(PRESETS)})"
                )
            return resolve_preset(preset, now)
        raise QueryError("date parameter is required (YYYY-MM-DD)")

    if not is_valid_date(date):
        raise QueryError(f"date must be YYYY-MM-DD, got {date!r}")

    if date_end is not None:
        if not is_valid_date(date_end):
            raise QueryError(f"date_end must be YYYY-MM-DD, got {date_end!r}")
        if parse_date(date_end) < parse_date(date):
            raise QueryError("date_end must not be before date")

    return DateWindow(start=date, end=date_end)


def parse_feed_query(params: Mapping[str, str], now: datetime) -> FeedQuery:
    """Parse the aggregated-feed query.

    Pure function.

    Args:
        params: Raw query parameters
        now: Current time, used by range presets

    Returns:
        FeedQuery

    Raises:
        QueryError: If any parameter is invalid
    """
    window = parse_window(params, now)

    record_filter = RecordFilter(
        min_magnitude=_optional_float(params, "min_magnitude"),
        max_magnitude=_optional_float(params, "max_magnitude"),
        min_depth=_optional_float(params, "min_depth"),
        max_depth=_optional_float(params, "max_depth"),
        sources=parse_sources(params.get("sources")),
    )

    return FeedQuery(
        window=window,
        record_filter=record_filter,
        sort=parse_sort(params.get("sort")),
    )


def parse_viewport_query(params: Mapping[str, str]) -> ViewportQuery:
    """Parse the visible-records query.

    Pure function. The marker size comes from size_multiplier when given,
    otherwise from the preferences blob, otherwise the default.

    Raises:
        QueryError: If zoom or any bound is missing or not a number
    """
    zoom = _required_float(params, "zoom")
    bounds = BoundingBox(
        min_latitude=_required_float(params, "south"),
        max_latitude=_required_float(params, "north"),
        min_longitude=_required_float(params, "west"),
        max_longitude=_required_float(params, "east"),
    )

    size_multiplier = _optional_float(params, "size_multiplier")
    if size_multiplier is None:
        size_multiplier = load_preferences(params.get("preferences")).marker_size_multiplier
    elif not MIN_SIZE_MULTIPLIER <= size_multiplier <= MAX_SIZE_MULTIPLIER:
        raise QueryError(
            f"size_multiplier must be between {MIN_SIZE_MULTIPLIER} and {MAX_SIZE_MULTIPLIER}"
        )

    return ViewportQuery(zoom=zoom, bounds=bounds, size_multiplier=size_multiplier)


def parse_stats_query(params: Mapping[str, str], now: datetime) -> StatsQuery:
    """Parse the statistics query: the feed query plus an optional area.

    Pure function. The area is given as south, west, north and east; either
    all four are present or none.

    Raises:
        QueryError: If any parameter is invalid or the area is partial
    """
    feed = parse_feed_query(params, now)

    edges = ("south", "west", "north", "east")
    given = [name for name in edges if params.get(name) not in (None, "")]
    if not given:
        return StatsQuery(feed=feed)
    if len(given) != len(edges):
        raise QueryError("area needs all of south, west, north and east")

    area = BoundingBox(
        min_latitude=_required_float(params, "south"),
        max_latitude=_required_float(params, "north"),
        min_longitude=_required_float(params, "west"),
        max_longitude=_required_float(params, "east"),
    )
    return StatsQuery(feed=feed, area=area)
