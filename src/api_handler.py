"""Web API Handler - Serves earthquake data to the map frontend.

This module provides HTTP endpoints for the web frontend.
Part of the imperative shell - handles HTTP I/O.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from flask import Request, Response

from src.core.markers import MarkerCache, build_markers
from src.core.query import (
    QueryError,
    parse_feed_query,
    parse_stats_query,
    parse_viewport_query,
)
from src.core.statistics import compute_statistics
from src.orchestrator import EarthquakeFeed
from src.shell.config_loader import load_config


logger = logging.getLogger(__name__)

# CORS allowed origins
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]

# One feed and one marker cache per process
_feed: EarthquakeFeed | None = None
_marker_cache: MarkerCache | None = None


def _get_feed() -> EarthquakeFeed:
    """Get or create the process-wide feed."""
    global _feed
    if _feed is None:
        config = load_config()
        _feed = EarthquakeFeed.from_config(config)
        if config.allowed_origins:
            ALLOWED_ORIGINS[:] = config.allowed_origins
    return _feed


def _get_marker_cache() -> MarkerCache:
    """Get or create the process-wide marker cache."""
    global _marker_cache
    if _marker_cache is None:
        _marker_cache = MarkerCache()
    return _marker_cache


def _cors_headers(origin: str | None) -> dict[str, str]:
    """Generate CORS headers for the response."""
    headers = {
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": "3600",
    }
    if origin and origin in ALLOWED_ORIGINS:
        headers["Access-Control-Allow-Origin"] = origin
    else:
        headers["Access-Control-Allow-Origin"] = ALLOWED_ORIGINS[0]
    return headers


def _json_response(
    data: dict[str, Any],
    status: int = 200,
    origin: str | None = None,
) -> Response:
    """Create a JSON response with CORS headers."""
    response = Response(
        json.dumps(data, default=str),
        status=status,
        mimetype="application/json",
    )
    for key, value in _cors_headers(origin).items():
        response.headers[key] = value
    return response


def _preflight(origin: str | None) -> Response:
    response = Response("", status=204)
    for key, value in _cors_headers(origin).items():
        response.headers[key] = value
    return response


def get_earthquakes(request: Request, feed: EarthquakeFeed | None = None) -> Response:
    """API endpoint: Aggregate earthquakes for a date window.

    Query params:
        date: Window start (YYYY-MM-DD), required unless range is given
        date_end: Window end (YYYY-MM-DD), optional
        range: Preset window (today, 7days, 24hours, ...)
        min_magnitude, max_magnitude, min_depth, max_depth: Optional filters
        sources: Comma-separated providers to keep
        sort: magnitude-desc, magnitude-asc, date-desc (default) or date-asc

    Returns:
        JSON with earthquakes, per-provider status, last_update and count
    """
    origin = request.headers.get("Origin")

    if request.method == "OPTIONS":
        return _preflight(origin)

    try:
        query = parse_feed_query(request.args, datetime.now(timezone.utc))
    except QueryError as e:
        return _json_response({"error": str(e)}, status=400, origin=origin)

    try:
        feed = feed or _get_feed()
        result = feed.load(query.window)
    except Exception:
        logger.exception("Failed to aggregate earthquakes")
        return _json_response(
            {"error": "Failed to fetch earthquake data"},
            status=500,
            origin=origin,
        )

    return _json_response(result.to_dict(query.select(result.records)), origin=origin)


def get_earthquake_stats(request: Request, feed: EarthquakeFeed | None = None) -> Response:
    """API endpoint: Statistics over the filtered feed.

    Accepts the same parameters as get_earthquakes, plus an optional
    selected area given as south, west, north and east.

    Returns:
        JSON with the statistics, per-provider status and last_update
    """
    origin = request.headers.get("Origin")

    if request.method == "OPTIONS":
        return _preflight(origin)

    try:
        query = parse_stats_query(request.args, datetime.now(timezone.utc))
    except QueryError as e:
        return _json_response({"error": str(e)}, status=400, origin=origin)

    try:
        feed = feed or _get_feed()
        result = feed.load(query.feed.window)
    except Exception:
        logger.exception("Failed to aggregate earthquakes for statistics")
        return _json_response(
            {"error": "Failed to fetch earthquake data"},
            status=500,
            origin=origin,
        )

    stats = compute_statistics(query.select(result.records))

    return _json_response(
        {
            "statistics": stats.to_dict(),
            "status": {name: state.value for name, state in result.status.items()},
            "last_update": result.fetched_at.isoformat(),
            "request_id": result.request_id,
        },
        origin=origin,
    )


def get_visible_earthquakes(
    request: Request,
    feed: EarthquakeFeed | None = None,
    cache: MarkerCache | None = None,
) -> Response:
    """API endpoint: Records and markers to render for a map viewport.

    Works on the last published aggregation; never fetches.

    Query params:
        zoom: Map zoom level
        south, west, north, east: Visible bounds
        size_multiplier: Marker scale factor (optional)
        preferences: Stored display preferences blob (optional)

    Returns:
        JSON with visible earthquakes and their markers
    """
    origin = request.headers.get("Origin")

    if request.method == "OPTIONS":
        return _preflight(origin)

    try:
        query = parse_viewport_query(request.args)
    except QueryError as e:
        return _json_response({"error": str(e)}, status=400, origin=origin)

    if feed is None:
        feed = _get_feed()
    if cache is None:
        cache = _get_marker_cache()

    visible = feed.visible(query.zoom, query.bounds)
    markers = build_markers(visible.records, query.zoom, query.size_multiplier, cache)

    return _json_response(
        {
            "earthquakes": [r.to_dict() for r in visible.records],
            "markers": markers,
            "zoom": query.zoom,
            "count": len(visible.records),
            "total": visible.total,
        },
        origin=origin,
    )
