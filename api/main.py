"""Earthquake API - FastAPI service for the earthquake map.

Serves the aggregated Kandilli + AFAD feed and the viewport-filtered
subset the map renders. The current window is refreshed in the
background on the configured interval.
"""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

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
from src.shell.refresh_scheduler import RefreshScheduler


log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


config = load_config()

_feed: EarthquakeFeed | None = None
_marker_cache = MarkerCache()


class EarthquakeOut(BaseModel):
    id: str
    date: str
    time: str
    latitude: float
    longitude: float
    depth: float
    magnitude: float
    location: str
    source: str
    timestamp: int


class FeedResponse(BaseModel):
    earthquakes: list[EarthquakeOut]
    status: dict[str, str]
    last_update: str
    count: int
    request_id: int


class BucketOut(BaseModel):
    label: str
    count: int


class DailyActivityOut(BaseModel):
    date: str
    count: int
    avg_magnitude: float
    avg_depth: float


class StatisticsOut(BaseModel):
    count: int
    min_magnitude: float
    max_magnitude: float
    avg_magnitude: float
    min_depth: float
    max_depth: float
    avg_depth: float
    magnitude_distribution: list[BucketOut]
    source_distribution: list[BucketOut]
    depth_ranges: list[BucketOut]
    daily: list[DailyActivityOut]
    hourly: list[BucketOut]
    top_locations: list[BucketOut]
    avg_interval_hours: float
    risk_score: float
    activity_level: float
    strong_count: int
    shallow_count: int


class StatsResponse(BaseModel):
    statistics: StatisticsOut
    status: dict[str, str]
    last_update: str
    request_id: int


class MarkerOut(BaseModel):
    id: str
    latitude: float
    longitude: float
    magnitude: float
    color: str
    color_darker: str
    size: int


class VisibleResponse(BaseModel):
    earthquakes: list[EarthquakeOut]
    markers: list[MarkerOut]
    zoom: float
    count: int
    total: int


def get_feed() -> EarthquakeFeed:
    """Get or create the service-wide feed."""
    global _feed
    if _feed is None:
        _feed = EarthquakeFeed.from_config(config)
    return _feed


def get_marker_cache() -> MarkerCache:
    """Marker cache shared by every request of this process."""
    return _marker_cache


@asynccontextmanager
async def lifespan(_: FastAPI):
    scheduler = None
    if os.environ.get("REFRESH_ENABLED", "true").lower() == "true":
        scheduler = RefreshScheduler(get_feed().refresh, config.refresh_interval_seconds)
        scheduler.start()
    yield
    if scheduler is not None:
        scheduler.stop()


app = FastAPI(
    title="Earthquake API",
    description="Aggregated Kandilli and AFAD earthquake feed for the map frontend",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


def _drop_empty(params: dict[str, str | None]) -> dict[str, str]:
    return {k: v for k, v in params.items() if v is not None}


def _bad_request(error: QueryError) -> JSONResponse:
    """Same 400 body as the Cloud Functions surface."""
    return JSONResponse({"error": str(error)}, status_code=400)


@app.get("/api/earthquakes", response_model=FeedResponse)
def get_earthquakes(
    date: str | None = Query(default=None, description="Window start, YYYY-MM-DD"),
    date_end: str | None = Query(default=None, description="Window end, YYYY-MM-DD"),
    range_preset: str | None = Query(default=None, alias="range"),
    min_magnitude: str | None = Query(default=None),
    max_magnitude: str | None = Query(default=None),
    min_depth: str | None = Query(default=None),
    max_depth: str | None = Query(default=None),
    sources: str | None = Query(default=None, description="Comma-separated providers"),
    sort: str | None = Query(default=None, description="magnitude-desc, magnitude-asc, date-desc or date-asc"),
    feed: EarthquakeFeed = Depends(get_feed),
):
    """Aggregate earthquakes from every provider for a date window."""
    params = _drop_empty({
        "date": date,
        "date_end": date_end,
        "range": range_preset,
        "min_magnitude": min_magnitude,
        "max_magnitude": max_magnitude,
        "min_depth": min_depth,
        "max_depth": max_depth,
        "sources": sources,
        "sort": sort,
    })

    try:
        query = parse_feed_query(params, datetime.now(timezone.utc))
    except QueryError as e:
        return _bad_request(e)

    result = feed.load(query.window)
    return result.to_dict(query.select(result.records))


@app.get("/api/earthquakes/stats", response_model=StatsResponse)
def get_earthquake_stats(
    date: str | None = Query(default=None, description="Window start, YYYY-MM-DD"),
    date_end: str | None = Query(default=None, description="Window end, YYYY-MM-DD"),
    range_preset: str | None = Query(default=None, alias="range"),
    min_magnitude: str | None = Query(default=None),
    max_magnitude: str | None = Query(default=None),
    min_depth: str | None = Query(default=None),
    max_depth: str | None = Query(default=None),
    sources: str | None = Query(default=None, description="Comma-separated providers"),
    south: str | None = Query(default=None, description="Selected area, optional"),
    west: str | None = Query(default=None),
    north: str | None = Query(default=None),
    east: str | None = Query(default=None),
    feed: EarthquakeFeed = Depends(get_feed),
):
    """Statistics over the filtered feed, optionally for a selected area."""
    params = _drop_empty({
        "date": date,
        "date_end": date_end,
        "range": range_preset,
        "min_magnitude": min_magnitude,
        "max_magnitude": max_magnitude,
        "min_depth": min_depth,
        "max_depth": max_depth,
        "sources": sources,
        "south": south,
        "west": west,
        "north": north,
        "east": east,
    })

    try:
        query = parse_stats_query(params, datetime.now(timezone.utc))
    except QueryError as e:
        return _bad_request(e)

    result = feed.load(query.feed.window)
    return {
        "statistics": compute_statistics(query.select(result.records)).to_dict(),
        "status": {name: state.value for name, state in result.status.items()},
        "last_update": result.fetched_at.isoformat(),
        "request_id": result.request_id,
    }


@app.get("/api/earthquakes/visible", response_model=VisibleResponse)
def get_visible_earthquakes(
    zoom: str | None = Query(default=None),
    south: str | None = Query(default=None),
    west: str | None = Query(default=None),
    north: str | None = Query(default=None),
    east: str | None = Query(default=None),
    size_multiplier: str | None = Query(default=None),
    preferences: str | None = Query(default=None, description="Stored display preferences blob"),
    feed: EarthquakeFeed = Depends(get_feed),
    cache: MarkerCache = Depends(get_marker_cache),
):
    """Records and markers to render for the current map viewport."""
    params = _drop_empty({
        "zoom": zoom,
        "south": south,
        "west": west,
        "north": north,
        "east": east,
        "size_multiplier": size_multiplier,
        "preferences": preferences,
    })

    try:
        query = parse_viewport_query(params)
    except QueryError as e:
        return _bad_request(e)

    visible = feed.visible(query.zoom, query.bounds)

    return {
        "earthquakes": [r.to_dict() for r in visible.records],
        "markers": build_markers(visible.records, query.zoom, query.size_multiplier, cache),
        "zoom": query.zoom,
        "count": len(visible.records),
        "total": visible.total,
    }


@app.get("/health")
async def health_check():
    """Health check endpoint for Cloud Run."""
    return {"status": "healthy"}
