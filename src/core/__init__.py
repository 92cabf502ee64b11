"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Canonical record model and provider payload parsing
- Geographic admission
- Spatial-temporal deduplication
- Pagination over an injected fetch capability
- Viewport density filtering and marker styling
- Display preferences and query parsing
- Record sorting and statistics

All functions here are deterministic and have no I/O.
"""

from src.core.earthquake import CanonicalRecord, LoadingStatus, SortOrder, Source, sort_records
from src.core.providers import parse_page
from src.core.geo import BoundingBox, TURKEY_BOUNDS, filter_by_bounds
from src.core.dedup import DedupGranularity, dedup_key, remove_duplicates
from src.core.pagination import fetch_all_pages
from src.core.viewport import DensityPolicy, filter_for_display
from src.core.markers import MarkerCache, build_markers
from src.core.statistics import RecordStatistics, compute_statistics

__all__ = [
    # Records
    "CanonicalRecord",
    "LoadingStatus",
    "SortOrder",
    "Source",
    "parse_page",
    "sort_records",
    # Geo
    "BoundingBox",
    "TURKEY_BOUNDS",
    "filter_by_bounds",
    # Dedup
    "DedupGranularity",
    "dedup_key",
    "remove_duplicates",
    # Pagination
    "fetch_all_pages",
    # Viewport
    "DensityPolicy",
    "filter_for_display",
    # Markers
    "MarkerCache",
    "build_markers",
    # Statistics
    "RecordStatistics",
    "compute_statistics",
]
