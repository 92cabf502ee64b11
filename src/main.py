"""Cloud Function Entry Point.

This module provides the entry points for Google Cloud Functions.
It's a thin wrapper that configures logging and delegates to the
API handlers and the feed.
"""

import json
import logging
import os
from typing import Any

import functions_framework
from flask import Request, Response

from src.api_handler import (
    _get_feed,
    get_earthquake_stats,
    get_earthquakes,
    get_visible_earthquakes,
)
from src.core.earthquake import LoadingStatus


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@functions_framework.http
def earthquakes(request: Request) -> Response:
    """HTTP Cloud Function: aggregated earthquakes for a date window."""
    return get_earthquakes(request)


@functions_framework.http
def earthquake_stats(request: Request) -> Response:
    """HTTP Cloud Function: statistics over the filtered feed."""
    return get_earthquake_stats(request)


@functions_framework.http
def visible_earthquakes(request: Request) -> Response:
    """HTTP Cloud Function: records and markers for a map viewport."""
    return get_visible_earthquakes(request)


@functions_framework.cloud_event
def earthquake_refresh_pubsub(cloud_event: Any) -> None:
    """Pub/Sub Cloud Function: refresh the current window.

    Triggered by Cloud Scheduler on the refresh interval.

    Args:
        cloud_event: CloudEvent from Pub/Sub
    """
    logger.info("Starting earthquake refresh (Pub/Sub trigger)")

    result = _get_feed().refresh()

    for name, state in result.status.items():
        if state == LoadingStatus.ERROR:
            logger.error("Provider %s failed during refresh", name)


# For local testing
if __name__ == "__main__":
    import sys
    from datetime import datetime, timezone

    from src.core.date_range import resolve_preset

    print("Running earthquake aggregation locally...")

    preset = sys.argv[1] if len(sys.argv) > 1 else "today"
    window = resolve_preset(preset, datetime.now(timezone.utc))
    result = _get_feed().load(window)

    print(f"\n{result.summary}")
    print(json.dumps(result.to_dict(result.records[:5]), indent=2, ensure_ascii=False))
