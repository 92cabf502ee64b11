"""Cloud Function Entry Point - Root Module.

This is the root-level entry point for Google Cloud Functions.
It imports from the src package.
"""

from src.main import (
    earthquake_refresh_pubsub,
    earthquake_stats,
    earthquakes,
    visible_earthquakes,
)

__all__ = [
    "earthquakes",
    "earthquake_stats",
    "visible_earthquakes",
    "earthquake_refresh_pubsub",
]
