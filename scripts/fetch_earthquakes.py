#!/usr/bin/env python3
"""Fetch the aggregated earthquake feed from the command line.

Runs one aggregation cycle against the live provider archives and prints
the result, optionally narrowed by the map viewport filter.

Usage:
    # Today's events
    python scripts/fetch_earthquakes.py

    # A fixed window, only M4+
    python scripts/fetch_earthquakes.py --date 2023-02-06 --date-end 2023-02-07 --min-magnitude 4

    # What the map would render at zoom 7 over eastern Anatolia
    python scripts/fetch_earthquakes.py --range 24hours --zoom 7 --bounds 36,40,35,42

    # Strongest first, and the statistics panel for the last week
    python scripts/fetch_earthquakes.py --range 7days --sort magnitude-desc
    python scripts/fetch_earthquakes.py --range 7days --stats

    # Check the configuration without fetching
    python scripts/fetch_earthquakes.py --validate

Environment:
    CONFIG_PATH: Path to config file (default: config/config.yaml)
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from src.core.config import validate_config
from src.core.date_range import PRESETS, DateWindow, resolve_preset
from src.core.earthquake import RecordFilter, SortOrder, sort_records
from src.core.geo import BoundingBox
from src.core.query import QueryError, parse_sources
from src.core.statistics import compute_statistics
from src.orchestrator import EarthquakeFeed
from src.shell.config_loader import load_config

logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
logger = logging.getLogger(__name__)


def parse_bounds(value: str) -> BoundingBox:
    """Parse "south,north,west,east" into a BoundingBox."""
    parts = [float(p) for p in value.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError("bounds needs 4 values: south,north,west,east")
    return BoundingBox(
        min_latitude=parts[0],
        max_latitude=parts[1],
        min_longitude=parts[2],
        max_longitude=parts[3],
    )


def main():
    parser = argparse.ArgumentParser(
        description="Fetch aggregated Kandilli and AFAD earthquakes",
    )
    parser.add_argument(
        "--date",
        type=str,
        default=None,
        help="Window start, YYYY-MM-DD (default: today's preset)",
    )
    parser.add_argument(
        "--date-end",
        type=str,
        default=None,
        help="Window end, YYYY-MM-DD (default: open-ended)",
    )
    parser.add_argument(
        "--range",
        choices=PRESETS,
        default="today",
        help="Preset window, used when --date is not given (default: today)",
    )
    parser.add_argument(
        "--min-magnitude",
        type=float,
        default=None,
        help="Only print events at or above this magnitude",
    )
    parser.add_argument(
        "--sources",
        type=str,
        default=None,
        help="Comma-separated providers to print (default: all)",
    )
    parser.add_argument(
        "--sort",
        choices=[o.value for o in SortOrder],
        default=SortOrder.DATE_DESC.value,
        help="Output ordering (default: date-desc)",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print statistics for the selected records instead of the records",
    )
    parser.add_argument(
        "--zoom",
        type=float,
        default=None,
        help="Apply the map density filter at this zoom level",
    )
    parser.add_argument(
        "--bounds",
        type=parse_bounds,
        default=None,
        help="Visible map bounds for --zoom: south,north,west,east (default: admission box)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the full JSON response instead of a table",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the configuration and exit",
    )
    args = parser.parse_args()

    config = load_config()

    validation = validate_config(config)
    for error in validation.errors:
        log = logger.error if error.severity == "error" else logger.warning
        log("%s: %s", error.field, error.message)
    if args.validate:
        logger.info("Configuration is %s", "valid" if validation.valid else "invalid")
        return 0 if validation.valid else 1
    if not validation.valid:
        return 1

    try:
        sources = parse_sources(args.sources)
    except QueryError as e:
        logger.error("%s", e)
        return 1

    if args.date:
        window = DateWindow(start=args.date, end=args.date_end)
    else:
        window = resolve_preset(args.range, datetime.now(timezone.utc))

    feed = EarthquakeFeed.from_config(config)
    result = feed.load(window)
    logger.info("%s", result.summary)

    records = result.records
    if args.zoom is not None:
        visible = feed.visible(args.zoom, args.bounds or config.admission_bounds)
        logger.info("Density filter at zoom %.1f: %d of %d", args.zoom, len(visible.records), visible.total)
        records = visible.records

    records = RecordFilter(min_magnitude=args.min_magnitude, sources=sources).apply(records)
    records = sort_records(records, SortOrder(args.sort))

    if args.stats:
        print(json.dumps(compute_statistics(records).to_dict(), indent=2, ensure_ascii=False))
    elif args.json:
        print(json.dumps(result.to_dict(records), indent=2, ensure_ascii=False))
    else:
        for record in records:
            print(
                f"{record.date} {record.time}  M{record.magnitude:.1f}  "
                f"{record.depth:5.1f} km  {record.source.value:<8}  {record.location}"
            )

    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
