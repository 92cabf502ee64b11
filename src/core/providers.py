"""Provider payload parsing - Pure functions.

Both upstream archives (Kandilli and AFAD) are served through the same
archive API and share one envelope:

    {"status": true, "result": [{"earthquake_id": ..., "mag": ..., ...}]}

They differ in which timestamp field is authoritative. All functions here
are pure apart from reading the clock and the random source when a record
needs the ingestion-time or synthetic-identity fallback; both are injectable.
"""

import logging
import secrets
import time
from datetime import datetime, timezone
from typing import Any, Callable
from zoneinfo import ZoneInfo

from src.core.earthquake import (
    CanonicalRecord,
    NativeIdentity,
    Source,
    SyntheticIdentity,
    build_record,
    coerce_depth,
    coerce_float,
)


logger = logging.getLogger(__name__)


# Provider timestamps without an offset are Turkey local time
PROVIDER_TIMEZONE = ZoneInfo("Europe/Istanbul")

# date_time layouts seen in the archive payloads
_DATE_TIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S.%f",
)

# Which timestamp field each provider prefers, in order
TIMESTAMP_FIELDS: dict[Source, tuple[str, ...]] = {
    Source.KANDILLI: ("date_time", "created_at"),
    Source.AFAD: ("created_at", "date_time"),
}


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def make_nonce() -> str:
    """Random suffix for synthetic identities."""
    return secrets.token_hex(4)


def is_representable(timestamp_ms: int) -> bool:
    """Check that an epoch-millisecond instant maps to a calendar date."""
    try:
        datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return False
    return True


def parse_epoch_seconds(value: Any) -> int | None:
    """Convert an epoch-seconds value to epoch milliseconds.

    Values outside the calendar range (e.g. 1e15) count as unparseable.
    """
    seconds = coerce_float(value)
    if seconds is None or seconds <= 0:
        return None
    timestamp = int(round(seconds * 1000))
    if not is_representable(timestamp):
        return None
    return timestamp


def parse_date_time(value: Any) -> int | None:
    """Parse a provider date_time string to epoch milliseconds.

    Strings carrying an offset are honored; naive strings are read as
    Turkey local time.
    """
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    parsed: datetime | None = None

    for fmt in _DATE_TIME_FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
            break
        except ValueError:
            continue

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=PROVIDER_TIMEZONE)

    try:
        timestamp = int(round(parsed.astimezone(timezone.utc).timestamp() * 1000))
    except (ValueError, OverflowError, OSError):
        return None

    if not is_representable(timestamp):
        return None
    return timestamp


def resolve_timestamp(
    item: dict[str, Any],
    source: Source,
    clock: Callable[[], int] = now_ms,
) -> int:
    """Pick the event instant from a payload item.

    Falls back to ingestion time when no field parses.
    """
    for field_name in TIMESTAMP_FIELDS[source]:
        if field_name == "created_at":
            timestamp = parse_epoch_seconds(item.get(field_name))
        else:
            timestamp = parse_date_time(item.get(field_name))
        if timestamp is not None:
            return timestamp
    return clock()


def parse_item(
    item: Any,
    source: Source,
    clock: Callable[[], int] = now_ms,
    nonce: Callable[[], str] = make_nonce,
) -> CanonicalRecord | None:
    """Parse a single archive item into a CanonicalRecord.

    Pure function: returns None for items missing coordinates or magnitude
    rather than emitting a partial record.

    Args:
        item: One element of the envelope's "result" array
        source: Provider the item came from
        clock: Ingestion-time source (epoch ms)
        nonce: Random suffix source for synthetic identities

    Returns:
        CanonicalRecord or None if the item is malformed
    """
    if not isinstance(item, dict):
        return None

    geojson = item.get("geojson")
    if not isinstance(geojson, dict):
        return None

    coords = geojson.get("coordinates")
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None

    # GeoJSON order is [longitude, latitude]
    longitude = coerce_float(coords[0])
    latitude = coerce_float(coords[1])
    magnitude = coerce_float(item.get("mag"))

    if latitude is None or longitude is None or magnitude is None:
        return None

    timestamp = resolve_timestamp(item, source, clock)

    native_key = item.get("earthquake_id")
    if native_key not in (None, ""):
        identity: NativeIdentity | SyntheticIdentity = NativeIdentity(
            source=source, key=str(native_key),
        )
    else:
        identity = SyntheticIdentity(source=source, timestamp=clock(), nonce=nonce())

    title = item.get("title")

    return build_record(
        identity=identity,
        timestamp_ms=timestamp,
        latitude=latitude,
        longitude=longitude,
        depth=coerce_depth(item.get("depth")),
        magnitude=magnitude,
        location=title if isinstance(title, str) else None,
    )


def is_successful_envelope(payload: Any) -> bool:
    """Check the archive success convention: truthy status and a result list."""
    return (
        isinstance(payload, dict)
        and bool(payload.get("status"))
        and isinstance(payload.get("result"), list)
    )


def parse_page(
    payload: Any,
    source: Source,
    clock: Callable[[], int] = now_ms,
    nonce: Callable[[], str] = make_nonce,
) -> list[CanonicalRecord]:
    """Parse one archive page into CanonicalRecords.

    Pure function: an unsuccessful envelope yields an empty page, malformed
    items are dropped individually. Input order is preserved.

    Args:
        payload: Decoded JSON body of one archive response
        source: Provider the page came from

    Returns:
        List of valid records
    """
    if not is_successful_envelope(payload):
        return []

    records = []
    for index, item in enumerate(payload["result"]):
        try:
            record = parse_item(item, source, clock, nonce)
        except (ValueError, OverflowError, OSError) as e:
            logger.debug("Dropping %s item %d: %s", source.value, index, e)
            continue
        if record is not None:
            records.append(record)

    return records
