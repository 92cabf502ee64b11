"""Date window presets - Pure functions.

Provider archives are queried by civil date, so every preset resolves to a
(start date, end date) pair. The end date is always today; hour-based
presets start on the date the window reaches back to.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo


DATE_FORMAT = "%Y-%m-%d"

# Calendar-day presets: days back from today
DAY_PRESETS: dict[str, int] = {
    "today": 0,
    "yesterday": 1,
    "3days": 3,
    "7days": 7,
    "14days": 14,
    "30days": 30,
}

# Rolling presets: hours back from now
HOUR_PRESETS: dict[str, int] = {
    "1hour": 1,
    "6hours": 6,
    "24hours": 24,
}

PRESETS = tuple(DAY_PRESETS) + tuple(HOUR_PRESETS)

# Civil dates are those of the region being monitored
DEFAULT_TIMEZONE = ZoneInfo("Europe/Istanbul")


@dataclass(frozen=True)
class DateWindow:
    """A provider query window.

    Attributes:
        start: Start date (YYYY-MM-DD)
        end: End date (YYYY-MM-DD), None for open-ended
    """
    start: str
    end: str | None = None


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the string is not a valid date in that format
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def is_valid_date(value: str | None) -> bool:
    """Check a YYYY-MM-DD string without raising."""
    if not isinstance(value, str) or len(value) != 10:
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def resolve_preset(
    preset: str,
    now: datetime,
    tz: tzinfo = DEFAULT_TIMEZONE,
) -> DateWindow:
    """Resolve a named preset to a DateWindow.

    Pure function.

    Args:
        preset: One of PRESETS
        now: Current time (timezone-aware)
        tz: Timezone whose civil dates are used

    Returns:
        DateWindow ending today

    Raises:
        ValueError: If the preset is unknown
    """
    local_now = now.astimezone(tz)
    today = local_now.date()

    if preset in DAY_PRESETS:
        start = today - timedelta(days=DAY_PRESETS[preset])
    elif preset in HOUR_PRESETS:
        start = (local_now - timedelta(hours=HOUR_PRESETS[preset])).date()
    else:
        raise ValueError(f"Unknown date range preset: {preset}")

    return DateWindow(
        start=start.strftime(DATE_FORMAT),
        end=today.strftime(DATE_FORMAT),
    )
