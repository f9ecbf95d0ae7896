"""
Date and time utilities.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional, Union
import pytz


class LocalClock:
    """Timezone-aware clock for the clinic's local time."""

    def __init__(self, timezone: str = "Asia/Kolkata"):
        self.tz = pytz.timezone(timezone)

    def now(self) -> datetime:
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def localize(self, naive: datetime) -> datetime:
        """Attach the clinic timezone to a naive local datetime."""
        return self.tz.localize(naive)

    def combine(self, day: Union[str, date], at: Union[str, time]) -> datetime:
        """Build an aware datetime from stored date and time values."""
        if isinstance(day, str):
            day = parse_date(day)
        if isinstance(at, str):
            at = parse_time(at)
        return self.localize(datetime.combine(day, at))


def parse_date(value: str) -> date:
    return datetime.strptime(value.strip(), "%Y-%m-%d").date()


def parse_time(value: str) -> time:
    """Parse ``HH:MM`` or ``HH:MM:SS``."""
    value = value.strip()
    for fmt in ("%H:%M:%S", "%H:%M"):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time: {value!r}")


def resolve_date(token: Optional[str], today: date) -> str:
    """
    Resolve a requested date token to ``YYYY-MM-DD``.

    ``None`` and ``"today"`` map to ``today``, ``"tomorrow"`` to the next day.
    Anything else is assumed to already be a canonical date and is returned unchanged.
    """
    if not token or token.strip().lower() == "today":
        return today.isoformat()
    if token.strip().lower() == "tomorrow":
        return (today + timedelta(days=1)).isoformat()
    return token


def format_time_12h(value: str) -> str:
    """Render ``HH:MM[:SS]`` as ``h:MM AM/PM``."""
    try:
        parsed = parse_time(value)
    except ValueError:
        return value
    hour12 = parsed.hour % 12 or 12
    suffix = "PM" if parsed.hour >= 12 else "AM"
    return f"{hour12}:{parsed.minute:02d} {suffix}"


def format_display_date(value: str, today: date) -> str:
    """Render a date as Today, Tomorrow, or e.g. ``Mon, Oct 20``."""
    try:
        parsed = parse_date(value)
    except ValueError:
        return value
    if parsed == today:
        return "Today"
    if parsed == today + timedelta(days=1):
        return "Tomorrow"
    return f"{parsed:%a}, {parsed:%b} {parsed.day}"


def format_record_date(value: str) -> str:
    """Render an ISO timestamp as e.g. ``20 Oct 2026``."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    return f"{parsed.day} {parsed:%b %Y}"


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed
