# File: utils/dt_utils.py
"""Date and time utilities for QuestChat.

Pure Python date/time functions. The engine is always told "now"; nothing in
this module reads the wall clock except dt_now_utc(), which only the host
convenience paths use.

Functions:
    - dt_now_utc: Current UTC datetime (host convenience only)
    - as_utc / as_local: Timezone conversion with naive-input handling
    - start_of_local_day: Local midnight for a datetime
    - local_date / local_date_iso: Calendar day a datetime falls on
    - at_local_hour: Aware datetime for a local day and hour
    - dt_parse_date: Parse ISO date strings
    - dt_parse: Normalize datetime inputs to aware datetimes
    - dt_format_iso: Serialize an aware datetime
    - start_of_week: Locale week start for a date
    - week_dates: Calendar days of the week containing a date
    - retention_cutoff: Oldest day kept by counter pruning
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
from zoneinfo import ZoneInfo

# Third-party date utilities
from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

# Module-level logger
_LOGGER = logging.getLogger(__name__)

# ==============================================================================
# Constants (local copies to avoid circular imports)
# ==============================================================================

DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Indexed by Python weekday number (Monday = 0)
_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

DAYS_PER_WEEK = 7


# ==============================================================================
# Current Date/Time
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current datetime in UTC (timezone-aware).

    Returns:
        Current UTC datetime.
    """
    return datetime.now(UTC)


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime) -> datetime:
    """Convert a datetime to UTC timezone.

    Args:
        dt_obj: Datetime object; naive values are assumed to be UTC

    Returns:
        Datetime in UTC timezone
    """
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert a datetime to local timezone.

    Args:
        dt_obj: Datetime object; naive values are assumed to be UTC
        tz: Profile timezone. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime in local timezone
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        # Assume it's in UTC if naive
        dt_obj = dt_obj.replace(tzinfo=UTC)
    return dt_obj.astimezone(tz_info)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Get the start of day (00:00:00) for a datetime in local timezone.

    Args:
        dt_obj: Datetime object (can be in any timezone)
        tz: Profile timezone. Uses DEFAULT_TIME_ZONE if not provided.

    Returns:
        Datetime at 00:00:00 in local timezone (timezone-aware)
    """
    local_dt = as_local(dt_obj, tz)
    return local_dt.replace(hour=0, minute=0, second=0, microsecond=0)


def local_date(dt_obj: datetime, tz: ZoneInfo | None = None) -> date:
    """Return the calendar day a datetime falls on in the profile timezone."""
    return as_local(dt_obj, tz).date()


def local_date_iso(dt_obj: datetime, tz: ZoneInfo | None = None) -> str:
    """Return local_date() as an ISO string (YYYY-MM-DD)."""
    return local_date(dt_obj, tz).isoformat()


def at_local_hour(day: date, hour: int, tz: ZoneInfo | None = None) -> datetime:
    """Build the aware datetime for `hour`:00 local time on `day`.

    ZoneInfo resolves the UTC offset for that wall time, so DST transitions
    produce the offset in force on that date.

    Example:
        at_local_hour(date(2026, 3, 2), 9, ZoneInfo("America/New_York"))
        → datetime(2026, 3, 2, 9, 0, tzinfo=ZoneInfo('America/New_York'))
    """
    tz_info = tz or DEFAULT_TIME_ZONE
    return datetime.combine(day, time(hour=hour), tzinfo=tz_info)


# ==============================================================================
# Date/Time Parsing
# ==============================================================================


def dt_parse_date(date_str: str | None) -> date | None:
    """Parse an ISO date string (YYYY-MM-DD) into a date object.

    Args:
        date_str: Date string, or None

    Returns:
        date object, or None if the input is empty or malformed.

    Example:
        "2026-01-18" → datetime.date(2026, 1, 18)
    """
    if not date_str:
        return None
    try:
        return date.fromisoformat(date_str)
    except ValueError:
        _LOGGER.debug("Unparseable date string: %s", date_str)
        return None


def dt_parse(
    dt_input: str | date | datetime | None,
    default_tzinfo: ZoneInfo | None = None,
) -> datetime | None:
    """Normalize a datetime input into a timezone-aware datetime.

    Accepts ISO datetime strings, ISO date strings, date and datetime
    objects. Naive results are assumed to be in `default_tzinfo`.

    Args:
        dt_input: String, date, datetime or None
        default_tzinfo: Timezone applied to naive values (default UTC)

    Returns:
        Aware datetime, or None when the input is empty or unparseable.

    Examples:
        >>> dt_parse("2026-01-18T12:30:00+00:00")
        datetime.datetime(2026, 1, 18, 12, 30, tzinfo=datetime.timezone.utc)

        >>> dt_parse("2026-01-18", ZoneInfo("Europe/Berlin"))
        datetime.datetime(2026, 1, 18, 0, 0, tzinfo=ZoneInfo('Europe/Berlin'))
    """
    if not dt_input:
        return None

    tz_info = default_tzinfo or DEFAULT_TIME_ZONE
    result: datetime | None = None

    if isinstance(dt_input, str):
        try:
            result = datetime.fromisoformat(dt_input)
        except ValueError:
            # If datetime parsing fails, try to parse as a date
            parsed_date = dt_parse_date(dt_input)
            if parsed_date is None:
                return None
            result = datetime.combine(parsed_date, datetime.min.time())

    elif isinstance(dt_input, datetime):
        result = dt_input

    elif isinstance(dt_input, date):
        result = datetime.combine(dt_input, datetime.min.time())

    else:
        return None

    if result.tzinfo is None:
        result = result.replace(tzinfo=tz_info)
    return result


def dt_format_iso(dt_obj: datetime) -> str:
    """Serialize a datetime for snapshots (UTC, ISO 8601)."""
    return as_utc(dt_obj).isoformat()


# ==============================================================================
# Locale Weeks & Retention Windows
# ==============================================================================


def start_of_week(day: date, week_start: int = 0) -> date:
    """Return the first day of the locale week containing `day`.

    Args:
        day: Any calendar day
        week_start: Python weekday number the week begins on (Monday = 0)

    Returns:
        The most recent `week_start` weekday on or before `day`.

    Examples:
        start_of_week(date(2026, 1, 21), 0) → date(2026, 1, 19)  # Monday
        start_of_week(date(2026, 1, 21), 6) → date(2026, 1, 18)  # Sunday
    """
    return day + relativedelta(weekday=_WEEKDAYS[week_start % DAYS_PER_WEEK](-1))


def week_dates(
    day: date, week_start: int = 0, *, through_day: bool = True
) -> list[date]:
    """Return the calendar days of the week containing `day`.

    Args:
        day: Any calendar day
        week_start: Python weekday number the week begins on
        through_day: Stop at `day` instead of listing the full week

    Returns:
        Ordered list of dates starting at start_of_week().
    """
    first = start_of_week(day, week_start)
    dates = [first + timedelta(days=offset) for offset in range(DAYS_PER_WEEK)]
    if through_day:
        return [d for d in dates if d <= day]
    return dates


def retention_cutoff(day: date, retention_days: int) -> date:
    """Return the oldest day kept when retaining `retention_days` days.

    `day` itself counts as the first retained day.
    """
    return day - timedelta(days=max(retention_days, 1) - 1)
