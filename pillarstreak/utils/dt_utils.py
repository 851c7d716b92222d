# File: utils/dt_utils.py
"""Date and time utilities for PillarStreak.

Everything in PillarStreak that asks "which day is it?" goes through here.
Days are LOCAL calendar days, never rolling 24 hour windows. Functions that
decide a day take an optional `tz`; without one they use DEFAULT_TIME_ZONE
(UTC unless set_default_timezone was called). Each PillarManager passes its
own zone, so managers in different timezones can share a process.

Nothing here raises for bad input: an unparseable timestamp comes back as
None (or False for predicates) and the caller decides what that means.

Functions:
    - set_default_timezone / get_default_timezone: Local calendar timezone
    - dt_now_utc / dt_today_local / dt_today_iso: The clock
    - as_utc / as_local / start_of_local_day: Timezone conversion
    - dt_parse / dt_to_utc / dt_local_date: Input normalization
    - is_same_calendar_day / calendar_days_between: Calendar-day comparison
    - days_between: Ceiling day difference (millisecond based)
    - hours_until_local_midnight: Time left in the local day
    - dt_add_days: Calendar-safe day offsets
"""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
import logging
import math
from zoneinfo import ZoneInfo

from dateutil.relativedelta import relativedelta

_LOGGER = logging.getLogger(__name__)

# Timezone used for naive timestamps and for deciding calendar days
DEFAULT_TIME_ZONE: ZoneInfo = ZoneInfo("UTC")

# Non-ISO date layouts accepted from older stored data
_FALLBACK_DATE_FORMATS = ("%m/%d/%Y", "%Y/%m/%d")

_ONE_DAY = timedelta(days=1)

TimestampInput = str | date | datetime | None


def set_default_timezone(tz: ZoneInfo) -> None:
    """Set the timezone that defines local calendar days."""
    global DEFAULT_TIME_ZONE  # noqa: PLW0603
    DEFAULT_TIME_ZONE = tz


def get_default_timezone() -> ZoneInfo:
    """Return the timezone that defines local calendar days."""
    return DEFAULT_TIME_ZONE


# ==============================================================================
# Clock
# ==============================================================================


def dt_now_utc() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(UTC)


def dt_today_local(tz: ZoneInfo | None = None) -> date:
    """Return today's local calendar date."""
    return datetime.now(tz or DEFAULT_TIME_ZONE).date()


def dt_today_iso(tz: ZoneInfo | None = None) -> str:
    """Return today's local calendar date as YYYY-MM-DD."""
    return dt_today_local(tz).isoformat()


# ==============================================================================
# Timezone Conversion
# ==============================================================================


def as_utc(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert to UTC. Naive datetimes are read as local time."""
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=tz or DEFAULT_TIME_ZONE)
    return dt_obj.astimezone(UTC)


def as_local(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Convert to local time. Naive datetimes are read as local time."""
    zone = tz or DEFAULT_TIME_ZONE
    if dt_obj.tzinfo is None:
        dt_obj = dt_obj.replace(tzinfo=zone)
    return dt_obj.astimezone(zone)


def start_of_local_day(dt_obj: datetime, tz: ZoneInfo | None = None) -> datetime:
    """Return local midnight at the start of the day containing dt_obj."""
    return datetime.combine(
        as_local(dt_obj, tz).date(), time.min, tzinfo=tz or DEFAULT_TIME_ZONE
    )


# ==============================================================================
# Parsing
# ==============================================================================


def _parse_string(text: str) -> datetime | None:
    text = text.strip()
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass

    for fmt in _FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    _LOGGER.debug("Unparseable timestamp string: %r", text)
    return None


def dt_parse(value: TimestampInput, tz: ZoneInfo | None = None) -> datetime | None:
    """Turn a timestamp of any accepted shape into an aware datetime.

    Accepts ISO 8601 strings (with or without time/offset), "MM/DD/YYYY",
    "YYYY/MM/DD", datetimes and dates. Naive values are read in `tz`
    (default: DEFAULT_TIME_ZONE); dates become local midnight.

    Returns:
        Aware datetime, or None for empty, unparseable or unsupported input.

    Example:
        >>> dt_parse("2026-01-18T08:00:00Z")
        datetime.datetime(2026, 1, 18, 8, 0, tzinfo=datetime.timezone.utc)
    """
    if not value:
        return None

    if isinstance(value, str):
        parsed = _parse_string(value)
        if parsed is None:
            return None
    elif isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz or DEFAULT_TIME_ZONE)
    return parsed


def dt_to_utc(value: TimestampInput, tz: ZoneInfo | None = None) -> datetime | None:
    """Parse any timestamp input into an aware UTC datetime."""
    parsed = dt_parse(value, tz)
    return as_utc(parsed) if parsed else None


def dt_local_date(value: TimestampInput, tz: ZoneInfo | None = None) -> date | None:
    """Return the local calendar date of a timestamp, or None if unparseable.

    Plain `date` inputs are already calendar days and are returned unchanged.
    """
    if isinstance(value, date) and not isinstance(value, datetime):
        return value
    parsed = dt_parse(value, tz)
    return as_local(parsed, tz).date() if parsed else None


# ==============================================================================
# Calendar Arithmetic
# ==============================================================================


def is_same_calendar_day(
    first: TimestampInput, second: TimestampInput, tz: ZoneInfo | None = None
) -> bool:
    """Return True when both timestamps fall on the same local calendar day.

    23:59 and 00:01 the next morning are different days. Unparseable input on
    either side returns False.
    """
    first_day = dt_local_date(first, tz)
    return first_day is not None and first_day == dt_local_date(second, tz)


def days_between(
    first: TimestampInput, second: TimestampInput, tz: ZoneInfo | None = None
) -> int | None:
    """Return ceil(|first - second| / 24h), measured in milliseconds.

    Instant based: 25 hours apart is 2 days even across a single midnight.
    Use calendar_days_between for calendar-day gaps.

    Examples:
        "2026-01-10T12:00Z" vs "2026-01-10T12:00Z" → 0
        "2026-01-10T12:00Z" vs "2026-01-11T11:00Z" → 1
        "2026-01-10T12:00Z" vs "2026-01-11T12:00:00.001Z" → 2
    """
    first_utc = dt_to_utc(first, tz)
    second_utc = dt_to_utc(second, tz)
    if first_utc is None or second_utc is None:
        return None
    elapsed_ms = abs(second_utc - first_utc) // timedelta(milliseconds=1)
    return math.ceil(elapsed_ms / (_ONE_DAY // timedelta(milliseconds=1)))


def calendar_days_between(
    first: TimestampInput, second: TimestampInput, tz: ZoneInfo | None = None
) -> int | None:
    """Return how many local calendar days separate two timestamps.

    Examples:
        "2026-01-10T23:59" vs "2026-01-11T00:01" → 1
        "2026-01-10T00:00" vs "2026-01-10T23:00" → 0
    """
    first_day = dt_local_date(first, tz)
    second_day = dt_local_date(second, tz)
    if first_day is None or second_day is None:
        return None
    return abs((second_day - first_day).days)


def hours_until_local_midnight(
    now: datetime | None = None, tz: ZoneInfo | None = None
) -> float:
    """Return the hours left before the next local midnight.

    Measured in real elapsed time, so DST transition days are 23 or 25 hours.
    """
    current = as_utc(now or dt_now_utc(), tz)
    next_midnight = start_of_local_day(current, tz) + relativedelta(days=1)
    return (as_utc(next_midnight) - current) / timedelta(hours=1)


def dt_add_days(reference: date | datetime, days: int) -> date | datetime:
    """Shift by whole calendar days, keeping the input's type and wall time."""
    return reference + relativedelta(days=days)
