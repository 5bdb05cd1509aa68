"""
Civil-calendar date handling.

Scheduled dates are plain calendar dates with no timezone attached. They are
compared against the operator's local calendar as-is; converting them through
a timezone shifts jobs onto the wrong day. Record timestamps (created_date)
are the only timezone-aware values. They are stored in UTC and converted to
local time before any calendar comparison.
"""

import re
from datetime import date, datetime, timedelta, timezone, tzinfo

_WALL_TIME = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def now_utc() -> datetime:
    """
    Current time in UTC.

    Used for record timestamps only, never for calendar comparisons.
    """
    return datetime.now(timezone.utc)


def today_local() -> date:
    """Today's date in the operator's local civil calendar."""
    return date.today()


def tomorrow_of(day: date) -> date:
    return day + timedelta(days=1)


def parse_civil_date(value: date | str) -> date:
    """
    Parse a YYYY-MM-DD string (or pass a date through).

    Raises ValueError on anything else, including full ISO timestamps.
    """
    if isinstance(value, datetime):
        raise ValueError(f"Expected a calendar date, got a timestamp: {value.isoformat()}")
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not re.fullmatch(r"\d{4}-\d{2}-\d{2}", value):
        raise ValueError(f"Malformed date '{value}'. Expected YYYY-MM-DD")
    return date.fromisoformat(value)


def parse_wall_time(value: str) -> str:
    """
    Validate an HH:MM (24-hour) wall-clock string and return it unchanged.

    Raises ValueError if malformed.
    """
    if not isinstance(value, str) or not _WALL_TIME.match(value):
        raise ValueError(f"Malformed time '{value}'. Expected HH:MM (24-hour)")
    return value


def long_date(day: date) -> str:
    """'Saturday, April 12', as used in confirmation messages."""
    return f"{day:%A}, {day:%B} {day.day}"


def month_day(day: date) -> str:
    """'April 12', as used in reschedule messages."""
    return f"{day:%B} {day.day}"


def week_bounds(day: date) -> tuple[date, date]:
    """Sunday-to-Saturday week containing day."""
    start = day - timedelta(days=(day.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def local_date(moment: datetime | date, tz: tzinfo | None = None) -> date:
    """
    Calendar date of moment as the operator sees it.

    Aware timestamps are converted to tz (the process's local zone when
    omitted) first, so 02:00 UTC on May 1 is still April 30 in Denver.
    Plain dates and naive datetimes are read as-is.
    """
    if isinstance(moment, datetime):
        if moment.tzinfo is not None:
            moment = moment.astimezone(tz)
        return moment.date()
    return moment


def in_same_month(moment: datetime | date, day: date, tz: tzinfo | None = None) -> bool:
    """Whether moment falls in day's calendar month on the local calendar."""
    moment = local_date(moment, tz)
    return moment.year == day.year and moment.month == day.month
