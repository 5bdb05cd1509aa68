"""Utility modules for cross-cutting concerns."""

from utils.civil_dates import (
    now_utc,
    today_local,
    tomorrow_of,
    parse_civil_date,
    parse_wall_time,
    long_date,
    month_day,
    week_bounds,
    in_same_month,
    local_date,
)
