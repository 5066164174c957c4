"""
Display formatting for card values: numbers, absolute timestamps, and
relative labels ("Today", "Last week") for time-series endpoints.
"""

import numbers
from datetime import date, datetime, tzinfo
from typing import Any, Optional, Sequence, Tuple, Union

import pandas as pd

from .data_parser import Column

Timezone = Union[str, tzinfo, None]

# Units whose values are positions within a cycle (3rd hour of day, 12th week
# of year...) rather than absolute dates; shown verbatim
RAW_VALUE_UNITS = frozenset({
    'year', 'hour-of-day', 'day-of-week', 'week-of-year', 'month-of-year',
})

# unit -> (this interval label, previous interval label)
RELATIVE_LABELS = {
    'day': ("Today", "Yesterday"),
    'week': ("This week", "Last week"),
    'month': ("This month", "Last month"),
    'quarter': ("This quarter", "Last quarter"),
    'year': ("This year", "Last year"),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Number) and not isinstance(value, bool)


def format_number(n: Any) -> str:
    """Integers with grouping separators, everything else to 2 decimal places."""
    if isinstance(n, numbers.Integral) and not isinstance(n, bool):
        return f"{int(n):,}"
    return f"{float(n):.2f}"


def to_timestamp(value: Any, timezone: Timezone = None, epoch_unit: str = "ms") -> pd.Timestamp:
    """
    Parse a temporal cell value into a timezone-aware pandas Timestamp.

    Strings and datetimes without an offset are taken to be in `timezone`;
    numbers are epoch offsets in `epoch_unit` (s, ms or us).
    """
    tz = timezone or 'UTC'
    if _is_number(value):
        ts = pd.Timestamp(value, unit=epoch_unit, tz='UTC')
    elif isinstance(value, (str, datetime, date, pd.Timestamp)):
        ts = pd.Timestamp(value)
    else:
        raise ValueError(f"Cannot interpret {value!r} as a timestamp")

    if pd.isna(ts):
        raise ValueError(f"Cannot interpret {value!r} as a timestamp")

    if ts.tzinfo is None:
        return ts.tz_localize(tz)
    return ts.tz_convert(tz)


def _short_month(ts: pd.Timestamp) -> str:
    return ts.month_name()[:3]


def format_timestamp(timezone: Timezone, value: Any, column: Column) -> str:
    """Formats timestamps with human friendly absolute dates based on the column unit."""
    unit = column.unit

    if unit in RAW_VALUE_UNITS:
        return str(value)

    ts = to_timestamp(value, timezone, column.epoch_unit)

    if unit == 'hour':
        hour = ts.hour % 12 or 12
        meridiem = 'AM' if ts.hour < 12 else 'PM'
        return f"{hour} {meridiem} - {_short_month(ts)} {ts.year}"
    if unit == 'week':
        # Week of the ISO week-year, but the calendar year: 2017-01-01 is "Week 52 - 2017"
        _, iso_week, _ = ts.isocalendar()
        return f"Week {iso_week} - {ts.year}"
    if unit == 'month':
        return f"{ts.month_name()} {ts.year}"
    if unit == 'quarter':
        return f"Q{ts.month // 3 + 1} - {ts.year}"

    return f"{_short_month(ts)} {ts.day}, {ts.year}"


def _interval_start(unit: str, now: pd.Timestamp) -> Tuple[pd.Timestamp, pd.DateOffset]:
    today = now.normalize()
    if unit == 'day':
        return today, pd.DateOffset(days=1)
    if unit == 'week':
        return today - pd.Timedelta(days=today.weekday()), pd.DateOffset(weeks=1)
    if unit == 'month':
        return today.replace(day=1), pd.DateOffset(months=1)
    if unit == 'quarter':
        first_month = 3 * ((today.month - 1) // 3) + 1
        return today.replace(month=first_month, day=1), pd.DateOffset(months=3)
    return today.replace(month=1, day=1), pd.DateOffset(years=1)


def format_timestamp_relative(timezone: Timezone, value: Any, column: Column,
                              now: Optional[Any] = None) -> Optional[str]:
    """
    Relative name for a timestamp (Today, Last week...) based on the column unit.

    Returns None for units without relative names, or when the timestamp is
    in neither the current nor the previous interval.
    """
    unit = column.unit
    if unit not in RELATIVE_LABELS:
        return None

    ts = to_timestamp(value, timezone, column.epoch_unit)
    now = to_timestamp(now, timezone) if now is not None else pd.Timestamp.now(tz=timezone or 'UTC')

    start, step = _interval_start(unit, now)
    this_label, last_label = RELATIVE_LABELS[unit]

    if start <= ts < start + step:
        return this_label
    if start - step <= ts < start:
        return last_label
    return None


def format_timestamp_pair(timezone: Timezone, pair: Sequence[Any], column: Column,
                          now: Optional[Any] = None) -> Tuple[str, str]:
    """
    Labels for the two endpoints of a series, most recent first.

    Relative formatting for the first timestamp if possible and
    'Previous {unit}' for the second, otherwise absolute timestamps for both.
    """
    a, b = pair
    relative = format_timestamp_relative(timezone, a, column, now=now)
    if relative:
        return relative, f"Previous {column.unit}"
    return format_timestamp(timezone, a, column), format_timestamp(timezone, b, column)


def format_cell(timezone: Timezone, value: Any, column: Column) -> str:
    if value is None:
        return ""
    if column.is_datetime:
        return format_timestamp(timezone, value, column)
    if _is_number(value):
        return format_number(value)
    return str(value)
