"""Date-range helpers used by report filters.

Every range helper accepts an optional ``today`` so callers (and tests) can pin
the reference day; without it the local current date is used. Dates are
rendered as ``YYYY-MM-DD`` strings.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Mapping

from dateutil import parser as date_parser

DATE_FORMAT = "%Y-%m-%d"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@dataclass(frozen=True)
class DateRange:
    start_time: str
    end_time: str

    def as_dict(self) -> dict[str, str]:
        return {"startTime": self.start_time, "endTime": self.end_time}


def _as_date(value: date | datetime | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return datetime.strptime(str(value).strip(), DATE_FORMAT).date()


def format_date(value: date | datetime | None = None) -> str:
    return (value or date.today()).strftime(DATE_FORMAT)


def today_range(today: date | None = None) -> DateRange:
    day = format_date(today)
    return DateRange(day, day)


def yesterday_range(today: date | None = None) -> DateRange:
    day = format_date((today or date.today()) - timedelta(days=1))
    return DateRange(day, day)


def this_week_range(today: date | None = None) -> DateRange:
    """Monday through Sunday of the current week."""
    anchor = today or date.today()
    week_start = anchor - timedelta(days=anchor.weekday())
    return DateRange(format_date(week_start), format_date(week_start + timedelta(days=6)))


def this_month_range(today: date | None = None) -> DateRange:
    anchor = today or date.today()
    month_start = anchor.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    return DateRange(format_date(month_start), format_date(next_month - timedelta(days=1)))


def last_7_days_range(today: date | None = None) -> DateRange:
    # Today counts as one of the seven days.
    anchor = today or date.today()
    return DateRange(format_date(anchor - timedelta(days=6)), format_date(anchor))


PRESETS: Mapping[str, Callable[[date | None], DateRange]] = {
    "today": today_range,
    "yesterday": yesterday_range,
    "thisWeek": this_week_range,
    "thisMonth": this_month_range,
    "last7Days": last_7_days_range,
}


def range_for_preset(preset: str, today: date | None = None) -> DateRange | None:
    builder = PRESETS.get(preset)
    return builder(today) if builder else None


def date_range(start: date | datetime | str, end: date | datetime | str) -> list[str]:
    """Every day from ``start`` to ``end`` inclusive; empty when ``start`` is after ``end``.

    Raises ``ValueError`` for strings that are not ``YYYY-MM-DD`` dates.
    """
    first = _as_date(start)
    last = _as_date(end)
    return [format_date(first + timedelta(days=offset)) for offset in range((last - first).days + 1)]


def _as_datetime(value: date | datetime | str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    return date_parser.parse(str(value))


def days_diff(first: date | datetime | str, second: date | datetime | str) -> int:
    """Whole days from ``first`` to ``second`` (negative when ``second`` is earlier), floored."""
    delta = _as_datetime(second) - _as_datetime(first)
    return math.floor(delta.total_seconds() / 86400)


def is_valid_date_format(text: object) -> bool:
    if not isinstance(text, str) or not _DATE_PATTERN.match(text):
        return False
    try:
        datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return False
    return True


__all__ = [
    "DateRange",
    "PRESETS",
    "date_range",
    "days_diff",
    "format_date",
    "is_valid_date_format",
    "last_7_days_range",
    "range_for_preset",
    "this_month_range",
    "this_week_range",
    "today_range",
    "yesterday_range",
]
