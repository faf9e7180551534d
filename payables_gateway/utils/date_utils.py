"""Date manipulation utilities"""

import calendar
from datetime import date, datetime
from typing import Optional


def add_months(start: date, months: int, day: Optional[int] = None) -> date:
    """
    Shift a date by whole calendar months.

    The day of the result is `day` when given, otherwise the start date's day.
    Days past the end of the target month are clamped to its last day
    (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day or start.day, last_day))


def parse_date(value: str) -> date:
    """Parse ISO (2024-01-05) or Brazilian (05/01/2024) dates"""
    value = value.strip()
    for fmt in ("%Y-%m-%d", "%d/%m/%Y"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {value!r}")
