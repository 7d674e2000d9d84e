from __future__ import annotations

from datetime import date
from typing import AbstractSet, Optional

from ..common.datetime_utils import iter_days

# date.weekday(): Monday=0 ... Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


def count_business_days(start: date, end: date, holidays: Optional[AbstractSet[str]] = None) -> int:
    """Count working days in [start, end], skipping weekends and ISO-dated holidays.

    A reversed range yields 0; callers reject it before getting here.
    """
    holidays = holidays or frozenset()
    count = 0
    for day in iter_days(start, end):
        if day.weekday() in WEEKEND_DAYS:
            continue
        if day.isoformat() in holidays:
            continue
        count += 1
    return count
