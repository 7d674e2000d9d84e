from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta
from typing import Iterator, Tuple, Union

from ..core.exceptions import ValidationError


def parse_iso_date(value: Union[str, date]) -> date:
    """Parse YYYY-MM-DD (or a longer ISO timestamp) into date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value or "").strip()[:10], "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(f"Invalid date: {value!r} (expected YYYY-MM-DD)")


def parse_iso_datetime(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    raw = str(value or "").strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise ValidationError(f"Invalid timestamp: {value!r} (expected ISO 8601)")


def iter_days(start: date, end: date) -> Iterator[date]:
    curr = start
    while curr <= end:
        yield curr
        curr += timedelta(days=1)


def month_bounds(pay_period: str) -> Tuple[date, date]:
    """Return [first day, first day of next month) for a YYYY-MM period."""
    year, month = (int(p) for p in pay_period.split("-"))
    start = date(year, month, 1)
    last_day = calendar.monthrange(year, month)[1]
    return start, start + timedelta(days=last_day)


def today_local() -> date:
    """Current local date.

    Note: Wrapped so tests can patch it easier.
    """
    return date.today()


def now_local() -> datetime:
    return datetime.now()
