from __future__ import annotations

import re
from typing import Optional

from ..core.constants import DEFAULT_PAGE, DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT, PAY_PERIOD_PATTERN
from ..core.exceptions import ValidationError

_PAY_PERIOD_RE = re.compile(PAY_PERIOD_PATTERN)


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def require_pay_period(value: Optional[str]) -> str:
    period = (value or "").strip()
    if not _PAY_PERIOD_RE.match(period):
        raise ValidationError("Invalid pay period format. Use YYYY-MM (e.g., 2024-01)")
    return period


def normalize_paging(page: Optional[int], limit: Optional[int]) -> tuple[int, int]:
    try:
        p = int(page or DEFAULT_PAGE)
        size = int(limit or DEFAULT_PAGE_LIMIT)
    except (TypeError, ValueError):
        raise ValidationError("page and limit must be integers")
    return max(p, 1), min(max(size, 1), MAX_PAGE_LIMIT)
