from __future__ import annotations

import math
from datetime import date
from typing import Optional

from .policy import LeaveTypePolicy


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def prorate_entitlement(annual_days: float, as_of: date, hire_date: Optional[date] = None) -> int:
    """Entitlement earned by ``as_of`` at 1/12 of the annual amount per month.

    Counting starts at the later of the hire date and January 1st of the
    ``as_of`` year; both the starting and the current month count in full.
    """
    start_of_year = date(as_of.year, 1, 1)
    effective_start = max(hire_date, start_of_year) if hire_date else start_of_year
    if effective_start > as_of:
        return 0

    months = as_of.month - effective_start.month + 1
    months = min(12, max(0, months))
    return _round_half_up(annual_days * months / 12)


def entitlement_for(policy: LeaveTypePolicy, as_of: date, hire_date: Optional[date] = None) -> float:
    """Full annual entitlement, unless the type accrues or the employee joined this year."""
    hired_this_year = hire_date is not None and hire_date.year == as_of.year
    if policy.accrual.enabled or hired_this_year:
        return prorate_entitlement(policy.annual_entitlement_days, as_of, hire_date)
    return policy.annual_entitlement_days
