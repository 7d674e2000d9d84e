from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping, Optional

from ..core.enums import LeaveType
from .policy import LeavePolicySettings
from .proration import entitlement_for

# Older clients still ask for "casual"; it is the same bucket as personal.
LEGACY_ALIASES = {"casual": LeaveType.PERSONAL}


@dataclass(frozen=True)
class LeaveUsageSummary:
    """Approved leave days per type, current and previous calendar year."""

    used_days_by_type: Mapping[LeaveType, float] = field(default_factory=dict)
    used_days_by_type_previous_year: Mapping[LeaveType, float] = field(default_factory=dict)


@dataclass(frozen=True)
class LeaveBalanceItem:
    total: float
    used: float
    remaining: float
    carry_forward: float
    entitlement: float


def calculate_balances(
    *,
    as_of: date,
    settings: LeavePolicySettings,
    usage: LeaveUsageSummary,
    hire_date: Optional[date] = None,
) -> dict[str, LeaveBalanceItem]:
    result: dict[str, LeaveBalanceItem] = {}
    # Carry-forward needs a complete prior leave year of service.
    served_full_prior_year = hire_date is None or hire_date <= date(as_of.year - 1, 1, 1)

    for leave_type in LeaveType:
        policy = settings.policy_for(leave_type)
        used = usage.used_days_by_type.get(leave_type, 0) or 0
        prev_used = usage.used_days_by_type_previous_year.get(leave_type, 0) or 0

        if served_full_prior_year:
            prev_remaining = max(0, policy.annual_entitlement_days - prev_used)
            carry_forward = min(policy.carry_forward_max_days, prev_remaining)
        else:
            carry_forward = 0
        entitlement = entitlement_for(policy, as_of, hire_date)

        total = entitlement + carry_forward
        result[leave_type.value] = LeaveBalanceItem(
            total=total,
            used=used,
            remaining=max(0, total - used),
            carry_forward=carry_forward,
            entitlement=entitlement,
        )

    for alias, target in LEGACY_ALIASES.items():
        result[alias] = result[target.value]
    return result
