"""Leave policy settings and their normalisation from organisation JSON.

The organisation settings blob is admin-editable free-form JSON, so every
value is checked before use and anything malformed falls back to the
hardcoded defaults below.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ..core.enums import LeaveType


@dataclass(frozen=True)
class AccrualPolicy:
    enabled: bool = False
    frequency: str = "monthly"


@dataclass(frozen=True)
class LeaveTypePolicy:
    annual_entitlement_days: float
    carry_forward_max_days: float = 0
    accrual: AccrualPolicy = field(default_factory=AccrualPolicy)


@dataclass(frozen=True)
class LeavePolicySettings:
    policies: Mapping[LeaveType, LeaveTypePolicy]
    holidays: frozenset[str] = frozenset()

    def policy_for(self, leave_type: LeaveType) -> LeaveTypePolicy:
        return self.policies.get(leave_type) or DEFAULT_LEAVE_POLICIES[leave_type]


DEFAULT_LEAVE_POLICIES: dict[LeaveType, LeaveTypePolicy] = {
    LeaveType.ANNUAL: LeaveTypePolicy(20, 5, AccrualPolicy(enabled=True)),
    LeaveType.SICK: LeaveTypePolicy(10, 0),
    LeaveType.PERSONAL: LeaveTypePolicy(5, 0),
    LeaveType.MATERNITY: LeaveTypePolicy(90, 0),
    LeaveType.PATERNITY: LeaveTypePolicy(14, 0),
    LeaveType.UNPAID: LeaveTypePolicy(0, 0),
}


def finite_number(value: Any) -> Optional[float]:
    """Return value if it is a real finite number (bools excluded), else None."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return value


def as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def load_json_object(raw: Any) -> Mapping[str, Any]:
    """Accept a dict or a JSON document string; anything else becomes {}."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return {}
    return as_mapping(raw)


def _resolve_type_policy(candidate: Any) -> Optional[LeaveTypePolicy]:
    candidate = as_mapping(candidate)
    annual = finite_number(candidate.get("annualEntitlementDays"))
    if annual is None:
        return None

    carry = finite_number(candidate.get("carryForwardMaxDays"))
    accrual_raw = as_mapping(candidate.get("accrual"))
    return LeaveTypePolicy(
        annual_entitlement_days=annual,
        carry_forward_max_days=carry if carry is not None else 0,
        # monthly is the only supported frequency
        accrual=AccrualPolicy(enabled=accrual_raw.get("enabled") is True, frequency="monthly"),
    )


def _resolve_holidays(calendar: Mapping[str, Any]) -> frozenset[str]:
    raw = calendar.get("holidays")
    if not isinstance(raw, list):
        return frozenset()
    return frozenset(h[:10] for h in raw if isinstance(h, str) and h)


def resolve_leave_policy(raw: Any) -> LeavePolicySettings:
    """Turn the organisation's leave policy JSON into complete settings.

    Accepts either ``{"leave": {"policies": ..., "calendar": ...}}`` or the
    inner ``{"policies": ..., "calendar": ...}`` object. A per-type policy is
    used only when its ``annualEntitlementDays`` is a finite number.
    """
    root = load_json_object(raw)
    leave = as_mapping(root.get("leave")) or root
    policies_raw = as_mapping(leave.get("policies"))

    policies: dict[LeaveType, LeaveTypePolicy] = {}
    for leave_type in LeaveType:
        resolved = _resolve_type_policy(policies_raw.get(leave_type.value))
        policies[leave_type] = resolved or DEFAULT_LEAVE_POLICIES[leave_type]

    return LeavePolicySettings(
        policies=policies,
        holidays=_resolve_holidays(as_mapping(leave.get("calendar"))),
    )


def leave_policy_to_json(settings: LeavePolicySettings) -> dict:
    """Inverse of resolve_leave_policy, used when storing normalised settings."""
    return {
        "leave": {
            "policies": {
                t.value: {
                    "annualEntitlementDays": p.annual_entitlement_days,
                    "carryForwardMaxDays": p.carry_forward_max_days,
                    "accrual": {"enabled": p.accrual.enabled, "frequency": p.accrual.frequency},
                }
                for t, p in settings.policies.items()
            },
            "calendar": {"holidays": sorted(settings.holidays)},
        }
    }
