from __future__ import annotations

from ..core.enums import PayrollStatus
from ..core.exceptions import InvalidTransitionError

PAYROLL_TRANSITIONS: dict[PayrollStatus, frozenset[PayrollStatus]] = {
    PayrollStatus.DRAFT: frozenset({PayrollStatus.PROCESSED}),
    PayrollStatus.PROCESSED: frozenset({PayrollStatus.PAID}),
    PayrollStatus.PAID: frozenset(),
}


def next_payroll_status(current: PayrollStatus, target: PayrollStatus) -> PayrollStatus:
    """Forward-only; asking for the current status is an idempotent no-op."""
    if target == current:
        return current
    if target not in PAYROLL_TRANSITIONS[current]:
        raise InvalidTransitionError(f"Cannot change payroll status from {current.value} to {target.value}")
    return target
