from __future__ import annotations

from ..core.enums import LeaveStatus
from ..core.exceptions import AlreadyCancelledError, InvalidTransitionError

# approved -> cancelled additionally requires the leave not to have started;
# the service checks that since it needs the current date.
LEAVE_TRANSITIONS: dict[LeaveStatus, frozenset[LeaveStatus]] = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED, LeaveStatus.REJECTED, LeaveStatus.CANCELLED}),
    LeaveStatus.APPROVED: frozenset({LeaveStatus.CANCELLED}),
    LeaveStatus.REJECTED: frozenset(),
    LeaveStatus.CANCELLED: frozenset(),
}


def next_leave_status(current: LeaveStatus, target: LeaveStatus) -> LeaveStatus:
    if target == LeaveStatus.CANCELLED and current == LeaveStatus.CANCELLED:
        raise AlreadyCancelledError("Leave request is already cancelled")
    if target not in LEAVE_TRANSITIONS[current]:
        raise InvalidTransitionError("Leave request has already been processed")
    return target
