from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import LeaveStatus, LeaveType


@dataclass(frozen=True)
class LeaveRequest:
    """Domain entity: a leave window for one employee.

    ``approver_id`` is set only once the request is approved or rejected.
    """

    request_id: int
    employee_id: int
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_requested: int
    reason: str
    status: LeaveStatus
    approver_id: Optional[int] = None
    decided_at: Optional[datetime] = None
    decision_note: Optional[str] = None
    cancelled_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

