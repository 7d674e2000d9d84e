from __future__ import annotations

from datetime import date
from typing import ContextManager, Mapping, Optional, Protocol, Sequence

from ..core.enums import LeaveStatus, LeaveType
from .model import LeaveRequest


class LeaveRequestRepository(Protocol):
    def create(
        self,
        *,
        employee_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[LeaveRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        organization_id: int,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[LeaveRequest]:
        """Newest first; the date window keeps requests overlapping it."""

        raise NotImplementedError

    def count_requests(
        self,
        *,
        organization_id: int,
        status: Optional[LeaveStatus] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[LeaveType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> int:
        raise NotImplementedError

    def find_overlapping(
        self,
        *,
        employee_id: int,
        start_date: date,
        end_date: date,
        exclude_request_id: Optional[int] = None,
    ) -> Sequence[LeaveRequest]:
        """Pending/approved requests with ``start <= end_date AND end >= start_date``."""

        raise NotImplementedError

    def update_details(
        self,
        *,
        request_id: int,
        leave_type: LeaveType,
        start_date: date,
        end_date: date,
        days_requested: int,
        reason: str,
    ) -> bool:
        """Only applies while the request is still pending."""

        raise NotImplementedError

    def set_status(
        self,
        *,
        request_id: int,
        expected: LeaveStatus,
        status: LeaveStatus,
        approver_id: Optional[int] = None,
        decision_note: Optional[str] = None,
        cancelled_by: Optional[int] = None,
    ) -> bool:
        """Compare-and-set on ``expected``."""

        raise NotImplementedError

    def used_days_by_type(self, *, employee_id: int, year: int) -> Mapping[LeaveType, float]:
        """Approved days per leave type for leave starting in ``year``."""

        raise NotImplementedError

    def employee_lock(self, employee_id: int) -> ContextManager[None]:
        """Serialise check-then-write sequences for one employee's leave."""

        raise NotImplementedError
