from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Optional, Sequence

from ..common.datetime_utils import parse_iso_date, today_local
from ..common.validators import normalize_paging, require_non_empty
from ..core.constants import APPROVER_FALLBACK_LIMIT
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import (
    ConflictError,
    ForbiddenError,
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    OverlapError,
    TooLateError,
    ValidationError,
)
from ..employees.model import Employee
from ..employees.permissions import LEAVE_APPROVE, has_permission
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..organization.repository import OrganizationSettingsRepository
from .balance import LeaveBalanceItem, LeaveUsageSummary, calculate_balances
from .business_days import count_business_days
from .model import LeaveRequest
from .policy import LeavePolicySettings, resolve_leave_policy
from .repository import LeaveRequestRepository
from .transitions import next_leave_status

logger = logging.getLogger(__name__)

MAX_REASON_LENGTH = 1000


@dataclass(frozen=True)
class _LeaveWindow:
    leave_type: LeaveType
    start_date: date
    end_date: date
    days_requested: int
    reason: str


def _parse_leave_type(value: Any) -> LeaveType:
    try:
        return LeaveType(value)
    except ValueError:
        raise ValidationError(f"Invalid leave type: {value!r}")


class LeaveService:
    def __init__(
        self,
        leave: LeaveRequestRepository,
        employees: EmployeeRepository,
        settings: OrganizationSettingsRepository,
        notifications: NotificationService,
        *,
        approver_fallback_limit: int = APPROVER_FALLBACK_LIMIT,
        clock: Callable[[], date] = today_local,
    ):
        self._leave = leave
        self._employees = employees
        self._settings = settings
        self._notifications = notifications
        self._approver_fallback_limit = int(approver_fallback_limit)
        self._clock = clock

    # Helpers
    def _employee(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def _request(self, request_id: int, organization_id: Optional[int] = None) -> LeaveRequest:
        req = self._leave.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Leave request not found")
        if organization_id is not None:
            owner = self._employees.get_by_id(req.employee_id)
            if not owner or owner.organization_id != int(organization_id):
                raise NotFoundError("Leave request not found")
        return req

    def _policy(self, organization_id: int) -> LeavePolicySettings:
        return resolve_leave_policy(self._settings.get_leave_policy_json(organization_id))

    def can_manage(self, owner: Employee, actor: Employee) -> bool:
        """The owner's manager, or an active user holding the approve permission."""
        if actor.organization_id != owner.organization_id:
            return False
        if owner.manager_id is not None and owner.manager_id == actor.employee_id:
            return True
        if actor.user_id is None:
            return False
        return has_permission(self._employees.get_user(actor.user_id), LEAVE_APPROVE)

    def _build_window(
        self,
        *,
        settings: LeavePolicySettings,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: Optional[str],
    ) -> _LeaveWindow:
        lt = _parse_leave_type(leave_type)
        start = parse_iso_date(start_date)
        end = parse_iso_date(end_date)
        if start > end:
            raise ValidationError("Start date must be before end date")

        days = count_business_days(start, end, settings.holidays)
        if days <= 0:
            raise ValidationError("The selected dates contain no working days")

        reason = require_non_empty(reason, "reason")
        if len(reason) > MAX_REASON_LENGTH:
            raise ValidationError(f"reason must be at most {MAX_REASON_LENGTH} characters")
        return _LeaveWindow(lt, start, end, days, reason)

    def _assert_no_overlap(self, employee_id: int, window: _LeaveWindow, exclude_request_id: Optional[int] = None) -> None:
        clashes = self._leave.find_overlapping(
            employee_id=employee_id,
            start_date=window.start_date,
            end_date=window.end_date,
            exclude_request_id=exclude_request_id,
        )
        if clashes:
            c = clashes[0]
            raise OverlapError(
                f"Leave overlaps an existing {c.status.value} request ({c.start_date.isoformat()} to {c.end_date.isoformat()})"
            )

    def _assert_balance(self, employee: Employee, settings: LeavePolicySettings, window: _LeaveWindow) -> None:
        if window.leave_type == LeaveType.UNPAID:
            return
        balance = self._balances(employee, settings, self._clock())[window.leave_type.value]
        if balance.remaining < window.days_requested:
            raise InsufficientBalanceError(
                f"Insufficient {window.leave_type.value} leave balance: "
                f"{balance.remaining:g} day(s) remaining, {window.days_requested} requested"
            )

    def _balances(self, employee: Employee, settings: LeavePolicySettings, as_of: date) -> dict[str, LeaveBalanceItem]:
        usage = LeaveUsageSummary(
            used_days_by_type=self._leave.used_days_by_type(employee_id=employee.employee_id, year=as_of.year),
            used_days_by_type_previous_year=self._leave.used_days_by_type(
                employee_id=employee.employee_id, year=as_of.year - 1
            ),
        )
        return calculate_balances(as_of=as_of, settings=settings, usage=usage, hire_date=employee.hire_date)

    def _approver_user_ids(self, employee: Employee) -> Sequence[int]:
        if employee.manager_id is not None:
            manager = self._employees.get_by_id(employee.manager_id)
            if manager and manager.user_id:
                return [manager.user_id]
        ids = self._employees.list_user_ids_with_permission(
            permission=LEAVE_APPROVE,
            organization_id=employee.organization_id,
            limit=self._approver_fallback_limit,
        )
        return [i for i in ids if i != employee.user_id]

    # Use cases
    def create(
        self,
        *,
        employee_id: int,
        leave_type: Any,
        start_date: Any,
        end_date: Any,
        reason: Optional[str],
    ) -> LeaveRequest:
        employee = self._employee(employee_id)
        settings = self._policy(employee.organization_id)
        window = self._build_window(
            settings=settings,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            reason=reason,
        )

        with self._leave.employee_lock(employee.employee_id):
            self._assert_no_overlap(employee.employee_id, window)
            self._assert_balance(employee, settings, window)
            request_id = self._leave.create(
                employee_id=employee.employee_id,
                leave_type=window.leave_type,
                start_date=window.start_date,
                end_date=window.end_date,
                days_requested=window.days_requested,
                reason=window.reason,
            )

        created = self._request(request_id)
        logger.info(
            "Leave request %s created for employee %s (%s, %d days)",
            request_id,
            employee.employee_id,
            window.leave_type.value,
            window.days_requested,
        )
        self._notifications.notify_many(
            self._approver_user_ids(employee),
            title="New leave request",
            message=(
                f"{employee.full_name} requested {window.days_requested} day(s) of {window.leave_type.value} leave "
                f"from {window.start_date.isoformat()} to {window.end_date.isoformat()}"
            ),
            type="leave",
            link=f"/leave/requests/{request_id}",
        )
        return created

    def update(
        self,
        *,
        request_id: int,
        actor_employee_id: int,
        leave_type: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        reason: Optional[str] = None,
    ) -> LeaveRequest:
        actor = self._employee(actor_employee_id)
        req = self._request(request_id, actor.organization_id)
        owner = self._employee(req.employee_id)
        if owner.employee_id != actor.employee_id and not self.can_manage(owner, actor):
            raise ForbiddenError("You can only update your own leave requests")
        if req.status != LeaveStatus.PENDING:
            raise InvalidTransitionError("Cannot update leave request that has been processed")

        settings = self._policy(owner.organization_id)
        window = self._build_window(
            settings=settings,
            leave_type=leave_type if leave_type is not None else req.leave_type,
            start_date=start_date if start_date is not None else req.start_date,
            end_date=end_date if end_date is not None else req.end_date,
            reason=reason if reason is not None else req.reason,
        )

        with self._leave.employee_lock(owner.employee_id):
            self._assert_no_overlap(owner.employee_id, window, exclude_request_id=req.request_id)
            self._assert_balance(owner, settings, window)
            ok = self._leave.update_details(
                request_id=req.request_id,
                leave_type=window.leave_type,
                start_date=window.start_date,
                end_date=window.end_date,
                days_requested=window.days_requested,
                reason=window.reason,
            )
        if not ok:
            raise InvalidTransitionError("Cannot update leave request that has been processed")
        return self._request(req.request_id)

    def _decide(
        self,
        *,
        request_id: int,
        approver_employee_id: int,
        status: LeaveStatus,
        note: Optional[str],
    ) -> LeaveRequest:
        approver = self._employee(approver_employee_id)
        req = self._request(request_id, approver.organization_id)
        owner = self._employee(req.employee_id)
        if not self.can_manage(owner, approver):
            raise ForbiddenError("You are not allowed to decide on this leave request")

        with self._leave.employee_lock(owner.employee_id):
            req = self._request(req.request_id)
            next_leave_status(req.status, status)
            if status == LeaveStatus.APPROVED:
                settings = self._policy(owner.organization_id)
                window = _LeaveWindow(req.leave_type, req.start_date, req.end_date, req.days_requested, req.reason)
                self._assert_balance(owner, settings, window)
            ok = self._leave.set_status(
                request_id=req.request_id,
                expected=LeaveStatus.PENDING,
                status=status,
                approver_id=approver.employee_id,
                decision_note=(note or "").strip() or None,
            )
        if not ok:
            raise ConflictError("Leave request was modified concurrently, please retry")

        decided = self._request(req.request_id)
        logger.info("Leave request %s %s by employee %s", req.request_id, status.value, approver.employee_id)
        self._notifications.notify(
            user_id=owner.user_id,
            title=f"Leave request {status.value}",
            message=(
                f"Your {req.leave_type.value} leave from {req.start_date.isoformat()} to "
                f"{req.end_date.isoformat()} was {status.value}"
                + (f": {decided.decision_note}" if decided.decision_note else "")
            ),
            type="leave",
            link=f"/leave/requests/{req.request_id}",
        )
        return decided

    def approve(self, *, request_id: int, approver_employee_id: int, note: Optional[str] = None) -> LeaveRequest:
        return self._decide(
            request_id=request_id,
            approver_employee_id=approver_employee_id,
            status=LeaveStatus.APPROVED,
            note=note,
        )

    def reject(self, *, request_id: int, approver_employee_id: int, reason: Optional[str] = None) -> LeaveRequest:
        return self._decide(
            request_id=request_id,
            approver_employee_id=approver_employee_id,
            status=LeaveStatus.REJECTED,
            note=reason,
        )

    def cancel(self, *, request_id: int, actor_employee_id: int) -> LeaveRequest:
        actor = self._employee(actor_employee_id)
        req = self._request(request_id, actor.organization_id)
        owner = self._employee(req.employee_id)
        is_owner = owner.employee_id == actor.employee_id
        if not is_owner and not self.can_manage(owner, actor):
            raise ForbiddenError("You can only cancel your own leave requests")

        with self._leave.employee_lock(owner.employee_id):
            req = self._request(req.request_id)
            next_leave_status(req.status, LeaveStatus.CANCELLED)
            if req.status == LeaveStatus.APPROVED and req.start_date <= self._clock():
                raise TooLateError("Cannot cancel leave that has already started")
            ok = self._leave.set_status(
                request_id=req.request_id,
                expected=req.status,
                status=LeaveStatus.CANCELLED,
                cancelled_by=actor.employee_id,
            )
        if not ok:
            raise ConflictError("Leave request was modified concurrently, please retry")

        cancelled = self._request(req.request_id)
        logger.info("Leave request %s cancelled by employee %s", req.request_id, actor.employee_id)

        if not is_owner:
            notify_user = owner.user_id
        elif req.approver_id is not None:
            approver = self._employees.get_by_id(req.approver_id)
            notify_user = approver.user_id if approver else None
        else:
            notify_user = None
        self._notifications.notify(
            user_id=notify_user,
            title="Leave request cancelled",
            message=(
                f"{req.leave_type.value.capitalize()} leave of {owner.full_name} from "
                f"{req.start_date.isoformat()} to {req.end_date.isoformat()} was cancelled"
            ),
            type="leave",
            link=f"/leave/requests/{req.request_id}",
        )
        return cancelled

    def get_balance(
        self,
        *,
        employee_id: int,
        organization_id: Optional[int] = None,
        as_of: Any = None,
    ) -> dict[str, LeaveBalanceItem]:
        employee = self._employee(employee_id)
        if organization_id is not None and employee.organization_id != int(organization_id):
            raise NotFoundError("Employee not found")
        as_of_date = parse_iso_date(as_of) if as_of else self._clock()
        return self._balances(employee, self._policy(employee.organization_id), as_of_date)

    def get(self, *, request_id: int, organization_id: Optional[int] = None) -> LeaveRequest:
        return self._request(request_id, organization_id)

    def list_requests(
        self,
        *,
        organization_id: int,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
        leave_type: Optional[str] = None,
        start_date: Any = None,
        end_date: Any = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> dict:
        page, limit = normalize_paging(page, limit)
        try:
            status_filter = LeaveStatus(status) if status else None
        except ValueError:
            raise ValidationError(f"Invalid status: {status!r}")

        filters = dict(
            organization_id=int(organization_id),
            status=status_filter,
            employee_id=int(employee_id) if employee_id else None,
            leave_type=_parse_leave_type(leave_type) if leave_type else None,
            start_date=parse_iso_date(start_date) if start_date else None,
            end_date=parse_iso_date(end_date) if end_date else None,
        )
        total = self._leave.count_requests(**filters)
        items = self._leave.list_requests(offset=(page - 1) * limit, limit=limit, **filters)
        return {
            "items": list(items),
            "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
        }
