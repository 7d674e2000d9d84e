from __future__ import annotations

import dataclasses
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from hrm_system.attendance.model import AttendanceSummary
from hrm_system.container import wire_services
from hrm_system.core.enums import EmployeeStatus, LeaveStatus, PayrollStatus
from hrm_system.employees.model import Employee, UserAccount
from hrm_system.employees.permissions import (
    LEAVE_APPROVE,
    PAYROLL_APPROVE,
    PAYROLL_CONFIGURE,
    PAYROLL_GENERATE,
    PAYROLL_VIEW,
    SETTINGS_MANAGE,
)
from hrm_system.leave.model import LeaveRequest
from hrm_system.notifications.model import Notification
from hrm_system.payroll.model import PayrollRecord

ORG_ID = 1
HR_PERMISSIONS = frozenset(
    {LEAVE_APPROVE, PAYROLL_VIEW, PAYROLL_APPROVE, PAYROLL_GENERATE, PAYROLL_CONFIGURE, SETTINGS_MANAGE}
)


class InMemoryEmployees:
    def __init__(self, employees=(), users=()):
        self.employees: dict[int, Employee] = {e.employee_id: e for e in employees}
        self.users: dict[int, UserAccount] = {u.user_id: u for u in users}

    def get_by_id(self, employee_id):
        return self.employees.get(int(employee_id))

    def get_by_user_id(self, user_id):
        return next((e for e in self.employees.values() if e.user_id == int(user_id)), None)

    def get_user(self, user_id):
        return self.users.get(int(user_id))

    def list_user_ids_with_permission(self, *, permission, organization_id, limit):
        ids = []
        for e in self.employees.values():
            user = self.users.get(e.user_id) if e.user_id else None
            if e.organization_id == organization_id and user and user.is_active and permission in user.permissions:
                ids.append(user.user_id)
        return ids[:limit]

    def list_active(self, *, organization_id, employee_ids=None):
        return [
            e
            for e in self.employees.values()
            if e.organization_id == organization_id
            and e.status == EmployeeStatus.ACTIVE
            and (employee_ids is None or e.employee_id in employee_ids)
        ]


class InMemoryAttendance:
    def __init__(self, summaries=None):
        self.summaries: dict[int, AttendanceSummary] = dict(summaries or {})
        self.calls = []

    def summarize_period(self, *, employee_id, start_date, end_date):
        self.calls.append((employee_id, start_date, end_date))
        return self.summaries.get(employee_id, AttendanceSummary())


class InMemoryLeaveRequests:
    def __init__(self, employees: InMemoryEmployees):
        self._employees = employees
        self._next_id = 1
        self.items: dict[int, LeaveRequest] = {}
        self.locked: list[int] = []

    def add(self, **fields) -> LeaveRequest:
        """Seed a request directly, bypassing the service rules."""
        rid = self._next_id
        self._next_id += 1
        fields.setdefault("reason", "seeded")
        fields.setdefault("status", LeaveStatus.PENDING)
        self.items[rid] = LeaveRequest(request_id=rid, created_at=datetime(2024, 1, 1, 9, 0), **fields)
        return self.items[rid]

    def create(self, *, employee_id, leave_type, start_date, end_date, days_requested, reason):
        return self.add(
            employee_id=employee_id,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            reason=reason,
        ).request_id

    def get(self, *, request_id):
        return self.items.get(int(request_id))

    def _matching(self, organization_id, status, employee_id, leave_type, start_date, end_date):
        out = []
        for r in self.items.values():
            owner = self._employees.get_by_id(r.employee_id)
            if not owner or owner.organization_id != organization_id:
                continue
            if status and r.status != status:
                continue
            if employee_id and r.employee_id != employee_id:
                continue
            if leave_type and r.leave_type != leave_type:
                continue
            if start_date and r.end_date < start_date:
                continue
            if end_date and r.start_date > end_date:
                continue
            out.append(r)
        return sorted(out, key=lambda r: r.request_id, reverse=True)

    def list_requests(self, *, organization_id, status=None, employee_id=None, leave_type=None,
                      start_date=None, end_date=None, offset=0, limit=10):
        rows = self._matching(organization_id, status, employee_id, leave_type, start_date, end_date)
        return rows[offset:offset + limit]

    def count_requests(self, *, organization_id, status=None, employee_id=None, leave_type=None,
                       start_date=None, end_date=None):
        return len(self._matching(organization_id, status, employee_id, leave_type, start_date, end_date))

    def find_overlapping(self, *, employee_id, start_date, end_date, exclude_request_id=None):
        return [
            r
            for r in self.items.values()
            if r.employee_id == employee_id
            and r.status in (LeaveStatus.PENDING, LeaveStatus.APPROVED)
            and r.request_id != exclude_request_id
            and r.start_date <= end_date
            and r.end_date >= start_date
        ]

    def update_details(self, *, request_id, leave_type, start_date, end_date, days_requested, reason):
        r = self.items.get(request_id)
        if not r or r.status != LeaveStatus.PENDING:
            return False
        self.items[request_id] = dataclasses.replace(
            r,
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            days_requested=days_requested,
            reason=reason,
        )
        return True

    def set_status(self, *, request_id, expected, status, approver_id=None, decision_note=None, cancelled_by=None):
        r = self.items.get(request_id)
        if not r or r.status != expected:
            return False
        if status == LeaveStatus.CANCELLED:
            self.items[request_id] = dataclasses.replace(r, status=status, cancelled_by=cancelled_by, approver_id=None)
        else:
            self.items[request_id] = dataclasses.replace(
                r,
                status=status,
                approver_id=approver_id,
                decision_note=decision_note,
                decided_at=datetime(2024, 1, 2, 9, 0),
            )
        return True

    def used_days_by_type(self, *, employee_id, year):
        used = {}
        for r in self.items.values():
            if r.employee_id == employee_id and r.status == LeaveStatus.APPROVED and r.start_date.year == year:
                used[r.leave_type] = used.get(r.leave_type, 0) + r.days_requested
        return used

    @contextmanager
    def employee_lock(self, employee_id):
        self.locked.append(employee_id)
        yield


class InMemoryPayroll:
    def __init__(self, employees: InMemoryEmployees):
        self._employees = employees
        self._next_id = 1
        self.records: dict[int, PayrollRecord] = {}
        self.overrides: dict[tuple[int, str], dict] = {}

    def _in_org(self, r, organization_id):
        owner = self._employees.get_by_id(r.employee_id)
        return owner is not None and owner.organization_id == organization_id

    def get(self, *, payroll_id):
        return self.records.get(int(payroll_id))

    def get_for_period(self, *, employee_id, pay_period):
        return next(
            (r for r in self.records.values() if r.employee_id == employee_id and r.pay_period == pay_period),
            None,
        )

    def _matching(self, organization_id, pay_period, status, employee_id):
        rows = [
            r
            for r in self.records.values()
            if self._in_org(r, organization_id)
            and (not pay_period or r.pay_period == pay_period)
            and (not status or r.status == status)
            and (not employee_id or r.employee_id == employee_id)
        ]
        return sorted(rows, key=lambda r: (r.pay_period, r.payroll_id), reverse=True)

    def list_records(self, *, organization_id, pay_period=None, status=None, employee_id=None, offset=0, limit=10):
        return self._matching(organization_id, pay_period, status, employee_id)[offset:offset + limit]

    def count_records(self, *, organization_id, pay_period=None, status=None, employee_id=None):
        return len(self._matching(organization_id, pay_period, status, employee_id))

    def list_for_period(self, *, organization_id, pay_period):
        return [r for r in self.records.values() if self._in_org(r, organization_id) and r.pay_period == pay_period]

    def list_for_employee(self, *, employee_id):
        rows = [r for r in self.records.values() if r.employee_id == employee_id]
        return sorted(rows, key=lambda r: r.pay_period, reverse=True)

    def upsert_draft(self, *, employee_id, pay_period, calculation):
        existing = self.get_for_period(employee_id=employee_id, pay_period=pay_period)
        payroll_id = existing.payroll_id if existing else self._next_id
        if not existing:
            self._next_id += 1
        self.records[payroll_id] = PayrollRecord(
            payroll_id=payroll_id,
            employee_id=employee_id,
            pay_period=pay_period,
            base_salary=calculation.base_salary,
            allowances=calculation.allowances,
            deductions=calculation.deductions,
            net_salary=calculation.net_salary,
            allowances_breakdown=calculation.allowances_breakdown,
            deductions_breakdown=calculation.deductions_breakdown,
            attendance_summary=calculation.attendance_summary,
            status=PayrollStatus.DRAFT,
        )
        return payroll_id

    def update_status(self, *, payroll_id, expected, status, processed_at=None, payment=None):
        r = self.records.get(payroll_id)
        if not r or r.status != expected:
            return False
        changes = {"status": status}
        if processed_at is not None:
            changes["processed_at"] = processed_at
        if payment is not None:
            changes.update(
                paid_at=payment.paid_at,
                payment_method=payment.payment_method,
                payment_reference=payment.payment_reference,
                paid_by_user_id=payment.paid_by_user_id,
            )
        self.records[payroll_id] = dataclasses.replace(r, **changes)
        return True

    def get_override(self, *, employee_id, pay_period):
        return self.overrides.get((employee_id, pay_period))

    def upsert_override(self, *, employee_id, pay_period, config):
        self.overrides[(employee_id, pay_period)] = config

    def delete_override(self, *, employee_id, pay_period):
        return self.overrides.pop((employee_id, pay_period), None) is not None


class InMemorySettings:
    def __init__(self, leave_policy=None, payroll_config=None):
        self.leave_policy = {ORG_ID: leave_policy}
        self.payroll_config = {ORG_ID: payroll_config}

    def get_leave_policy_json(self, organization_id):
        return self.leave_policy.get(organization_id)

    def save_leave_policy_json(self, organization_id, data):
        self.leave_policy[organization_id] = data

    def get_payroll_config_json(self, organization_id):
        return self.payroll_config.get(organization_id)

    def save_payroll_config_json(self, organization_id, data):
        self.payroll_config[organization_id] = data


class InMemoryNotifications:
    def __init__(self, *, fail: bool = False):
        self.fail = fail
        self._next_id = 1
        self.items: dict[int, Notification] = {}

    def create(self, *, user_id, title, message, type, link):
        if self.fail:
            raise RuntimeError("notification store unavailable")
        nid = self._next_id
        self._next_id += 1
        self.items[nid] = Notification(
            notification_id=nid,
            user_id=user_id,
            title=title,
            message=message,
            type=type,
            link=link,
            created_at=datetime(2024, 1, 1, 9, 0, nid % 60),
        )
        return nid

    def get(self, *, notification_id):
        return self.items.get(int(notification_id))

    def list_for_user(self, *, user_id, only_unread, limit):
        rows = [n for n in self.items.values() if n.user_id == user_id and (not only_unread or n.read_at is None)]
        return sorted(rows, key=lambda n: n.notification_id, reverse=True)[:limit]

    def mark_read(self, *, notification_id):
        n = self.items.get(notification_id)
        if not n or n.read_at is not None:
            return False
        self.items[notification_id] = dataclasses.replace(n, read_at=datetime(2024, 1, 2, 9, 0))
        return True

    def mark_all_read(self, *, user_id):
        ids = [n.notification_id for n in self.items.values() if n.user_id == user_id and n.read_at is None]
        for nid in ids:
            self.mark_read(notification_id=nid)
        return len(ids)

    def titles_for(self, user_id) -> list[str]:
        return [n.title for n in self.items.values() if n.user_id == user_id]


def make_employee(employee_id: int, *, user_id: Optional[int] = None, manager_id: Optional[int] = None,
                  hire_date: Optional[date] = date(2020, 1, 1), salary: str = "1000",
                  organization_id: int = ORG_ID, status: EmployeeStatus = EmployeeStatus.ACTIVE) -> Employee:
    return Employee(
        employee_id=employee_id,
        organization_id=organization_id,
        first_name=f"Emp{employee_id}",
        last_name="Test",
        user_id=user_id,
        manager_id=manager_id,
        hire_date=hire_date,
        salary=Decimal(salary),
        status=status,
    )


@pytest.fixture
def employees_repo():
    """Org 1: HR admin (10), manager (20), two reports (30, 40); org 2: one outsider (90)."""
    employees = [
        make_employee(10, user_id=100),
        make_employee(20, user_id=200),
        make_employee(30, user_id=300, manager_id=20),
        make_employee(40, user_id=400, manager_id=20, salary="2500.50"),
        make_employee(90, user_id=900, organization_id=2),
    ]
    users = [
        UserAccount(user_id=100, role_name="hr_admin", permissions=HR_PERMISSIONS),
        UserAccount(user_id=200, role_name="manager"),
        UserAccount(user_id=300, role_name="employee"),
        UserAccount(user_id=400, role_name="employee"),
        UserAccount(user_id=900, role_name="hr_admin", permissions=HR_PERMISSIONS),
    ]
    return InMemoryEmployees(employees, users)


@pytest.fixture
def leave_repo(employees_repo):
    return InMemoryLeaveRequests(employees_repo)


@pytest.fixture
def payroll_repo(employees_repo):
    return InMemoryPayroll(employees_repo)


@pytest.fixture
def attendance_repo():
    return InMemoryAttendance()


@pytest.fixture
def settings_repo():
    return InMemorySettings()


@pytest.fixture
def notifications_repo():
    return InMemoryNotifications()


@pytest.fixture
def today():
    """Mutable clock: tests set ``today.value`` to move the service's current date."""

    class _Clock:
        value = date(2024, 1, 5)

        def __call__(self):
            return self.value

    return _Clock()


@pytest.fixture
def container(employees_repo, attendance_repo, leave_repo, payroll_repo, settings_repo, notifications_repo, today):
    return wire_services(
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        payroll_repo=payroll_repo,
        settings_repo=settings_repo,
        notifications_repo=notifications_repo,
        today=today,
    )
