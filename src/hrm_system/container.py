from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Callable

from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .common.datetime_utils import today_local
from .core.constants import APPROVER_FALLBACK_LIMIT
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .leave.mysql_leave_repository import MySQLLeaveRequestRepository
from .leave.repository import LeaveRequestRepository
from .leave.service import LeaveService
from .notifications.mysql_notification_repository import MySQLNotificationRepository
from .notifications.repository import NotificationRepository
from .notifications.service import NotificationService
from .organization.mysql_settings_repository import MySQLOrganizationSettingsRepository
from .organization.repository import OrganizationSettingsRepository
from .organization.service import SettingsService
from .payroll.mysql_payroll_repository import MySQLPayrollRepository
from .payroll.repository import PayrollRepository
from .payroll.service import PayrollService


@dataclass(frozen=True)
class Container:
    employees_repo: EmployeeRepository
    attendance_repo: AttendanceRepository
    leave_repo: LeaveRequestRepository
    payroll_repo: PayrollRepository
    settings_repo: OrganizationSettingsRepository
    notifications_repo: NotificationRepository

    notification_service: NotificationService
    settings_service: SettingsService
    leave_service: LeaveService
    payroll_service: PayrollService


def wire_services(
    *,
    employees_repo: EmployeeRepository,
    attendance_repo: AttendanceRepository,
    leave_repo: LeaveRequestRepository,
    payroll_repo: PayrollRepository,
    settings_repo: OrganizationSettingsRepository,
    notifications_repo: NotificationRepository,
    approver_fallback_limit: int = APPROVER_FALLBACK_LIMIT,
    today: Callable[[], date] = today_local,
) -> Container:
    """Build the service graph over any repository implementations (MySQL or in-memory)."""
    notification_service = NotificationService(notifications_repo)
    settings_service = SettingsService(settings_repo)
    leave_service = LeaveService(
        leave_repo,
        employees_repo,
        settings_repo,
        notification_service,
        approver_fallback_limit=approver_fallback_limit,
        clock=today,
    )
    payroll_service = PayrollService(
        payroll_repo,
        employees_repo,
        attendance_repo,
        settings_repo,
        notification_service,
        admin_notify_limit=approver_fallback_limit,
    )

    return Container(
        employees_repo=employees_repo,
        attendance_repo=attendance_repo,
        leave_repo=leave_repo,
        payroll_repo=payroll_repo,
        settings_repo=settings_repo,
        notifications_repo=notifications_repo,
        notification_service=notification_service,
        settings_service=settings_service,
        leave_service=leave_service,
        payroll_service=payroll_service,
    )


def build_container(*, db_config: dict, approver_fallback_limit: int = APPROVER_FALLBACK_LIMIT) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_mapping(db_config))

    return wire_services(
        employees_repo=MySQLEmployeeRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        leave_repo=MySQLLeaveRequestRepository(conn),
        payroll_repo=MySQLPayrollRepository(conn),
        settings_repo=MySQLOrganizationSettingsRepository(conn),
        notifications_repo=MySQLNotificationRepository(conn),
        approver_fallback_limit=approver_fallback_limit,
    )
