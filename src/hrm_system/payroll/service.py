from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Callable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_local, parse_iso_datetime
from ..common.validators import normalize_paging, require_non_empty, require_pay_period
from ..core.constants import APPROVER_FALLBACK_LIMIT
from ..core.enums import PayrollStatus
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..employees.model import Employee
from ..employees.permissions import PAYROLL_APPROVE
from ..employees.repository import EmployeeRepository
from ..notifications.service import NotificationService
from ..organization.repository import OrganizationSettingsRepository
from .calculator.base import PayrollCalculator
from .calculator.standard_calculator import StandardPayrollCalculator
from .config import (
    PayrollConfig,
    payroll_config_to_json,
    resolve_override,
    resolve_payroll_config,
    validate_payroll_config,
)
from .model import GenerationResult, PaymentDetails, PayrollCalculation, PayrollRecord
from .repository import PayrollRepository
from .transitions import next_payroll_status

logger = logging.getLogger(__name__)


def _parse_status(value: Any) -> PayrollStatus:
    try:
        return PayrollStatus(value)
    except ValueError:
        raise ValidationError("status must be one of draft, processed, paid")


class PayrollService:
    def __init__(
        self,
        payroll: PayrollRepository,
        employees: EmployeeRepository,
        attendance: AttendanceRepository,
        settings: OrganizationSettingsRepository,
        notifications: NotificationService,
        *,
        calculator: Optional[PayrollCalculator] = None,
        admin_notify_limit: int = APPROVER_FALLBACK_LIMIT,
        clock: Callable = now_local,
    ):
        self._payroll = payroll
        self._employees = employees
        self._attendance = attendance
        self._settings = settings
        self._notifications = notifications
        self._calculator = calculator or StandardPayrollCalculator()
        self._admin_notify_limit = int(admin_notify_limit)
        self._clock = clock

    def calculate(self, employee: Employee, pay_period: str, config: PayrollConfig) -> PayrollCalculation:
        start, end = month_bounds(pay_period)
        attendance = self._attendance.summarize_period(
            employee_id=employee.employee_id,
            start_date=start,
            end_date=end,
        )
        return self._calculator.calculate(base_salary=Decimal(employee.salary), config=config, attendance=attendance)

    def effective_config(self, *, employee_id: int, pay_period: str, default: PayrollConfig) -> PayrollConfig:
        override = resolve_override(self._payroll.get_override(employee_id=employee_id, pay_period=pay_period))
        return override or default

    def generate(
        self,
        *,
        organization_id: int,
        pay_period: str,
        employee_ids: Optional[Sequence[int]] = None,
    ) -> GenerationResult:
        pay_period = require_pay_period(pay_period)
        if employee_ids is not None and not isinstance(employee_ids, (list, tuple)):
            raise ValidationError("employeeIds must be a list of employee ids")
        try:
            ids = [int(i) for i in employee_ids] if employee_ids else None
        except (TypeError, ValueError):
            raise ValidationError("employeeIds must be a list of employee ids")

        employees = self._employees.list_active(organization_id=int(organization_id), employee_ids=ids)
        if not employees:
            raise ValidationError("No active employees found for payroll generation")

        default = resolve_payroll_config(self._settings.get_payroll_config_json(int(organization_id)))
        result = GenerationResult(pay_period=pay_period)

        for employee in employees:
            try:
                existing = self._payroll.get_for_period(employee_id=employee.employee_id, pay_period=pay_period)
                if existing and existing.status != PayrollStatus.DRAFT:
                    result.skipped.append(employee.employee_id)
                    continue

                config = self.effective_config(employee_id=employee.employee_id, pay_period=pay_period, default=default)
                calculation = self.calculate(employee, pay_period, config)
                payroll_id = self._payroll.upsert_draft(
                    employee_id=employee.employee_id,
                    pay_period=pay_period,
                    calculation=calculation,
                )
                record = self._payroll.get(payroll_id=payroll_id)
                if record:
                    result.records.append(record)
            except Exception as e:
                logger.exception("Payroll generation failed for employee %s (%s)", employee.employee_id, pay_period)
                result.failed[employee.employee_id] = str(e) or e.__class__.__name__

        logger.info(
            "Payroll %s for organization %s: %d generated, %d skipped, %d failed",
            pay_period,
            organization_id,
            len(result.records),
            len(result.skipped),
            len(result.failed),
        )

        admins = self._employees.list_user_ids_with_permission(
            permission=PAYROLL_APPROVE,
            organization_id=int(organization_id),
            limit=self._admin_notify_limit,
        )
        self._notifications.notify_many(
            admins,
            title="Payroll generated",
            message=f"{result.message} for {pay_period}",
            type="payroll",
            link=f"/payroll?payPeriod={pay_period}",
        )
        return result

    def get(self, *, payroll_id: int, organization_id: Optional[int] = None) -> PayrollRecord:
        record = self._payroll.get(payroll_id=int(payroll_id))
        if not record:
            raise NotFoundError("Payroll record not found")
        if organization_id is not None:
            employee = self._employees.get_by_id(record.employee_id)
            if not employee or employee.organization_id != int(organization_id):
                raise NotFoundError("Payroll record not found")
        return record

    def update_status(
        self,
        *,
        payroll_id: int,
        status: Any,
        organization_id: Optional[int] = None,
        actor_user_id: Optional[int] = None,
        paid_at: Any = None,
        payment_method: Optional[str] = None,
        payment_reference: Optional[str] = None,
    ) -> PayrollRecord:
        target = _parse_status(status)

        record = self.get(payroll_id=payroll_id, organization_id=organization_id)
        if next_payroll_status(record.status, target) == record.status:
            return record

        processed_at = None
        payment = None
        if target == PayrollStatus.PROCESSED:
            processed_at = self._clock()
        elif target == PayrollStatus.PAID:
            if paid_at in (None, ""):
                raise ValidationError("paidAt is required when marking payroll as paid")
            payment = PaymentDetails(
                paid_at=parse_iso_datetime(paid_at),
                payment_method=require_non_empty(payment_method, "paymentMethod"),
                payment_reference=(payment_reference or "").strip() or None,
                paid_by_user_id=int(actor_user_id) if actor_user_id else None,
            )

        ok = self._payroll.update_status(
            payroll_id=record.payroll_id,
            expected=record.status,
            status=target,
            processed_at=processed_at,
            payment=payment,
        )
        if not ok:
            # Someone else moved the record first; re-validate against the fresh status.
            current = self.get(payroll_id=record.payroll_id)
            if next_payroll_status(current.status, target) == current.status:
                return current
            raise ConflictError("Payroll record was modified concurrently, please retry")

        updated = self.get(payroll_id=record.payroll_id)
        logger.info("Payroll %s moved %s -> %s", record.payroll_id, record.status.value, target.value)

        if target == PayrollStatus.PAID:
            employee = self._employees.get_by_id(updated.employee_id)
            self._notifications.notify(
                user_id=employee.user_id if employee else None,
                title="Salary paid",
                message=f"Your salary for {updated.pay_period} has been paid ({updated.net_salary}).",
                type="payroll",
                link="/payroll/payslips",
            )
        return updated

    def list_records(
        self,
        *,
        organization_id: int,
        pay_period: Optional[str] = None,
        status: Optional[str] = None,
        employee_id: Optional[int] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> dict:
        page, limit = normalize_paging(page, limit)
        filters = dict(
            organization_id=int(organization_id),
            pay_period=require_pay_period(pay_period) if pay_period else None,
            status=_parse_status(status) if status else None,
            employee_id=int(employee_id) if employee_id else None,
        )
        total = self._payroll.count_records(**filters)
        items = self._payroll.list_records(offset=(page - 1) * limit, limit=limit, **filters)
        return {
            "items": list(items),
            "pagination": {"page": page, "limit": limit, "total": total, "pages": -(-total // limit)},
        }

    def list_payslips(self, *, employee_id: int, organization_id: Optional[int] = None) -> Sequence[PayrollRecord]:
        employee = self._employee_in_org(employee_id, organization_id)
        return self._payroll.list_for_employee(employee_id=employee.employee_id)

    def period_summary(self, *, organization_id: int, pay_period: str) -> dict:
        pay_period = require_pay_period(pay_period)
        records = self._payroll.list_for_period(organization_id=int(organization_id), pay_period=pay_period)

        def _total(attr: str) -> Decimal:
            return sum((getattr(r, attr) for r in records), Decimal("0.00"))

        return {
            "payPeriod": pay_period,
            "totalEmployees": len(records),
            "totalBaseSalary": _total("base_salary"),
            "totalAllowances": _total("allowances"),
            "totalDeductions": _total("deductions"),
            "totalNetSalary": _total("net_salary"),
            "statusBreakdown": {s.value: sum(1 for r in records if r.status == s) for s in PayrollStatus},
        }

    def _employee_in_org(self, employee_id: int, organization_id: Optional[int]) -> Employee:
        employee = self._employees.get_by_id(int(employee_id))
        if not employee or (organization_id is not None and employee.organization_id != int(organization_id)):
            raise NotFoundError("Employee not found")
        return employee

    def set_override(
        self,
        *,
        employee_id: int,
        pay_period: str,
        config: Any,
        organization_id: Optional[int] = None,
    ) -> dict:
        pay_period = require_pay_period(pay_period)
        employee = self._employee_in_org(employee_id, organization_id)
        parsed = validate_payroll_config(config, require_rules=True)
        data = payroll_config_to_json(parsed)
        self._payroll.upsert_override(employee_id=employee.employee_id, pay_period=pay_period, config=data)
        logger.info("Payroll override saved for employee %s (%s)", employee.employee_id, pay_period)
        return data

    def delete_override(self, *, employee_id: int, pay_period: str, organization_id: Optional[int] = None) -> None:
        pay_period = require_pay_period(pay_period)
        employee = self._employee_in_org(employee_id, organization_id)
        if not self._payroll.delete_override(employee_id=employee.employee_id, pay_period=pay_period):
            raise NotFoundError("Payroll override not found")
