from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from ..attendance.model import AttendanceSummary
from ..core.enums import PayrollStatus


@dataclass(frozen=True)
class BreakdownLine:
    name: str
    amount: Decimal


@dataclass(frozen=True)
class PayrollCalculation:
    base_salary: Decimal
    allowances: Decimal
    deductions: Decimal
    net_salary: Decimal
    allowances_breakdown: tuple[BreakdownLine, ...] = ()
    deductions_breakdown: tuple[BreakdownLine, ...] = ()
    attendance_summary: AttendanceSummary = field(default_factory=AttendanceSummary)


@dataclass(frozen=True)
class PayrollRecord:
    """Domain entity: one employee's payroll for one pay period (YYYY-MM)."""

    payroll_id: int
    employee_id: int
    pay_period: str
    base_salary: Decimal
    allowances: Decimal
    deductions: Decimal
    net_salary: Decimal
    allowances_breakdown: tuple[BreakdownLine, ...]
    deductions_breakdown: tuple[BreakdownLine, ...]
    attendance_summary: AttendanceSummary
    status: PayrollStatus
    created_at: Optional[datetime] = None
    processed_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    payment_method: Optional[str] = None
    payment_reference: Optional[str] = None
    paid_by_user_id: Optional[int] = None


@dataclass(frozen=True)
class PaymentDetails:
    paid_at: datetime
    payment_method: str
    payment_reference: Optional[str] = None
    paid_by_user_id: Optional[int] = None


@dataclass
class GenerationResult:
    """Outcome of a best-effort batch run; one entry per employee."""

    pay_period: str
    records: list[PayrollRecord] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: dict[int, str] = field(default_factory=dict)

    @property
    def message(self) -> str:
        msg = f"Generated payroll for {len(self.records)} employees"
        if self.skipped:
            msg += f", skipped {len(self.skipped)} already processed"
        if self.failed:
            msg += f", {len(self.failed)} failed"
        return msg
