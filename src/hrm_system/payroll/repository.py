from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Protocol, Sequence

from ..core.enums import PayrollStatus
from .model import PaymentDetails, PayrollCalculation, PayrollRecord


class PayrollRepository(Protocol):
    def get(self, *, payroll_id: int) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def get_for_period(self, *, employee_id: int, pay_period: str) -> Optional[PayrollRecord]:
        raise NotImplementedError

    def list_records(
        self,
        *,
        organization_id: int,
        pay_period: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
        offset: int = 0,
        limit: int = 10,
    ) -> Sequence[PayrollRecord]:
        """Newest pay period first."""

        raise NotImplementedError

    def count_records(
        self,
        *,
        organization_id: int,
        pay_period: Optional[str] = None,
        status: Optional[PayrollStatus] = None,
        employee_id: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def list_for_period(self, *, organization_id: int, pay_period: str) -> Sequence[PayrollRecord]:
        raise NotImplementedError

    def list_for_employee(self, *, employee_id: int) -> Sequence[PayrollRecord]:
        """Payslips, newest pay period first."""

        raise NotImplementedError

    def upsert_draft(self, *, employee_id: int, pay_period: str, calculation: PayrollCalculation) -> int:
        """Insert or recompute the (employee, period) record as draft; return its id."""

        raise NotImplementedError

    def update_status(
        self,
        *,
        payroll_id: int,
        expected: PayrollStatus,
        status: PayrollStatus,
        processed_at: Optional[datetime] = None,
        payment: Optional[PaymentDetails] = None,
    ) -> bool:
        """Compare-and-set on ``expected``; False when another writer got there first."""

        raise NotImplementedError

    # Per-employee overrides
    def get_override(self, *, employee_id: int, pay_period: str) -> Optional[Any]:
        raise NotImplementedError

    def upsert_override(self, *, employee_id: int, pay_period: str, config: dict) -> None:
        raise NotImplementedError

    def delete_override(self, *, employee_id: int, pay_period: str) -> bool:
        raise NotImplementedError
