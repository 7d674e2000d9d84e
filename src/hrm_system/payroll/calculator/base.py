from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal

from ...attendance.model import AttendanceSummary
from ..config import PayrollConfig
from ..model import PayrollCalculation


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def calculate(
        self,
        *,
        base_salary: Decimal,
        config: PayrollConfig,
        attendance: AttendanceSummary,
    ) -> PayrollCalculation:
        raise NotImplementedError
