from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from ...attendance.model import AttendanceSummary
from ...core.constants import MONEY_PLACES
from ...core.enums import RuleType
from ..config import PayrollConfig, PayrollRule
from ..model import BreakdownLine, PayrollCalculation
from .base import PayrollCalculator

_CENT = Decimal(1).scaleb(-MONEY_PLACES)


def round_money(value: Decimal) -> Decimal:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def rule_amount(rule: PayrollRule, base_salary: Decimal) -> Decimal:
    if rule.type == RuleType.FIXED:
        return round_money(rule.value)
    return round_money(base_salary * rule.value / Decimal(100))


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: fixed amounts as-is, percentages of base salary; net = base + allowances - deductions."""

    @staticmethod
    def _apply(rules: Iterable[PayrollRule], base_salary: Decimal) -> tuple[Decimal, tuple[BreakdownLine, ...]]:
        lines = tuple(BreakdownLine(name=r.name, amount=rule_amount(r, base_salary)) for r in rules)
        return sum((line.amount for line in lines), Decimal("0.00")), lines

    def calculate(self, *, base_salary: Decimal, config: PayrollConfig, attendance: AttendanceSummary) -> PayrollCalculation:
        base = round_money(Decimal(base_salary))
        allowances, allowance_lines = self._apply(config.allowances, base)
        deductions, deduction_lines = self._apply(config.deductions, base)

        return PayrollCalculation(
            base_salary=base,
            allowances=allowances,
            deductions=deductions,
            net_salary=base + allowances - deductions,
            allowances_breakdown=allowance_lines,
            deductions_breakdown=deduction_lines,
            attendance_summary=attendance,
        )
