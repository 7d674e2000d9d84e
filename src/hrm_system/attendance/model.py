from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class AttendanceSummary:
    """Read-model for payroll: attendance aggregated over one pay period."""

    days_worked: int = 0
    total_overtime: Decimal = Decimal("0")
