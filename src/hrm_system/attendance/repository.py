from __future__ import annotations

from datetime import date
from typing import Protocol

from .model import AttendanceSummary


class AttendanceRepository(Protocol):
    def summarize_period(self, *, employee_id: int, start_date: date, end_date: date) -> AttendanceSummary:
        """Count check-ins and sum overtime hours in [start_date, end_date)."""

        raise NotImplementedError
