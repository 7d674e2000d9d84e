from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from ..core.enums import EmployeeStatus


@dataclass(frozen=True)
class Employee:
    """Domain entity: an employee record within one organisation."""

    employee_id: int
    organization_id: int
    first_name: str
    last_name: str
    user_id: Optional[int] = None
    manager_id: Optional[int] = None
    hire_date: Optional[date] = None
    salary: Decimal = Decimal("0")
    status: EmployeeStatus = EmployeeStatus.ACTIVE

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class UserAccount:
    """Login account linked to an employee, with its role's flat permission list."""

    user_id: int
    role_name: str
    permissions: frozenset[str] = field(default_factory=frozenset)
    is_active: bool = True
