from __future__ import annotations

from enum import Enum


class LeaveType(str, Enum):
    """Leave categories with a per-organisation policy."""

    ANNUAL = "annual"
    SICK = "sick"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    UNPAID = "unpaid"


class LeaveStatus(str, Enum):
    """Approval lifecycle of a leave request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class PayrollStatus(str, Enum):
    DRAFT = "draft"
    PROCESSED = "processed"
    PAID = "paid"


class RuleType(str, Enum):
    """How an allowance/deduction rule turns its value into an amount."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    TERMINATED = "terminated"
