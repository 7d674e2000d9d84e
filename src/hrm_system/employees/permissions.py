from __future__ import annotations

from typing import Optional

from .model import UserAccount

LEAVE_APPROVE = "leave_requests.approve"
PAYROLL_VIEW = "payroll.view"
PAYROLL_APPROVE = "payroll.approve"
PAYROLL_GENERATE = "payroll.generate"
PAYROLL_CONFIGURE = "payroll.configure"
SETTINGS_MANAGE = "settings.manage"


def has_permission(user: Optional[UserAccount], permission: str) -> bool:
    """Inactive accounts hold no permissions."""
    if not user or not user.is_active:
        return False
    return permission in user.permissions
