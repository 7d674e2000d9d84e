from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Employee, UserAccount


class EmployeeRepository(Protocol):
    """Identity/permission port used by the leave and payroll services.

    Note (DIP): services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_user_id(self, user_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_user(self, user_id: int) -> Optional[UserAccount]:
        raise NotImplementedError

    def list_user_ids_with_permission(
        self,
        *,
        permission: str,
        organization_id: int,
        limit: int,
    ) -> Sequence[int]:
        """Active users of the organisation whose role grants ``permission``."""

        raise NotImplementedError

    def list_active(
        self,
        *,
        organization_id: int,
        employee_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[Employee]:
        raise NotImplementedError
