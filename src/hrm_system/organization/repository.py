from __future__ import annotations

from typing import Any, Optional, Protocol


class OrganizationSettingsRepository(Protocol):
    """Organisation-scoped JSON settings blobs (leave policy, payroll config)."""

    def get_leave_policy_json(self, organization_id: int) -> Optional[Any]:
        raise NotImplementedError

    def save_leave_policy_json(self, organization_id: int, data: dict) -> None:
        raise NotImplementedError

    def get_payroll_config_json(self, organization_id: int) -> Optional[Any]:
        raise NotImplementedError

    def save_payroll_config_json(self, organization_id: int, data: dict) -> None:
        raise NotImplementedError
