from __future__ import annotations

import logging
from typing import Any

from ..core.exceptions import ValidationError
from ..leave.policy import LeavePolicySettings, leave_policy_to_json, load_json_object, resolve_leave_policy
from ..payroll.config import PayrollConfig, payroll_config_to_json, resolve_payroll_config, validate_payroll_config
from .repository import OrganizationSettingsRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and stores the organisation-scoped leave policy and payroll config."""

    def __init__(self, settings: OrganizationSettingsRepository):
        self._settings = settings

    def leave_policy(self, *, organization_id: int) -> LeavePolicySettings:
        return resolve_leave_policy(self._settings.get_leave_policy_json(int(organization_id)))

    def payroll_config(self, *, organization_id: int) -> PayrollConfig:
        return resolve_payroll_config(self._settings.get_payroll_config_json(int(organization_id)))

    def update_leave_policy(self, *, organization_id: int, raw: Any) -> LeavePolicySettings:
        if not load_json_object(raw):
            raise ValidationError("Leave policy must be a JSON object")

        # Unknown or malformed entries fall back to defaults; what is stored is complete.
        settings = resolve_leave_policy(raw)
        self._settings.save_leave_policy_json(int(organization_id), leave_policy_to_json(settings))
        logger.info("Leave policy updated for organization %s", organization_id)
        return settings

    def update_payroll_config(self, *, organization_id: int, raw: Any) -> PayrollConfig:
        config = validate_payroll_config(raw, require_rules=True)
        self._settings.save_payroll_config_json(int(organization_id), payroll_config_to_json(config))
        logger.info("Payroll config updated for organization %s", organization_id)
        return resolve_payroll_config(payroll_config_to_json(config))
