from __future__ import annotations

from flask import Flask

from ..common.web import current_employee, json_body, login_required, permission_required, success
from ..container import Container
from ..employees.permissions import SETTINGS_MANAGE
from ..leave.policy import leave_policy_to_json


def register(app: Flask, container: Container) -> None:
    service = container.settings_service

    @app.route("/api/settings/leave-policy", methods=["GET"], endpoint="settings_leave_policy_get")
    @login_required
    def settings_leave_policy_get():
        settings = service.leave_policy(organization_id=current_employee().organization_id)
        return success(leave_policy_to_json(settings))

    @app.route("/api/settings/leave-policy", methods=["PUT"], endpoint="settings_leave_policy_put")
    @permission_required(SETTINGS_MANAGE)
    def settings_leave_policy_put():
        settings = service.update_leave_policy(
            organization_id=current_employee().organization_id,
            raw=json_body(),
        )
        return success(leave_policy_to_json(settings), message="Leave policy saved")
