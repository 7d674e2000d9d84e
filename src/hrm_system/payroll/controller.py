from __future__ import annotations

from flask import Flask, g, request

from ..common.web import current_employee, json_body, login_required, permission_required, success
from ..container import Container
from ..core.exceptions import ForbiddenError
from ..employees.permissions import (
    PAYROLL_APPROVE,
    PAYROLL_CONFIGURE,
    PAYROLL_GENERATE,
    PAYROLL_VIEW,
    has_permission,
)
from .config import payroll_config_to_json


def register(app: Flask, container: Container) -> None:
    service = container.payroll_service

    def _org() -> int:
        return current_employee().organization_id

    @app.route("/api/payroll/records", methods=["GET"], endpoint="payroll_list")
    @permission_required(PAYROLL_VIEW)
    def payroll_list():
        data = service.list_records(
            organization_id=_org(),
            pay_period=request.args.get("payPeriod"),
            status=request.args.get("status"),
            employee_id=request.args.get("employeeId", type=int),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
        return success(data)

    @app.route("/api/payroll/records/<int:payroll_id>", methods=["GET"], endpoint="payroll_get")
    @login_required
    def payroll_get(payroll_id: int):
        record = service.get(payroll_id=payroll_id, organization_id=_org())
        if record.employee_id != current_employee().employee_id and not has_permission(g.user, PAYROLL_VIEW):
            raise ForbiddenError("You cannot view this payroll record")
        return success(record)

    @app.route("/api/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    @permission_required(PAYROLL_GENERATE)
    def payroll_generate():
        body = json_body()
        result = service.generate(
            organization_id=_org(),
            pay_period=body.get("payPeriod"),
            employee_ids=body.get("employeeIds"),
        )
        return success(result, status=201, message=result.message)

    @app.route("/api/payroll/records/<int:payroll_id>/status", methods=["PATCH", "PUT"], endpoint="payroll_status")
    @permission_required(PAYROLL_APPROVE)
    def payroll_status(payroll_id: int):
        body = json_body()
        record = service.update_status(
            payroll_id=payroll_id,
            status=body.get("status"),
            organization_id=_org(),
            actor_user_id=g.user.user_id,
            paid_at=body.get("paidAt"),
            payment_method=body.get("paymentMethod"),
            payment_reference=body.get("paymentReference"),
        )
        return success(record, message=f"Payroll status updated to {record.status.value}")

    @app.route("/api/payroll/payslips", methods=["GET"], endpoint="payroll_my_payslips")
    @login_required
    def payroll_my_payslips():
        actor = current_employee()
        return success(service.list_payslips(employee_id=actor.employee_id, organization_id=actor.organization_id))

    @app.route("/api/payroll/payslips/<int:employee_id>", methods=["GET"], endpoint="payroll_payslips")
    @login_required
    def payroll_payslips(employee_id: int):
        if employee_id != current_employee().employee_id and not has_permission(g.user, PAYROLL_VIEW):
            raise ForbiddenError("You cannot view these payslips")
        return success(service.list_payslips(employee_id=employee_id, organization_id=_org()))

    @app.route("/api/payroll/summary", methods=["GET"], endpoint="payroll_summary")
    @permission_required(PAYROLL_VIEW)
    def payroll_summary():
        return success(service.period_summary(organization_id=_org(), pay_period=request.args.get("payPeriod")))

    @app.route(
        "/api/payroll/overrides/<int:employee_id>/<pay_period>",
        methods=["PUT"],
        endpoint="payroll_override_put",
    )
    @permission_required(PAYROLL_CONFIGURE)
    def payroll_override_put(employee_id: int, pay_period: str):
        data = service.set_override(
            employee_id=employee_id,
            pay_period=pay_period,
            config=json_body(),
            organization_id=_org(),
        )
        return success(data)

    @app.route(
        "/api/payroll/overrides/<int:employee_id>/<pay_period>",
        methods=["DELETE"],
        endpoint="payroll_override_delete",
    )
    @permission_required(PAYROLL_CONFIGURE)
    def payroll_override_delete(employee_id: int, pay_period: str):
        service.delete_override(employee_id=employee_id, pay_period=pay_period, organization_id=_org())
        return success(None, message="Payroll override removed")

    @app.route("/api/payroll/config", methods=["GET"], endpoint="payroll_config_get")
    @permission_required(PAYROLL_VIEW)
    def payroll_config_get():
        config = container.settings_service.payroll_config(organization_id=_org())
        return success(payroll_config_to_json(config))

    @app.route("/api/payroll/config", methods=["PUT"], endpoint="payroll_config_put")
    @permission_required(PAYROLL_CONFIGURE)
    def payroll_config_put():
        config = container.settings_service.update_payroll_config(organization_id=_org(), raw=json_body())
        return success(payroll_config_to_json(config), message="Payroll configuration saved")
