from __future__ import annotations

from flask import Flask, g, request

from ..common.web import current_employee, json_body, login_required, success
from ..container import Container
from ..core.exceptions import ForbiddenError, NotFoundError
from ..employees.permissions import LEAVE_APPROVE, has_permission


def register(app: Flask, container: Container) -> None:
    service = container.leave_service

    def _can_view(employee_id: int) -> bool:
        actor = current_employee()
        if employee_id == actor.employee_id:
            return True
        owner = container.employees_repo.get_by_id(employee_id)
        if not owner or owner.organization_id != actor.organization_id:
            raise NotFoundError("Employee not found")
        return has_permission(g.user, LEAVE_APPROVE) or service.can_manage(owner, actor)

    @app.route("/api/leave/requests", methods=["GET"], endpoint="leave_list")
    @login_required
    def leave_list():
        actor = current_employee()
        employee_id = request.args.get("employeeId", type=int)
        if not has_permission(g.user, LEAVE_APPROVE):
            employee_id = actor.employee_id
        data = service.list_requests(
            organization_id=actor.organization_id,
            status=request.args.get("status"),
            employee_id=employee_id,
            leave_type=request.args.get("leaveType"),
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
        )
        return success(data)

    @app.route("/api/leave/requests/<int:request_id>", methods=["GET"], endpoint="leave_get")
    @login_required
    def leave_get(request_id: int):
        req = service.get(request_id=request_id, organization_id=current_employee().organization_id)
        if not _can_view(req.employee_id):
            raise ForbiddenError("You cannot view this leave request")
        return success(req)

    @app.route("/api/leave/requests", methods=["POST"], endpoint="leave_create")
    @login_required
    def leave_create():
        body = json_body()
        created = service.create(
            employee_id=current_employee().employee_id,
            leave_type=body.get("leaveType"),
            start_date=body.get("startDate"),
            end_date=body.get("endDate"),
            reason=body.get("reason"),
        )
        return success(created, status=201, message="Leave request submitted successfully")

    @app.route("/api/leave/requests/<int:request_id>", methods=["PATCH", "PUT"], endpoint="leave_update")
    @login_required
    def leave_update(request_id: int):
        body = json_body()
        updated = service.update(
            request_id=request_id,
            actor_employee_id=current_employee().employee_id,
            leave_type=body.get("leaveType"),
            start_date=body.get("startDate"),
            end_date=body.get("endDate"),
            reason=body.get("reason"),
        )
        return success(updated, message="Leave request updated successfully")

    @app.route("/api/leave/requests/<int:request_id>/approve", methods=["POST"], endpoint="leave_approve")
    @login_required
    def leave_approve(request_id: int):
        decided = service.approve(
            request_id=request_id,
            approver_employee_id=current_employee().employee_id,
            note=json_body().get("note"),
        )
        return success(decided, message="Leave request approved successfully")

    @app.route("/api/leave/requests/<int:request_id>/reject", methods=["POST"], endpoint="leave_reject")
    @login_required
    def leave_reject(request_id: int):
        decided = service.reject(
            request_id=request_id,
            approver_employee_id=current_employee().employee_id,
            reason=json_body().get("reason"),
        )
        return success(decided, message="Leave request rejected successfully")

    @app.route("/api/leave/requests/<int:request_id>/cancel", methods=["POST"], endpoint="leave_cancel")
    @login_required
    def leave_cancel(request_id: int):
        cancelled = service.cancel(request_id=request_id, actor_employee_id=current_employee().employee_id)
        return success(cancelled, message="Leave request cancelled successfully")

    @app.route("/api/leave/balance", methods=["GET"], endpoint="leave_balance")
    @login_required
    def leave_balance():
        employee_id = request.args.get("employeeId", type=int) or current_employee().employee_id
        if not _can_view(employee_id):
            raise ForbiddenError("You cannot view this leave balance")
        balances = service.get_balance(
            employee_id=employee_id,
            organization_id=current_employee().organization_id,
            as_of=request.args.get("asOf"),
        )
        return success(balances)
