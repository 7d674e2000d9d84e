from __future__ import annotations

import pytest

from hrm_system.core.exceptions import ConflictError
from hrm_system.main import create_app


@pytest.fixture
def client(container, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=container)
    return app.test_client()


def _as(user_id):
    return {"X-User-Id": str(user_id)}


def _submit_sick_leave(client, user_id=300, start="2024-01-10", end="2024-01-15"):
    return client.post(
        "/api/leave/requests",
        json={"leaveType": "sick", "startDate": start, "endDate": end, "reason": "Flu"},
        headers=_as(user_id),
    )


@pytest.mark.parametrize("headers", [{}, {"X-User-Id": "abc"}, {"X-User-Id": "12345"}])
def test_requests_without_a_known_actor_are_rejected(client, headers):
    resp = client.get("/api/leave/requests", headers=headers)

    assert resp.status_code == 401
    assert resp.get_json() == {"success": False, "error": "Authentication required"}


def test_unknown_route_returns_json_error(client):
    resp = client.get("/api/nope", headers=_as(300))

    assert resp.status_code == 404
    assert resp.get_json()["success"] is False


def test_submit_then_overlap_is_rejected(client):
    created = _submit_sick_leave(client)

    assert created.status_code == 201
    body = created.get_json()
    assert body["success"] is True
    assert body["message"] == "Leave request submitted successfully"
    assert body["data"]["days_requested"] == 4
    assert body["data"]["status"] == "pending"

    clash = _submit_sick_leave(client, start="2024-01-12", end="2024-01-12")
    assert clash.status_code == 400
    assert "overlaps" in clash.get_json()["error"]


def test_only_manager_or_approver_can_decide(client):
    request_id = _submit_sick_leave(client).get_json()["data"]["request_id"]

    denied = client.post(f"/api/leave/requests/{request_id}/approve", json={}, headers=_as(400))
    assert denied.status_code == 403

    approved = client.post(f"/api/leave/requests/{request_id}/approve", json={"note": "Get well"}, headers=_as(200))
    assert approved.status_code == 200
    assert approved.get_json()["data"]["status"] == "approved"
    assert approved.get_json()["data"]["decision_note"] == "Get well"


def test_plain_employees_only_list_their_own_requests(client):
    _submit_sick_leave(client)

    own = client.get("/api/leave/requests", headers=_as(300)).get_json()["data"]
    other = client.get("/api/leave/requests?employeeId=30", headers=_as(400)).get_json()["data"]
    hr = client.get("/api/leave/requests?employeeId=30", headers=_as(100)).get_json()["data"]

    assert own["pagination"]["total"] == 1
    assert other["items"] == []
    assert hr["pagination"]["total"] == 1


def test_balance_includes_legacy_alias_and_is_private(client):
    resp = client.get("/api/leave/balance", headers=_as(300))

    data = resp.get_json()["data"]
    assert resp.status_code == 200
    assert data["casual"] == data["personal"]
    assert data["sick"]["remaining"] == 10

    assert client.get("/api/leave/balance?employeeId=30", headers=_as(400)).status_code == 403
    assert client.get("/api/leave/balance?employeeId=30", headers=_as(200)).status_code == 200


def test_payroll_generation_requires_permission(client):
    denied = client.post("/api/payroll/generate", json={"payPeriod": "2024-01"}, headers=_as(300))
    assert denied.status_code == 403
    assert denied.get_json()["error"] == "Insufficient permissions"

    resp = client.post("/api/payroll/generate", json={"payPeriod": "2024-01"}, headers=_as(100))
    body = resp.get_json()
    assert resp.status_code == 201
    assert body["message"] == "Generated payroll for 4 employees"
    nets = {r["employee_id"]: r["net_salary"] for r in body["data"]["records"]}
    assert nets[30] == 1050.0


def test_payroll_payment_needs_details(client):
    generated = client.post(
        "/api/payroll/generate",
        json={"payPeriod": "2024-01", "employeeIds": [30]},
        headers=_as(100),
    ).get_json()
    payroll_id = generated["data"]["records"][0]["payroll_id"]
    url = f"/api/payroll/records/{payroll_id}/status"

    assert client.patch(url, json={"status": "processed"}, headers=_as(100)).status_code == 200
    missing = client.patch(url, json={"status": "paid", "paidAt": "2024-02-01T09:00:00"}, headers=_as(100))
    assert missing.status_code == 400

    paid = client.patch(
        url,
        json={"status": "paid", "paidAt": "2024-02-01T09:00:00", "paymentMethod": "bank_transfer"},
        headers=_as(100),
    )
    assert paid.status_code == 200
    assert paid.get_json()["message"] == "Payroll status updated to paid"

    slips = client.get("/api/payroll/payslips", headers=_as(300)).get_json()["data"]
    assert [s["status"] for s in slips] == ["paid"]
    assert client.get(f"/api/payroll/records/{payroll_id}", headers=_as(400)).status_code == 403


def test_notifications_inbox(client):
    _submit_sick_leave(client)

    inbox = client.get("/api/notifications", headers=_as(200)).get_json()["data"]
    assert [n["title"] for n in inbox] == ["New leave request"]

    nid = inbox[0]["notification_id"]
    assert client.patch(f"/api/notifications/{nid}/read", headers=_as(300)).status_code == 403
    assert client.patch(f"/api/notifications/{nid}/read", headers=_as(200)).status_code == 200
    assert client.get("/api/notifications?unread=true", headers=_as(200)).get_json()["data"] == []


def test_leave_policy_settings(client):
    payload = {"policies": {"sick": {"annualEntitlementDays": 12}}}

    assert client.put("/api/settings/leave-policy", json=payload, headers=_as(300)).status_code == 403

    saved = client.put("/api/settings/leave-policy", json=payload, headers=_as(100))
    assert saved.status_code == 200
    assert saved.get_json()["data"]["leave"]["policies"]["sick"]["annualEntitlementDays"] == 12

    read = client.get("/api/settings/leave-policy", headers=_as(300)).get_json()["data"]
    assert read["leave"]["policies"]["sick"]["annualEntitlementDays"] == 12


def test_balance_of_another_organisations_employee_is_not_found(client):
    resp = client.get("/api/leave/balance?employeeId=30", headers=_as(900))

    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "error": "Employee not found"}


def test_busy_employee_lock_returns_conflict(client, leave_repo):
    def busy(employee_id):
        raise ConflictError("Leave request is being modified concurrently, please retry")

    leave_repo.employee_lock = busy

    resp = _submit_sick_leave(client)

    assert resp.status_code == 400
    assert resp.get_json()["error"] == "Leave request is being modified concurrently, please retry"
