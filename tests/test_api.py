from __future__ import annotations

import jwt
import pytest

from src.hrms_system.hrms_system.container import Container
from src.hrms_system.hrms_system.main import create_app

SECRET = "test-jwt-secret"


def _token(role: str, *, sub: str = "1", name: str = "Ayesha Admin", secret: str = SECRET) -> str:
    return jwt.encode({"sub": sub, "name": name, "role": role}, secret, algorithm="HS256")


def _auth(role: str, **kwargs) -> dict:
    return {"Authorization": f"Bearer {_token(role, **kwargs)}"}


@pytest.fixture
def client(staffed, monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    container = Container(
        conn=None,
        task_service=staffed.task_service,
        progress_service=staffed.progress_service,
        employee_service=staffed.employee_service,
        transition_service=staffed.transition_service,
        leave_balance_service=staffed.leave_balance_service,
        leave_policy_service=staffed.leave_policy_service,
        leave_application_service=staffed.leave_application_service,
        disciplinary_service=staffed.disciplinary_service,
    )
    app = create_app(container=container)
    return app.test_client()


ASSIGN = {
    "employees": [1],
    "assignmentDate": "2024-01-01",
    "deadline": "2024-01-10",
    "daysForCompletion": 9,
    "taskDescription": "Inventory count",
}


def test_missing_token_is_401(client):
    res = client.get("/api/work-progress-reports")
    assert res.status_code == 401
    assert res.get_json() == {"message": "Not authorized, no token"}


@pytest.mark.parametrize(
    "headers",
    [
        {"Authorization": "Token abc"},
        {"Authorization": f"Bearer {_token('admin', secret='wrong-secret')}"},
        {"Authorization": f"Bearer {_token('janitor')}"},
    ],
)
def test_bad_tokens_are_401(client, headers):
    assert client.get("/api/work-progress-reports", headers=headers).status_code == 401


def test_supervisor_cannot_assign(client):
    res = client.post("/api/work-progress-reports", json=ASSIGN, headers=_auth("supervisor", sub="2"))
    assert res.status_code == 403
    assert res.get_json() == {"message": "You do not have permission for this action"}


def test_task_flow_over_http(client):
    admin = _auth("admin")
    supervisor = _auth("supervisor", sub="2", name="Sam Supervisor")

    res = client.post("/api/work-progress-reports", json=ASSIGN, headers=admin)
    assert res.status_code == 201
    report_id = res.get_json()["id"]

    assert client.put(f"/api/work-progress-reports/{report_id}/start", headers=supervisor).status_code == 200

    conflict = client.put(f"/api/work-progress-reports/{report_id}/start", headers=supervisor)
    assert conflict.status_code == 400
    assert "Current status: In Progress" in conflict.get_json()["message"]

    done = client.put(f"/api/work-progress-reports/{report_id}/complete", headers=supervisor)
    assert done.get_json()["status"].startswith("Completed")

    remark = client.post(
        f"/api/work-progress-reports/{report_id}/remarks",
        json={"date": "2024-01-05", "text": "Counted twice"},
        headers=supervisor,
    )
    assert remark.status_code == 200
    assert remark.get_json()["remarks"][0]["addedBy"] == {"user": 2, "name": "Sam Supervisor"}

    closed = client.put(
        f"/api/work-progress-reports/{report_id}/close",
        json={"closingRemarks": "Fine", "rating": 4},
        headers=admin,
    )
    assert closed.get_json()["status"].startswith("Closed")

    listed = client.get("/api/work-progress-reports?limit=5", headers=supervisor).get_json()
    assert listed["pagination"]["totalReports"] == 1


def test_unknown_report_is_404(client):
    res = client.get("/api/work-progress-reports/999", headers=_auth("admin"))
    assert res.status_code == 404
    assert res.get_json() == {"message": "Work progress report not found"}


def test_unknown_route_is_json_404(client):
    res = client.get("/api/nothing-here", headers=_auth("admin"))
    assert res.status_code == 404
    assert "message" in res.get_json()


def test_search_employees_endpoint(client):
    res = client.get("/api/work-progress-reports/search-employees?q=sara", headers=_auth("supervisor", sub="2"))
    assert res.get_json() == [{"id": 2, "fullName": "Sara Ahmed", "employeeID": "TAJ-0002"}]


def test_employee_progress_endpoint_rejects_bad_period(client):
    res = client.get(
        "/api/work-progress-reports/employee-progress?periodType=weekly", headers=_auth("admin")
    )
    assert res.status_code == 400


def test_position_change_endpoint(client, staffed):
    res = client.patch(
        "/api/employees/1/position",
        json={"newPosition": 3, "reason": "Reorg"},
        headers=_auth("admin"),
    )
    assert res.status_code == 200
    assert res.get_json()["employee"]["position"]["id"] == 3
    assert staffed.positions.get_by_id(3).hired_employees == 1


def test_position_change_is_admin_only(client):
    res = client.patch("/api/employees/1/position", json={"newPosition": 3}, headers=_auth("supervisor", sub="2"))
    assert res.status_code == 403


def test_full_position_is_400(client):
    res = client.patch("/api/employees/1/position", json={"newPosition": 4}, headers=_auth("admin"))
    assert res.status_code == 400
    assert res.get_json()["message"].startswith("Employee limit reached for Architect position")


def test_leave_policy_created_by_supervisor_is_pending(client):
    res = client.post(
        "/api/leave-policies",
        json={"name": "Field Staff", "entitlements": [{"leaveType": 2, "days": 4}]},
        headers=_auth("supervisor", sub="2", name="Sam Supervisor"),
    )
    assert res.status_code == 201
    assert res.get_json()["status"] == "Pending"


def test_disciplinary_action_create_and_fetch(client):
    headers = _auth("supervisor", sub="2", name="Sam Supervisor")
    res = client.post(
        "/api/disciplinary-actions",
        json={"employee": 1, "warningType": 1, "description": "Late", "actionDate": "2099-01-01"},
        headers=headers,
    )
    assert res.status_code == 201
    action_id = res.get_json()["id"]

    fetched = client.get(f"/api/disciplinary-actions/{action_id}", headers=headers).get_json()
    assert fetched["status"] == "Active"


def test_employee_progress_endpoint_rejects_out_of_range_year(client):
    res = client.get("/api/work-progress-reports/employee-progress?year=9999", headers=_auth("admin"))
    assert res.status_code == 400
    assert res.get_json() == {"message": "Invalid year: 9999"}


def test_disciplinary_toggle_and_delete(client):
    headers = _auth("admin")
    action_id = client.post(
        "/api/disciplinary-actions",
        json={"employee": 1, "warningType": 1, "description": "Late", "actionDate": "2099-01-01"},
        headers=headers,
    ).get_json()["id"]

    toggled = client.patch(f"/api/disciplinary-actions/{action_id}/status", headers=headers)
    assert toggled.get_json()["disciplinaryAction"]["status"] == "Inactive"

    edited = client.put(f"/api/disciplinary-actions/{action_id}", json={"description": "Very late"}, headers=headers)
    assert edited.get_json()["description"] == "Very late"

    supervisor = _auth("supervisor", sub="2", name="Sam Supervisor")
    assert client.delete(f"/api/disciplinary-actions/{action_id}", headers=supervisor).status_code == 403
    assert client.delete(f"/api/disciplinary-actions/{action_id}", headers=headers).status_code == 200
    assert client.get(f"/api/disciplinary-actions/{action_id}", headers=headers).status_code == 404


def test_leave_application_flow_over_http(client, staffed):
    supervisor = _auth("supervisor", sub="2", name="Sam Supervisor")
    res = client.post(
        "/api/leave-applications",
        json={"employee": 1, "leaveType": 1, "dateRanges": [{"startDate": "2030-08-05", "endDate": "2030-08-06"}]},
        headers=supervisor,
    )
    assert res.status_code == 201
    application = res.get_json()
    assert application["status"] == "Pending"
    assert staffed.balances.find(1, 1, 2030).used_days == 2

    assert client.patch(f"/api/leave-applications/{application['id']}/approve", headers=supervisor).status_code == 403

    rejected = client.patch(f"/api/leave-applications/{application['id']}/reject", headers=_auth("admin"))
    assert rejected.get_json()["leaveApplication"]["status"] == "Rejected"
    assert staffed.balances.find(1, 1, 2030).used_days == 0

    listed = client.get("/api/leave-applications?limit=0", headers=supervisor).get_json()
    assert listed["pagination"]["totalApplications"] == 1
    assert listed["pagination"]["limit"] == 10

    balance = client.get("/api/leave-applications/balance/1", headers=supervisor).get_json()
    assert [b["totalDays"] for b in balance["balances"]] == [12]

    assert client.delete(f"/api/leave-applications/{application['id']}", headers=supervisor).status_code == 403
    assert client.delete(f"/api/leave-applications/{application['id']}", headers=_auth("admin")).status_code == 200
