from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.hrms_system.hrms_system.common.pagination import PageRequest
from src.hrms_system.hrms_system.core.enums import DisciplinaryStatus
from src.hrms_system.hrms_system.core.exceptions import NotFoundError, ValidationError

ISSUED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "now, status, remaining",
    [
        (utc(2024, 1, 1), "Active", 90),
        (utc(2024, 3, 1), "Active", 30),
        (utc(2024, 3, 29, 12), "Active", 2),
        (utc(2024, 3, 30, 12), "Active", 1),
        (utc(2024, 3, 31), "Inactive", 0),
        (utc(2024, 6, 1), "Inactive", 0),
    ],
)
def test_status_and_remaining_days_follow_the_clock(staffed, now, status, remaining):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    data = staffed.disciplinary_service.get(action_id, now=now)

    assert data["status"] == status
    assert data["remainingDays"] == remaining


def test_expired_rows_are_written_back_in_one_batch(staffed):
    old = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)
    older = staffed.actions.add(employee_id=2, warning_type_id=2, action_date=utc(2023, 11, 1))
    fresh = staffed.actions.add(employee_id=2, warning_type_id=1, action_date=utc(2024, 3, 20))

    data = staffed.disciplinary_service.list_actions(page=PageRequest(1, 10), now=utc(2024, 4, 15))

    statuses = {a["id"]: a["status"] for a in data["disciplinaryActions"]}
    assert statuses == {old: "Inactive", older: "Inactive", fresh: "Active"}
    assert len(staffed.actions.write_backs) == 1
    assert sorted(staffed.actions.write_backs[0]) == [old, older]
    assert staffed.actions.get_by_id(old).status == DisciplinaryStatus.INACTIVE
    assert data["pagination"]["totalActions"] == 3


def test_stored_inactive_is_not_rewritten(staffed):
    action_id = staffed.actions.add(
        employee_id=1, warning_type_id=1, action_date=ISSUED, status=DisciplinaryStatus.INACTIVE
    )

    data = staffed.disciplinary_service.get(action_id, now=utc(2024, 1, 5))

    assert data["status"] == "Inactive"
    assert data["remainingDays"] == 0
    assert staffed.actions.write_backs == []


def test_failed_write_back_still_reports_derived_status(staffed, monkeypatch):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    def boom(ids):
        raise RuntimeError("database is read-only")

    monkeypatch.setattr(staffed.actions, "mark_inactive", boom)

    assert staffed.disciplinary_service.get(action_id, now=utc(2024, 5, 1))["status"] == "Inactive"


def test_create_returns_active_action(staffed, supervisor):
    data = staffed.disciplinary_service.create(
        supervisor,
        {"employee": "1", "warningType": 2, "description": " Shouted at client ", "actionDate": "2024-03-01"},
        now=utc(2024, 3, 1),
    )

    assert data["status"] == "Active"
    assert data["remainingDays"] == 90
    assert data["description"] == "Shouted at client"
    assert data["warningType"] == {"id": 2, "name": "Misconduct", "severity": "High"}
    assert data["employee"] == {"id": 1, "fullName": "Ali Khan", "employeeID": "TAJ-0001"}
    assert data["createdBy"] == "Sam Supervisor"


@pytest.mark.parametrize(
    "overrides, error, message",
    [
        ({"employee": None}, ValidationError, "Employee is required"),
        ({"employee": "abc"}, ValidationError, "Invalid employee ID"),
        ({"employee": 99}, NotFoundError, "Employee not found"),
        ({"warningType": ""}, ValidationError, "Warning type is required"),
        ({"warningType": 0}, ValidationError, "Invalid warning type ID"),
        ({"warningType": 7}, NotFoundError, "Warning type not found"),
        ({"description": "  "}, ValidationError, "Description is required"),
        ({"actionDate": None}, ValidationError, "Action date is required"),
    ],
)
def test_create_validation(staffed, admin, overrides, error, message):
    payload = {"employee": 1, "warningType": 1, "description": "Late again", "actionDate": "2024-03-01"}
    payload.update(overrides)

    with pytest.raises(error) as exc:
        staffed.disciplinary_service.create(admin, payload, now=utc(2024, 3, 1))

    assert str(exc.value) == message
    assert staffed.actions.items == {}


def test_get_unknown_action(staffed):
    with pytest.raises(NotFoundError, match="Disciplinary action not found"):
        staffed.disciplinary_service.get(12)


def test_update_fields_and_new_date_restarts_window(staffed):
    action_id = staffed.actions.add(
        employee_id=1, warning_type_id=1, action_date=ISSUED, status=DisciplinaryStatus.INACTIVE
    )

    data = staffed.disciplinary_service.update(
        action_id,
        {"employee": 2, "warningType": "2", "description": " Rude ", "actionDate": "2024-05-01"},
        now=utc(2024, 5, 11),
    )

    assert data["employee"] == {"id": 2, "fullName": "Sara Ahmed", "employeeID": "TAJ-0002"}
    assert data["warningType"]["name"] == "Misconduct"
    assert data["description"] == "Rude"
    assert data["status"] == "Active"
    assert data["remainingDays"] == 80
    assert data["updatedAt"] == utc(2024, 5, 11).isoformat()


def test_update_to_old_date_stores_inactive(staffed):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=utc(2024, 5, 1))

    data = staffed.disciplinary_service.update(action_id, {"actionDate": "2024-01-01"}, now=utc(2024, 5, 11))

    assert data["status"] == "Inactive"
    assert staffed.actions.get_by_id(action_id).status == DisciplinaryStatus.INACTIVE
    assert staffed.actions.write_backs == []


def test_update_without_changes_keeps_row(staffed):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    data = staffed.disciplinary_service.update(action_id, {}, now=utc(2024, 1, 2))

    assert data["updatedAt"] == ISSUED.isoformat()


@pytest.mark.parametrize(
    "payload, error, message",
    [
        ({"employee": 99}, NotFoundError, "Employee not found"),
        ({"warningType": 7}, NotFoundError, "Warning type not found"),
        ({"description": ""}, ValidationError, "Description is required"),
        ({"actionDate": "someday"}, ValidationError, "Action date is not a valid date"),
    ],
)
def test_update_validation(staffed, payload, error, message):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    with pytest.raises(error) as exc:
        staffed.disciplinary_service.update(action_id, payload, now=utc(2024, 1, 2))

    assert str(exc.value) == message
    assert staffed.actions.get_by_id(action_id).updated_at == ISSUED


def test_toggle_deactivates_and_reactivates(staffed):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    off = staffed.disciplinary_service.toggle_status(action_id, now=utc(2024, 2, 1))
    assert off["message"] == "Disciplinary action deactivated successfully"
    assert off["disciplinaryAction"]["status"] == "Inactive"

    on = staffed.disciplinary_service.toggle_status(action_id, now=utc(2024, 2, 2))
    assert on["message"] == "Disciplinary action activated successfully"
    assert on["disciplinaryAction"]["status"] == "Active"
    assert on["disciplinaryAction"]["remainingDays"] == 58


def test_expired_action_cannot_be_reactivated(staffed):
    action_id = staffed.actions.add(
        employee_id=1, warning_type_id=1, action_date=ISSUED, status=DisciplinaryStatus.INACTIVE
    )

    with pytest.raises(ValidationError, match="has expired and cannot be reactivated"):
        staffed.disciplinary_service.toggle_status(action_id, now=utc(2024, 4, 1))
    assert staffed.actions.get_by_id(action_id).status == DisciplinaryStatus.INACTIVE


def test_toggle_on_lapsed_active_row_is_rejected(staffed):
    action_id = staffed.actions.add(employee_id=1, warning_type_id=1, action_date=ISSUED)

    with pytest.raises(ValidationError):
        staffed.disciplinary_service.toggle_status(action_id, now=utc(2024, 4, 1))


def test_delete_action(staffed):
    action_id = staffed.actions.add(employee_id=2, warning_type_id=2, action_date=ISSUED)

    data = staffed.disciplinary_service.delete(action_id)

    assert data == {
        "message": "Disciplinary action deleted successfully",
        "deletedAction": {"id": action_id, "employee": "Sara Ahmed", "warningType": "Misconduct"},
    }
    assert staffed.actions.items == {}
    with pytest.raises(NotFoundError):
        staffed.disciplinary_service.delete(action_id)
