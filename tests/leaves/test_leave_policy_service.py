from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.hrms_system.hrms_system.core.enums import PolicyStatus
from src.hrms_system.hrms_system.core.exceptions import NotFoundError, ValidationError

NOW = datetime(2024, 5, 1, tzinfo=timezone.utc)


def test_admin_created_policy_is_approved(world, admin):
    data = world.leave_policy_service.create(
        admin, {"name": "Interns", "entitlements": [{"leaveType": 2, "days": 5}]}
    )
    assert data["status"] == PolicyStatus.APPROVED.value
    assert data["entitlements"] == [{"leaveType": {"id": 2, "name": "Sick"}, "days": 5}]
    assert data["createdBy"] == "Ayesha Admin"


def test_supervisor_created_policy_is_pending(world, supervisor):
    data = world.leave_policy_service.create(
        supervisor, {"name": "Contractors", "entitlements": [{"leaveType": "1", "days": "6"}]}
    )
    assert data["status"] == PolicyStatus.PENDING.value


@pytest.mark.parametrize(
    "payload, error, message",
    [
        ({"name": "", "entitlements": [{"leaveType": 1, "days": 1}]}, ValidationError, "Leave policy name is required"),
        ({"name": "X", "entitlements": []}, ValidationError, "At least one leave type entitlement is required"),
        ({"name": "X", "entitlements": [{"leaveType": "a", "days": 1}]}, ValidationError,
         "Invalid leave type ID in entitlements"),
        ({"name": "X", "entitlements": [{"leaveType": 1, "days": -2}]}, ValidationError,
         "Days must be a non-negative number"),
        ({"name": "X", "entitlements": [{"leaveType": 1, "days": 1}, {"leaveType": 1, "days": 2}]},
         ValidationError, "Duplicate leave types are not allowed in entitlements"),
        ({"name": "X", "entitlements": [{"leaveType": 9, "days": 1}]}, NotFoundError,
         "One or more leave types not found"),
        ({"name": "standard", "entitlements": [{"leaveType": 1, "days": 1}]}, ValidationError,
         "Leave policy with this name already exists"),
    ],
)
def test_create_validation(world, admin, payload, error, message):
    with pytest.raises(error) as exc:
        world.leave_policy_service.create(admin, payload)
    assert str(exc.value) == message


def test_update_propagates_entitlements_to_active_employees(staffed):
    staffed.balances.create(employee_id=1, leave_type_id=1, year=2024, total_days=12, used_days=5)

    staffed.leave_policy_service.update(1, {"entitlements": [{"leaveType": 1, "days": 15}]}, now=NOW)

    ali = staffed.balances.find(1, 1, 2024)
    assert (ali.total_days, ali.used_days, ali.remaining_days) == (15, 5, 10)
    sara = staffed.balances.find(2, 1, 2024)
    assert (sara.total_days, sara.remaining_days) == (15, 15)
    # Resigned employees are not on the propagation list.
    assert staffed.balances.list_for_employee(3) == []


def test_update_rename_conflict(world):
    with pytest.raises(ValidationError, match="already exists"):
        world.leave_policy_service.update(1, {"name": "Senior"}, now=NOW)


def test_change_status(world):
    data = world.leave_policy_service.change_status(1, "Rejected")
    assert data["message"] == "Leave policy rejected successfully"
    with pytest.raises(ValidationError, match="Valid statuses are: Approved, Pending, Rejected"):
        world.leave_policy_service.change_status(1, "Archived")


def test_delete_refuses_policy_in_use(world, admin):
    with pytest.raises(ValidationError, match=r"assigned to 2 position\(s\)"):
        world.leave_policy_service.delete(2)

    created = world.leave_policy_service.create(
        admin, {"name": "Unused", "entitlements": [{"leaveType": 2, "days": 3}]}
    )
    data = world.leave_policy_service.delete(created["id"])
    assert data["deletedLeavePolicy"] == {"id": created["id"], "name": "Unused"}
    with pytest.raises(NotFoundError, match="Leave policy not found"):
        world.leave_policy_service.get(created["id"])
