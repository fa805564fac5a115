from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Optional

from ..common.datetime_utils import now_utc, parse_iso_datetime
from ..common.validators import optional_text, parse_id, require_non_empty, require_non_negative_number
from ..core.actor import Actor
from ..core.constants import DEFAULT_EMPLOYEE_CODE_PREFIX
from ..core.enums import EmployeeStatus, EmploymentType, Gender
from ..core.exceptions import NotFoundError, ValidationError
from ..leaves.service import LeaveBalanceService
from ..organization.repository import DepartmentRepository, PositionRepository
from .model import Employee, NewEmployee
from .repository import EmployeeRepository, PositionHistoryRepository
from .transition import PositionTransitionService

logger = logging.getLogger(__name__)

EDIT_FORM_REASON = "Updated via employee edit form"
INITIAL_ASSIGNMENT_REASON = "Initial assignment on employee creation"


def _choice(enum_cls, value: Any, label: str):
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {label}. Must be one of: {valid}")


def _optional_date(value: Any, field_name: str) -> Optional[date]:
    if value is None or value == "":
        return None
    return parse_iso_datetime(value, field_name).date()


class EmployeeService:
    def __init__(
        self,
        employees: EmployeeRepository,
        history: PositionHistoryRepository,
        positions: PositionRepository,
        departments: DepartmentRepository,
        leave_balances: LeaveBalanceService,
        transitions: PositionTransitionService,
        *,
        code_prefix: str = DEFAULT_EMPLOYEE_CODE_PREFIX,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._employees = employees
        self._history = history
        self._positions = positions
        self._departments = departments
        self._leave_balances = leave_balances
        self._transitions = transitions
        self._code_prefix = code_prefix
        self._transaction = transaction or nullcontext

    def _get(self, employee_id: int) -> Employee:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        return employee

    def next_employee_code(self) -> str:
        last = self._employees.last_employee_code()
        number = 0
        if last:
            tail = last.rsplit("-", 1)[-1]
            number = int(tail) if tail.isdigit() else 0
        return f"{self._code_prefix}-{number + 1:04d}"

    def create(self, actor: Actor, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()

        full_name = require_non_empty(payload.get("fullName"), "Full name")
        raw_position = payload.get("position")
        if raw_position is None or str(raw_position).strip() == "":
            raise ValidationError("Position is required")
        if not optional_text(payload.get("gender")):
            raise ValidationError("Gender is required")
        gender = _choice(Gender, optional_text(payload.get("gender")), "gender")
        employment_type = _choice(
            EmploymentType,
            optional_text(payload.get("employmentType")) or EmploymentType.PERMANENT.value,
            "employment type",
        )
        position_id = parse_id(raw_position, "position ID")

        position = self._positions.get_by_id(position_id)
        if not position:
            raise NotFoundError("Position not found")
        position.ensure_capacity()

        cnic = optional_text(payload.get("cnic")) or None
        if cnic and self._employees.find_by_cnic(cnic):
            raise ValidationError("An employee with this CNIC already exists")

        salary = payload.get("basicSalary")
        basic_salary = require_non_negative_number(salary, "Basic salary") if salary not in (None, "") else 0.0

        data = NewEmployee(
            employee_code=self.next_employee_code(),
            full_name=full_name,
            gender=gender,
            position_id=position_id,
            employment_type=employment_type,
            father_name=optional_text(payload.get("fatherName")),
            cnic=cnic,
            dob=_optional_date(payload.get("dob"), "Date of birth"),
            contact_number=optional_text(payload.get("contactNumber")),
            province=optional_text(payload.get("province")),
            city=optional_text(payload.get("city")),
            current_address=optional_text(payload.get("currentStreetAddress")),
            joining_date=_optional_date(payload.get("joiningDate"), "Joining date") or now.date(),
            basic_salary=basic_salary,
        )
        employee_id = self._employees.create(data)

        self._positions.increment_hired(position_id, 1)
        self._departments.increment_employee_count(position.department_id, 1)

        balances_created = 0
        try:
            balances_created = self._leave_balances.grant_for_new_hire(
                employee_id=employee_id,
                leave_policy_id=position.leave_policy_id,
                year=now.year,
            )
        except Exception as exc:
            # Hiring still succeeds; balances can be renewed later.
            logger.warning("[employees] leave balances not created for %s: %s", data.employee_code, exc)

        self._history.add(
            employee_id=employee_id,
            from_position_id=None,
            to_position_id=position_id,
            changed_by_id=actor.user_id,
            changed_by_name=actor.display_name,
            effective_date=now,
            reason=INITIAL_ASSIGNMENT_REASON,
            changed_at=now,
        )
        logger.info("[employees] %s hired into position %s by %s", data.employee_code, position_id, actor.display_name)

        return {"employee": self._get(employee_id).to_dict(), "leaveBalancesCreated": balances_created}

    def update(self, actor: Actor, employee_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        employee = self._get(employee_id)

        changes: dict[str, Any] = {}

        if "cnic" in payload:
            cnic = optional_text(payload.get("cnic")) or None
            if cnic and cnic != employee.cnic and self._employees.find_by_cnic(cnic, exclude_id=employee_id):
                raise ValidationError("An employee with this CNIC already exists")
            changes["cnic"] = cnic

        if optional_text(payload.get("employmentType")):
            changes["employment_type"] = _choice(EmploymentType, payload.get("employmentType"), "employment type")
        if optional_text(payload.get("gender")):
            changes["gender"] = _choice(Gender, payload.get("gender"), "gender")
        if optional_text(payload.get("fullName")):
            changes["full_name"] = optional_text(payload.get("fullName"))
        if payload.get("basicSalary") is not None:
            changes["basic_salary"] = require_non_negative_number(payload.get("basicSalary"), "Basic salary")
        if "dob" in payload:
            changes["dob"] = _optional_date(payload.get("dob"), "Date of birth")
        if payload.get("joiningDate"):
            changes["joining_date"] = _optional_date(payload.get("joiningDate"), "Joining date")

        text_fields = {
            "fatherName": "father_name",
            "contactNumber": "contact_number",
            "province": "province",
            "city": "city",
            "currentStreetAddress": "current_address",
        }
        for key, field_name in text_fields.items():
            if key in payload:
                changes[field_name] = optional_text(payload.get(key))

        new_position_id: Optional[int] = None
        raw_position = payload.get("position")
        if raw_position not in (None, ""):
            new_position_id = parse_id(raw_position, "position ID")
            if new_position_id == employee.position_id:
                new_position_id = None

        leave_changes = []
        # The transfer joins this transaction, so a failed profile write undoes it.
        with self._transaction():
            if new_position_id is not None:
                result = self._transitions.transfer(
                    actor,
                    employee_id,
                    new_position_id=new_position_id,
                    effective_date=now,
                    reason=EDIT_FORM_REASON,
                    now=now,
                )
                leave_changes = [c.to_dict() for c in result.leave_balance_changes]

            self._employees.update_profile(employee_id, changes)

        return {
            "employee": self._get(employee_id).to_dict(),
            "positionChanged": new_position_id is not None,
            "leaveBalanceChanges": leave_changes,
        }

    def change_position(self, actor: Actor, employee_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        raw_position = payload.get("newPosition")
        if raw_position is None or str(raw_position).strip() == "":
            raise ValidationError("New position is required")
        new_position_id = parse_id(raw_position, "position ID")

        effective_date = None
        if payload.get("effectiveDate"):
            effective_date = parse_iso_datetime(payload.get("effectiveDate"), "Effective date")

        result = self._transitions.transfer(
            actor,
            employee_id,
            new_position_id=new_position_id,
            effective_date=effective_date,
            reason=optional_text(payload.get("reason")),
            now=now,
        )
        return {"message": "Employee position changed successfully", **result.to_dict()}

    def change_status(self, employee_id: int, status: Any) -> dict:
        new_status = _choice(EmployeeStatus, status, "status")
        employee = self._get(employee_id)
        previous = employee.status

        position = self._positions.get_by_id(employee.position_id)
        delta = 0
        if previous == EmployeeStatus.ACTIVE and new_status != EmployeeStatus.ACTIVE:
            delta = -1
        elif previous != EmployeeStatus.ACTIVE and new_status == EmployeeStatus.ACTIVE:
            delta = 1

        if delta:
            self._positions.increment_hired(employee.position_id, delta)
            if position:
                self._departments.increment_employee_count(position.department_id, delta)

        self._employees.set_status(employee_id, new_status)
        logger.info("[employees] %s status %s -> %s", employee.employee_code, previous.value, new_status.value)

        return {
            "message": f"Employee status changed from {previous.value} to {new_status.value}",
            "employee": self._get(employee_id).to_dict(),
        }

    def position_history(self, employee_id: int) -> dict:
        employee = self._get(employee_id)
        return {
            "employee": employee.to_ref(),
            "positionHistory": [h.to_dict() for h in self._history.list_for_employee(employee_id)],
        }
