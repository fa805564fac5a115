from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EmployeeStatus, EmploymentType, Gender


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class Employee:
    """Domain entity: Employee.

    ``position_name``/``department_*`` are read-side joins, not stored on the row.
    """

    employee_id: int
    employee_code: str
    full_name: str
    gender: Gender
    position_id: int
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    employment_type: EmploymentType = EmploymentType.PERMANENT
    father_name: str = ""
    cnic: Optional[str] = None
    dob: Optional[date] = None
    contact_number: str = ""
    province: str = ""
    city: str = ""
    current_address: str = ""
    joining_date: Optional[date] = None
    basic_salary: float = 0.0
    position_name: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    def to_ref(self) -> dict:
        return {"id": self.employee_id, "fullName": self.full_name, "employeeID": self.employee_code}

    def to_dict(self) -> dict:
        return {
            "id": self.employee_id,
            "employeeID": self.employee_code,
            "fullName": self.full_name,
            "gender": self.gender.value,
            "fatherName": self.father_name,
            "cnic": self.cnic or "",
            "dob": _iso(self.dob),
            "contactNumber": self.contact_number,
            "province": self.province,
            "city": self.city,
            "currentStreetAddress": self.current_address,
            "joiningDate": _iso(self.joining_date),
            "basicSalary": self.basic_salary,
            "status": self.status.value,
            "employmentType": self.employment_type.value,
            "position": {
                "id": self.position_id,
                "name": self.position_name,
                "department": {"id": self.department_id, "name": self.department_name},
            },
        }


@dataclass(frozen=True)
class NewEmployee:
    """Validated input for an insert."""

    employee_code: str
    full_name: str
    gender: Gender
    position_id: int
    employment_type: EmploymentType
    father_name: str
    cnic: Optional[str]
    dob: Optional[date]
    contact_number: str
    province: str
    city: str
    current_address: str
    joining_date: date
    basic_salary: float


@dataclass(frozen=True)
class PositionHistoryEntry:
    history_id: int
    employee_id: int
    from_position_id: Optional[int]
    to_position_id: int
    changed_by_id: Optional[int]
    changed_by_name: str
    effective_date: datetime
    reason: str
    changed_at: datetime
    from_position_name: Optional[str] = None
    to_position_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "id": self.history_id,
            "fromPosition": (
                {"id": self.from_position_id, "name": self.from_position_name}
                if self.from_position_id is not None
                else None
            ),
            "toPosition": {"id": self.to_position_id, "name": self.to_position_name},
            "changedBy": {"user": self.changed_by_id, "name": self.changed_by_name},
            "effectiveDate": _iso(self.effective_date),
            "reason": self.reason,
            "changedAt": _iso(self.changed_at),
        }
