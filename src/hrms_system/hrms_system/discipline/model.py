from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from ..core.constants import DISCIPLINARY_ACTIVE_DAYS
from ..core.enums import DisciplinaryStatus


@dataclass(frozen=True)
class WarningType:
    warning_type_id: int
    name: str
    severity: str

    def to_dict(self) -> dict:
        return {"id": self.warning_type_id, "name": self.name, "severity": self.severity}


@dataclass(frozen=True)
class DisciplinaryAction:
    """A warning against an employee, active for a fixed number of days.

    The stored ``status`` may lag behind the clock; ``current_status`` is the
    truth at a given instant.
    """

    action_id: int
    employee_id: int
    warning_type: WarningType
    description: str
    action_date: datetime
    status: DisciplinaryStatus
    created_by: str
    created_at: datetime
    updated_at: datetime
    employee_name: str = ""
    employee_code: str = ""

    @property
    def expires_at(self) -> datetime:
        return self.action_date + timedelta(days=DISCIPLINARY_ACTIVE_DAYS)

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def current_status(self, now: datetime) -> DisciplinaryStatus:
        if self.status == DisciplinaryStatus.ACTIVE and self.is_expired(now):
            return DisciplinaryStatus.INACTIVE
        return self.status

    def remaining_days(self, now: datetime) -> int:
        if self.current_status(now) == DisciplinaryStatus.INACTIVE:
            return 0
        left = (self.expires_at - now) / timedelta(days=1)
        return max(0, math.ceil(left))

    def with_status(self, status: DisciplinaryStatus) -> "DisciplinaryAction":
        return replace(self, status=status)

    def to_dict(self, now: datetime) -> dict:
        return {
            "id": self.action_id,
            "employee": {"id": self.employee_id, "fullName": self.employee_name, "employeeID": self.employee_code},
            "warningType": self.warning_type.to_dict(),
            "description": self.description,
            "actionDate": self.action_date.isoformat(),
            "status": self.current_status(now).value,
            "remainingDays": self.remaining_days(now),
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class NewDisciplinaryAction:
    employee_id: int
    warning_type_id: int
    description: str
    action_date: datetime
    created_by: str
    created_at: datetime
