from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from ..core.enums import LeaveApplicationStatus


@dataclass(frozen=True)
class DateRange:
    start_date: date
    end_date: date

    def days(self) -> list[date]:
        out = []
        current = self.start_date
        while current <= self.end_date:
            out.append(current)
            current += timedelta(days=1)
        return out

    def to_dict(self) -> dict:
        return {"startDate": self.start_date.isoformat(), "endDate": self.end_date.isoformat()}


def expand_ranges(ranges: Sequence[DateRange]) -> tuple[date, ...]:
    """Every calendar day covered by the ranges, sorted, each day once."""
    return tuple(sorted({d for r in ranges for d in r.days()}))


@dataclass(frozen=True)
class LeaveApplication:
    application_id: int
    employee_id: int
    leave_type_id: int
    date_ranges: tuple[DateRange, ...]
    dates: tuple[date, ...]
    reason: str
    status: LeaveApplicationStatus
    applied_by_id: Optional[int]
    created_by: str
    created_at: datetime
    updated_at: datetime
    approved_by_id: Optional[int] = None
    employee_name: str = ""
    employee_code: str = ""
    leave_type_name: str = ""

    @property
    def days_count(self) -> int:
        return len(self.dates)

    @property
    def year(self) -> int:
        """Balance year the days are charged to (year of the first range)."""
        return self.date_ranges[0].start_date.year

    def to_dict(self) -> dict:
        return {
            "id": self.application_id,
            "employee": {"id": self.employee_id, "fullName": self.employee_name, "employeeID": self.employee_code},
            "leaveType": {"id": self.leave_type_id, "name": self.leave_type_name},
            "dateRanges": [r.to_dict() for r in self.date_ranges],
            "dates": [d.isoformat() for d in self.dates],
            "daysCount": self.days_count,
            "reason": self.reason,
            "status": self.status.value,
            "appliedBy": self.applied_by_id,
            "approvedBy": self.approved_by_id,
            "createdBy": self.created_by,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(frozen=True)
class NewLeaveApplication:
    employee_id: int
    leave_type_id: int
    date_ranges: tuple[DateRange, ...]
    dates: tuple[date, ...]
    reason: str
    status: LeaveApplicationStatus
    applied_by_id: Optional[int]
    approved_by_id: Optional[int]
    created_by: str
    created_at: datetime
