from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import LeaveApplicationStatus
from .application_model import DateRange, LeaveApplication, NewLeaveApplication


class LeaveApplicationRepository(Protocol):
    def get_by_id(self, application_id: int) -> Optional[LeaveApplication]:
        raise NotImplementedError

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[LeaveApplication], int]:
        """Newest first; search matches employee name/code and leave type name."""
        raise NotImplementedError

    def booked_dates(
        self,
        employee_id: int,
        dates: Sequence[date],
        *,
        exclude_id: Optional[int] = None,
    ) -> Sequence[date]:
        """Which of ``dates`` the employee already has in a non-rejected application."""
        raise NotImplementedError

    def create(self, data: NewLeaveApplication) -> int:
        raise NotImplementedError

    def update(
        self,
        application_id: int,
        *,
        employee_id: int,
        leave_type_id: int,
        date_ranges: Sequence[DateRange],
        dates: Sequence[date],
        reason: str,
        updated_at: datetime,
    ) -> None:
        raise NotImplementedError

    def decide(
        self,
        application_id: int,
        *,
        from_status: LeaveApplicationStatus,
        status: LeaveApplicationStatus,
        decided_by_id: Optional[int],
        updated_at: datetime,
    ) -> bool:
        """Status change guarded by the current status; False when it moved meanwhile."""
        raise NotImplementedError

    def delete(self, application_id: int) -> bool:
        raise NotImplementedError
