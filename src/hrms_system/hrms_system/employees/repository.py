from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import EmployeeStatus, EmploymentType
from .model import Employee, NewEmployee, PositionHistoryEntry


class EmployeeRepository(Protocol):
    """Employee persistence.

    Services depend on this interface only, so tests can swap in an
    in-memory fake.
    """

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        raise NotImplementedError

    def get_by_ids(self, employee_ids: Sequence[int]) -> Sequence[Employee]:
        raise NotImplementedError

    def find_by_cnic(self, cnic: str, *, exclude_id: Optional[int] = None) -> Optional[Employee]:
        raise NotImplementedError

    def last_employee_code(self) -> Optional[str]:
        raise NotImplementedError

    def create(self, data: NewEmployee) -> int:
        raise NotImplementedError

    def update_profile(self, employee_id: int, changes: Mapping[str, Any]) -> None:
        raise NotImplementedError

    def set_position(self, employee_id: int, position_id: int) -> None:
        raise NotImplementedError

    def set_status(self, employee_id: int, status: EmployeeStatus) -> None:
        raise NotImplementedError

    def list_active(self) -> Sequence[Employee]:
        raise NotImplementedError

    def list_active_by_positions(self, position_ids: Sequence[int]) -> Sequence[Employee]:
        raise NotImplementedError

    def search_active(self, query: str, *, limit: int) -> Sequence[Employee]:
        raise NotImplementedError

    def page_filtered(
        self,
        *,
        page: PageRequest,
        search: str = "",
        status: Optional[EmployeeStatus] = None,
        employment_type: Optional[EmploymentType] = None,
        position_ids: Optional[Sequence[int]] = None,
    ) -> tuple[Sequence[Employee], int]:
        """One page of employees (newest first) and the total match count.

        ``position_ids=[]`` matches nothing; ``None`` means no position filter.
        ``page.limit == 0`` returns every match.
        """
        raise NotImplementedError


class PositionHistoryRepository(Protocol):
    """Append-only: there is no update or delete."""

    def add(
        self,
        *,
        employee_id: int,
        from_position_id: Optional[int],
        to_position_id: int,
        changed_by_id: Optional[int],
        changed_by_name: str,
        effective_date: datetime,
        reason: str,
        changed_at: datetime,
    ) -> int:
        raise NotImplementedError

    def list_for_employee(self, employee_id: int) -> Sequence[PositionHistoryEntry]:
        raise NotImplementedError
