from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Department, Position


class PositionRepository(Protocol):
    """Positions and their hired-employee counter.

    The counter is only ever moved by ``increment_hired``; nothing recomputes
    it from the employees table.
    """

    def get_by_id(self, position_id: int) -> Optional[Position]:
        raise NotImplementedError

    def increment_hired(self, position_id: int, delta: int) -> None:
        raise NotImplementedError

    def list_ids(self, *, department_id: Optional[int] = None, name: Optional[str] = None) -> Sequence[int]:
        raise NotImplementedError

    def list_ids_by_leave_policy(self, leave_policy_id: int) -> Sequence[int]:
        raise NotImplementedError


class DepartmentRepository(Protocol):
    def get_by_id(self, department_id: int) -> Optional[Department]:
        raise NotImplementedError

    def increment_employee_count(self, department_id: int, delta: int) -> None:
        raise NotImplementedError
