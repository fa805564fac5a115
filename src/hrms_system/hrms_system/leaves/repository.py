from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PolicyStatus
from .model import Entitlement, LeaveBalance, LeavePolicy, LeaveType


class LeavePolicyRepository(Protocol):
    """Leave policies with their entitlements, plus the leave type lookup."""

    def get_by_id(self, leave_policy_id: int) -> Optional[LeavePolicy]:
        raise NotImplementedError

    def find_by_name(self, name: str, *, exclude_id: Optional[int] = None) -> Optional[LeavePolicy]:
        """Case-insensitive name lookup."""
        raise NotImplementedError

    def create(
        self,
        *,
        name: str,
        entitlements: Sequence[Entitlement],
        status: PolicyStatus,
        created_by: str,
    ) -> int:
        raise NotImplementedError

    def update(
        self,
        leave_policy_id: int,
        *,
        name: Optional[str] = None,
        entitlements: Optional[Sequence[Entitlement]] = None,
    ) -> None:
        raise NotImplementedError

    def set_status(self, leave_policy_id: int, status: PolicyStatus) -> None:
        raise NotImplementedError

    def delete(self, leave_policy_id: int) -> bool:
        raise NotImplementedError

    def get_leave_types(self, leave_type_ids: Sequence[int]) -> Sequence[LeaveType]:
        raise NotImplementedError


class LeaveBalanceRepository(Protocol):
    """Per (employee, leave type, year) balances.

    Writers always store ``remaining_days = max(0, total - used)``.
    """

    def list_for_employee(self, employee_id: int, *, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        raise NotImplementedError

    def count_for_employee(self, employee_id: int, *, year: int) -> int:
        raise NotImplementedError

    def create(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        total_days: int,
        used_days: int = 0,
    ) -> int:
        raise NotImplementedError

    def create_many(self, *, employee_id: int, year: int, entitlements: Sequence[Entitlement]) -> int:
        raise NotImplementedError

    def update_totals(self, balance_id: int, *, total_days: int, remaining_days: int) -> None:
        raise NotImplementedError

    def update_used(self, balance_id: int, *, used_days: int, remaining_days: int) -> None:
        raise NotImplementedError
