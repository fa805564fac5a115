from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional

from ..core.enums import BalanceChangeAction, PolicyStatus


@dataclass(frozen=True)
class LeaveType:
    leave_type_id: int
    name: str
    is_paid: bool = True


@dataclass(frozen=True)
class Entitlement:
    """Days per year of one leave type inside a policy."""

    leave_type_id: int
    days: int
    leave_type_name: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "leaveType": {"id": self.leave_type_id, "name": self.leave_type_name},
            "days": self.days,
        }


@dataclass(frozen=True)
class LeavePolicy:
    leave_policy_id: int
    name: str
    entitlements: tuple[Entitlement, ...] = field(default_factory=tuple)
    status: PolicyStatus = PolicyStatus.PENDING
    created_by: str = ""

    def entitlement_for(self, leave_type_id: int) -> Optional[Entitlement]:
        for ent in self.entitlements:
            if ent.leave_type_id == leave_type_id:
                return ent
        return None

    def to_dict(self) -> dict:
        return {
            "id": self.leave_policy_id,
            "name": self.name,
            "entitlements": [e.to_dict() for e in self.entitlements],
            "status": self.status.value,
            "createdBy": self.created_by,
        }


@dataclass(frozen=True)
class LeaveBalance:
    balance_id: int
    employee_id: int
    leave_type_id: int
    year: int
    total_days: int
    used_days: int
    remaining_days: int
    leave_type_name: Optional[str] = None

    def with_total(self, total_days: int) -> "LeaveBalance":
        """Copy with a new total; remaining is always derived from used."""
        return replace(
            self,
            total_days=total_days,
            remaining_days=max(0, total_days - self.used_days),
        )

    def with_used(self, used_days: int) -> "LeaveBalance":
        return replace(
            self,
            used_days=used_days,
            remaining_days=max(0, self.total_days - used_days),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.balance_id,
            "employee": self.employee_id,
            "leaveType": {"id": self.leave_type_id, "name": self.leave_type_name},
            "year": self.year,
            "totalDays": self.total_days,
            "usedDays": self.used_days,
            "remainingDays": self.remaining_days,
        }


@dataclass(frozen=True)
class BalanceChange:
    """One line of the transfer report returned to the caller."""

    leave_type: str
    action: BalanceChangeAction
    old_total: Optional[int] = None
    new_total: Optional[int] = None
    additional_days: Optional[int] = None
    total_days: Optional[int] = None
    note: Optional[str] = None

    def to_dict(self) -> dict:
        out: dict = {"leaveType": self.leave_type, "action": self.action.value}
        if self.old_total is not None:
            out["oldTotal"] = self.old_total
        if self.new_total is not None:
            out["newTotal"] = self.new_total
        if self.additional_days is not None:
            out["additionalDays"] = self.additional_days
        if self.total_days is not None:
            out["totalDays"] = self.total_days
        if self.note:
            out["note"] = self.note
        return out
