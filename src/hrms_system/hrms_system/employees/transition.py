"""Position transfer shared by the edit form and the dedicated endpoint.

The history row, both counter pairs, the prorated balances and the employee
row are written inside one ``transaction()`` so a failure part-way leaves
none of them behind. Capacity is checked before the transaction opens.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, ContextManager, Optional

from ..common.datetime_utils import now_utc
from ..core.actor import Actor
from ..core.exceptions import NotFoundError, ValidationError
from ..leaves.model import BalanceChange
from ..leaves.service import LeaveBalanceService
from ..organization.repository import DepartmentRepository, PositionRepository
from .model import Employee
from .repository import EmployeeRepository, PositionHistoryRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    employee: Employee
    leave_balance_changes: list[BalanceChange]
    effective_date: datetime

    def to_dict(self) -> dict:
        return {
            "employee": self.employee.to_dict(),
            "leaveBalanceChanges": [c.to_dict() for c in self.leave_balance_changes],
            "effectiveDate": self.effective_date.isoformat(),
        }


class PositionTransitionService:
    def __init__(
        self,
        employees: EmployeeRepository,
        history: PositionHistoryRepository,
        positions: PositionRepository,
        departments: DepartmentRepository,
        leave_balances: LeaveBalanceService,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._employees = employees
        self._history = history
        self._positions = positions
        self._departments = departments
        self._leave_balances = leave_balances
        self._transaction = transaction or nullcontext

    def transfer(
        self,
        actor: Actor,
        employee_id: int,
        *,
        new_position_id: int,
        effective_date: Optional[datetime] = None,
        reason: str = "",
        now: Optional[datetime] = None,
    ) -> TransferResult:
        now = now or now_utc()
        effective = effective_date or now

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")
        if employee.position_id == new_position_id:
            raise ValidationError("Employee is already assigned to this position")

        new_position = self._positions.get_by_id(new_position_id)
        if not new_position:
            raise NotFoundError("Position not found")
        new_position.ensure_capacity()

        old_position = self._positions.get_by_id(employee.position_id)
        old_department_id = old_position.department_id if old_position else None

        with self._transaction():
            self._history.add(
                employee_id=employee_id,
                from_position_id=employee.position_id,
                to_position_id=new_position_id,
                changed_by_id=actor.user_id,
                changed_by_name=actor.display_name,
                effective_date=effective,
                reason=reason,
                changed_at=now,
            )

            self._positions.increment_hired(employee.position_id, -1)
            self._positions.increment_hired(new_position_id, 1)

            if old_department_id != new_position.department_id:
                if old_department_id is not None:
                    self._departments.increment_employee_count(old_department_id, -1)
                self._departments.increment_employee_count(new_position.department_id, 1)

            changes = self._leave_balances.apply_transfer(
                employee_id=employee_id,
                old_policy_id=old_position.leave_policy_id if old_position else None,
                new_policy_id=new_position.leave_policy_id,
                effective_date=effective.date(),
            )

            self._employees.set_position(employee_id, new_position_id)

        logger.info(
            "[employees] %s moved from position %s to %s by %s (%d balance change(s))",
            employee.employee_code, employee.position_id, new_position_id, actor.display_name, len(changes),
        )

        return TransferResult(
            employee=self._employees.get_by_id(employee_id) or employee,
            leave_balance_changes=changes,
            effective_date=effective,
        )
