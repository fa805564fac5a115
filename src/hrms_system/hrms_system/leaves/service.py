from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import parse_year
from ..core.enums import PolicyStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from ..organization.repository import PositionRepository
from .model import BalanceChange, LeaveBalance, LeavePolicy
from .proration import ProrationWindow, plan_transfer_adjustments
from .repository import LeaveBalanceRepository, LeavePolicyRepository

logger = logging.getLogger(__name__)


class LeaveBalanceService:
    """Leave balance writers: hire grants, transfers, policy edits and yearly renewal."""

    def __init__(
        self,
        balances: LeaveBalanceRepository,
        policies: LeavePolicyRepository,
        employees: EmployeeRepository,
        positions: PositionRepository,
    ):
        self._balances = balances
        self._policies = policies
        self._employees = employees
        self._positions = positions

    def apply_full_entitlements(self, *, employee_id: int, policy: LeavePolicy, year: int) -> int:
        """Set each entitlement's balance to the full yearly amount (no proration).

        Existing balances keep their used days; missing ones are created.
        """
        existing = {b.leave_type_id: b for b in self._balances.list_for_employee(employee_id, year=year)}
        for ent in policy.entitlements:
            balance = existing.get(ent.leave_type_id)
            if balance is None:
                self._balances.create(
                    employee_id=employee_id,
                    leave_type_id=ent.leave_type_id,
                    year=year,
                    total_days=ent.days,
                )
            else:
                updated = balance.with_total(ent.days)
                self._balances.update_totals(
                    balance.balance_id,
                    total_days=updated.total_days,
                    remaining_days=updated.remaining_days,
                )
        return len(policy.entitlements)

    def grant_for_new_hire(self, *, employee_id: int, leave_policy_id: Optional[int], year: int) -> int:
        if leave_policy_id is None:
            return 0
        policy = self._policies.get_by_id(leave_policy_id)
        if policy is None:
            raise ValidationError("Position does not have a leave policy assigned")
        return self.apply_full_entitlements(employee_id=employee_id, policy=policy, year=year)

    def apply_transfer(
        self,
        *,
        employee_id: int,
        old_policy_id: Optional[int],
        new_policy_id: Optional[int],
        effective_date: date,
    ) -> list[BalanceChange]:
        """Prorate balances for the effective date's year when the policy changes."""

        if new_policy_id is None or old_policy_id == new_policy_id:
            return []

        new_policy = self._policies.get_by_id(new_policy_id)
        if new_policy is None:
            return []
        old_policy = self._policies.get_by_id(old_policy_id) if old_policy_id is not None else None

        window = ProrationWindow.for_date(effective_date)
        writes = plan_transfer_adjustments(
            window=window,
            old_policy=old_policy,
            new_policy=new_policy,
            balances=self._balances.list_for_employee(employee_id, year=window.year),
        )

        for w in writes:
            if w.is_new:
                self._balances.create(
                    employee_id=employee_id,
                    leave_type_id=w.leave_type_id,
                    year=window.year,
                    total_days=w.total_days,
                )
            else:
                self._balances.update_totals(
                    w.existing.balance_id,
                    total_days=w.total_days,
                    remaining_days=w.remaining_days,
                )

        logger.info(
            "[leaves] prorated %d balance(s) for employee %s (factor %d/%d)",
            len(writes), employee_id, window.days_remaining, window.days_in_year,
        )
        return [w.change for w in writes]

    def sync_policy(self, policy: LeavePolicy, *, year: int) -> int:
        """Re-apply an edited policy to every active employee on it."""

        position_ids = self._positions.list_ids_by_leave_policy(policy.leave_policy_id)
        employees = self._employees.list_active_by_positions(position_ids)
        for emp in employees:
            self.apply_full_entitlements(employee_id=emp.employee_id, policy=policy, year=year)
        logger.info(
            "[leaves] policy %s propagated to %d employee(s) for %d",
            policy.leave_policy_id, len(employees), year,
        )
        return len(employees)

    def renew_for_employee(self, employee_id: int, *, year: Any = None, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        target_year = parse_year(year, default=now.year)

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        policy = self._policy_for_position(employee.position_id)
        if policy is None:
            raise ValidationError("Employee's position does not have a leave policy assigned")

        if self._balances.count_for_employee(employee_id, year=target_year) > 0:
            raise ValidationError(f"Leave balances for year {target_year} already exist for this employee")

        created = []
        for ent in policy.entitlements:
            self._balances.create(
                employee_id=employee_id,
                leave_type_id=ent.leave_type_id,
                year=target_year,
                total_days=ent.days,
            )
            created.append({"leaveType": ent.leave_type_name, "totalDays": ent.days})

        logger.info("[leaves] renewed %d balance(s) for employee %s, year %d", len(created), employee_id, target_year)
        return {
            "message": f"Leave balances renewed for year {target_year}",
            "employee": employee.to_ref(),
            "year": target_year,
            "balancesCreated": created,
        }

    def renew_all(self, *, year: Any = None, now: Optional[datetime] = None) -> dict:
        """Create next-year balances for every active employee.

        One employee's failure is recorded in the summary and the run continues.
        """
        now = now or now_utc()
        target_year = parse_year(year, default=now.year)

        employees = self._employees.list_active()
        results: dict[str, list[dict]] = {"success": [], "skipped": [], "errors": []}

        for emp in employees:
            ident = {"employeeID": emp.employee_code, "fullName": emp.full_name}
            try:
                policy = self._policy_for_position(emp.position_id)
                if policy is None:
                    results["skipped"].append({**ident, "reason": "No leave policy assigned to position"})
                    continue

                if self._balances.count_for_employee(emp.employee_id, year=target_year) > 0:
                    results["skipped"].append({**ident, "reason": f"Leave balances for {target_year} already exist"})
                    continue

                created = self._balances.create_many(
                    employee_id=emp.employee_id,
                    year=target_year,
                    entitlements=policy.entitlements,
                )
                results["success"].append({**ident, "balancesCreated": created})
            except Exception as exc:
                logger.warning("[leaves] renewal failed for employee %s: %s", emp.employee_id, exc)
                results["errors"].append({**ident, "error": str(exc)})

        logger.info(
            "[leaves] bulk renewal %d: %d ok, %d skipped, %d errors",
            target_year, len(results["success"]), len(results["skipped"]), len(results["errors"]),
        )
        return {
            "message": f"Bulk leave balance renewal completed for year {target_year}",
            "year": target_year,
            "summary": {
                "totalProcessed": len(employees),
                "successful": len(results["success"]),
                "skipped": len(results["skipped"]),
                "errors": len(results["errors"]),
            },
            "results": results,
        }

    def balances_by_year(self, employee_id: int, *, year: Any = None) -> dict:
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        target_year = parse_year(year, default=0) or None
        grouped: dict[str, list[dict]] = {}
        for b in self._balances.list_for_employee(employee_id, year=target_year):
            grouped.setdefault(str(b.year), []).append(b.to_dict())

        return {"employee": employee.to_ref(), "leaveBalances": grouped}

    def ensure_for_year(self, employee_id: int, year: int) -> list[LeaveBalance]:
        """Balances for the year, created from an Approved policy when none exist yet."""

        balances = list(self._balances.list_for_employee(employee_id, year=year))
        if balances:
            return balances

        employee = self._employees.get_by_id(employee_id)
        policy = self._policy_for_position(employee.position_id) if employee else None
        if policy is None or policy.status != PolicyStatus.APPROVED:
            return []

        self._balances.create_many(employee_id=employee_id, year=year, entitlements=policy.entitlements)
        logger.info("[leaves] opened %d balance(s) for employee %s, year %d", len(policy.entitlements), employee_id, year)
        return list(self._balances.list_for_employee(employee_id, year=year))

    def find_balance(self, employee_id: int, leave_type_id: int, year: int) -> Optional[LeaveBalance]:
        for balance in self.ensure_for_year(employee_id, year):
            if balance.leave_type_id == leave_type_id:
                return balance
        return None

    def record_usage(self, balance: LeaveBalance, days: int) -> LeaveBalance:
        """Charge ``days`` against the balance; negative days give them back."""

        updated = balance.with_used(max(0, balance.used_days + days))
        self._balances.update_used(
            balance.balance_id,
            used_days=updated.used_days,
            remaining_days=updated.remaining_days,
        )
        return updated

    def _policy_for_position(self, position_id: int) -> Optional[LeavePolicy]:
        position = self._positions.get_by_id(position_id)
        if position is None or position.leave_policy_id is None:
            return None
        return self._policies.get_by_id(position.leave_policy_id)
