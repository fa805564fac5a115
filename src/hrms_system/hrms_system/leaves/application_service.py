"""Leave applications and the used days they hold against a balance.

Pending and Approved applications hold their days. Rejecting or deleting one
gives the days back; approving a rejected one charges them again. The
application row and the balance are written inside one ``transaction()``.
"""

from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..common.datetime_utils import now_utc, parse_iso_datetime
from ..common.pagination import PageRequest
from ..common.validators import optional_text, require_reference
from ..core.actor import Actor
from ..core.enums import LeaveApplicationStatus
from ..core.exceptions import AuthorizationError, NotFoundError, StateConflictError, ValidationError
from ..employees.repository import EmployeeRepository
from .application_model import DateRange, LeaveApplication, NewLeaveApplication, expand_ranges
from .application_repository import LeaveApplicationRepository
from .model import LeaveBalance
from .repository import LeavePolicyRepository
from .service import LeaveBalanceService

logger = logging.getLogger(__name__)


def parse_date_ranges(value: Any) -> tuple[DateRange, ...]:
    if not isinstance(value, list) or not value:
        raise ValidationError("At least one date range is required")

    ranges = []
    for raw in value:
        if not isinstance(raw, dict) or not raw.get("startDate") or not raw.get("endDate"):
            raise ValidationError("Each date range must have a start and end date")
        start = parse_iso_datetime(raw["startDate"], "Start date").date()
        end = parse_iso_datetime(raw["endDate"], "End date").date()
        if end < start:
            raise ValidationError("End date cannot be before start date")
        ranges.append(DateRange(start, end))
    return tuple(ranges)


class LeaveApplicationService:
    def __init__(
        self,
        applications: LeaveApplicationRepository,
        balances: LeaveBalanceService,
        employees: EmployeeRepository,
        policies: LeavePolicyRepository,
        *,
        transaction: Optional[Callable[[], ContextManager]] = None,
    ):
        self._applications = applications
        self._balances = balances
        self._employees = employees
        self._policies = policies
        self._transaction = transaction or nullcontext

    def _get(self, application_id: int) -> LeaveApplication:
        application = self._applications.get_by_id(application_id)
        if not application:
            raise NotFoundError("Leave application not found")
        return application

    def _employee_id(self, value: Any) -> int:
        employee_id = require_reference(value, "Employee")
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")
        return employee_id

    def _leave_type_id(self, value: Any) -> int:
        leave_type_id = require_reference(value, "Leave type")
        if not self._policies.get_leave_types([leave_type_id]):
            raise NotFoundError("Leave type not found")
        return leave_type_id

    def _check_overlap(self, employee_id: int, dates: Sequence[date], *, exclude_id: Optional[int] = None) -> None:
        booked = sorted(set(self._applications.booked_dates(employee_id, dates, exclude_id=exclude_id)))
        if booked:
            noun = "date" if len(booked) == 1 else "dates"
            listed = ", ".join(d.isoformat() for d in booked)
            raise ValidationError(f"Leave already applied for {noun}: {listed}. Cannot apply for the same date twice.")

    @staticmethod
    def _ensure_available(balance: LeaveBalance, days: int) -> None:
        if balance.remaining_days < days:
            raise ValidationError(
                f"Insufficient leave balance. Available: {balance.remaining_days} days, Requested: {days} days"
            )

    def list_applications(self, *, page: PageRequest, search: str = "") -> dict:
        applications, total = self._applications.page(page=page, search=search.strip())
        return {
            "leaveApplications": [a.to_dict() for a in applications],
            "pagination": page.describe(total, total_key="totalApplications"),
        }

    def get(self, application_id: int) -> dict:
        return self._get(application_id).to_dict()

    def create(self, actor: Actor, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()

        employee_id = self._employee_id(payload.get("employee"))
        leave_type_id = self._leave_type_id(payload.get("leaveType"))
        ranges = parse_date_ranges(payload.get("dateRanges"))
        dates = expand_ranges(ranges)
        self._check_overlap(employee_id, dates)

        balance = self._balances.find_balance(employee_id, leave_type_id, ranges[0].start_date.year)
        if balance is None:
            raise ValidationError(
                "No leave balance found for this leave type. "
                "The employee's leave policy may not include this leave type."
            )
        self._ensure_available(balance, len(dates))

        status = LeaveApplicationStatus.APPROVED if actor.is_admin else LeaveApplicationStatus.PENDING
        with self._transaction():
            application_id = self._applications.create(
                NewLeaveApplication(
                    employee_id=employee_id,
                    leave_type_id=leave_type_id,
                    date_ranges=ranges,
                    dates=dates,
                    reason=optional_text(payload.get("reason")),
                    status=status,
                    applied_by_id=actor.user_id,
                    approved_by_id=actor.user_id if actor.is_admin else None,
                    created_by=actor.display_name,
                    created_at=now,
                )
            )
            self._balances.record_usage(balance, len(dates))

        logger.info(
            "[leaves] application %s (%d day(s), %s) for employee %s by %s",
            application_id, len(dates), status.value, employee_id, actor.display_name,
        )
        return self.get(application_id)

    def update(self, actor: Actor, application_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        application = self._get(application_id)
        if not actor.is_admin and application.status != LeaveApplicationStatus.PENDING:
            raise AuthorizationError("Only pending applications can be edited")

        employee_id = application.employee_id
        if payload.get("employee"):
            employee_id = self._employee_id(payload.get("employee"))
        leave_type_id = application.leave_type_id
        if payload.get("leaveType"):
            leave_type_id = self._leave_type_id(payload.get("leaveType"))

        ranges, dates = application.date_ranges, application.dates
        if payload.get("dateRanges") is not None:
            ranges = parse_date_ranges(payload.get("dateRanges"))
            dates = expand_ranges(ranges)
        reason = optional_text(payload.get("reason")) if "reason" in payload else application.reason

        self._check_overlap(employee_id, dates, exclude_id=application_id)

        held: Optional[LeaveBalance] = None
        target: Optional[LeaveBalance] = None
        if application.status.holds_days:
            held = self._balances.find_balance(application.employee_id, application.leave_type_id, application.year)
            target = self._balances.find_balance(employee_id, leave_type_id, ranges[0].start_date.year)
            if target is None:
                raise ValidationError("No leave balance found for this leave type")
            available = target
            if held is not None and held.balance_id == target.balance_id:
                available = held.with_used(max(0, held.used_days - application.days_count))
            self._ensure_available(available, len(dates))

        with self._transaction():
            if held is not None:
                released = self._balances.record_usage(held, -application.days_count)
                if target is not None and released.balance_id == target.balance_id:
                    target = released
            if target is not None:
                self._balances.record_usage(target, len(dates))
            self._applications.update(
                application_id,
                employee_id=employee_id,
                leave_type_id=leave_type_id,
                date_ranges=ranges,
                dates=dates,
                reason=reason,
                updated_at=now,
            )

        return self.get(application_id)

    def approve(self, actor: Actor, application_id: int, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        application = self._get(application_id)
        if application.status == LeaveApplicationStatus.APPROVED:
            raise StateConflictError("Application is already approved")

        # Pending applications were charged when they were filed.
        balance = None
        if application.status == LeaveApplicationStatus.REJECTED:
            balance = self._balances.find_balance(application.employee_id, application.leave_type_id, application.year)
            if balance is not None and balance.remaining_days < application.days_count:
                raise ValidationError(
                    f"Insufficient leave balance to approve. Available: {balance.remaining_days} days, "
                    f"Required: {application.days_count} days"
                )

        with self._transaction():
            self._decide(application, LeaveApplicationStatus.APPROVED, actor, now)
            if balance is not None:
                self._balances.record_usage(balance, application.days_count)

        return {"message": "Leave application approved successfully", "leaveApplication": self.get(application_id)}

    def reject(self, actor: Actor, application_id: int, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        application = self._get(application_id)
        if application.status == LeaveApplicationStatus.REJECTED:
            raise StateConflictError("Application is already rejected")

        balance = self._balances.find_balance(application.employee_id, application.leave_type_id, application.year)
        with self._transaction():
            self._decide(application, LeaveApplicationStatus.REJECTED, actor, now)
            if balance is not None:
                self._balances.record_usage(balance, -application.days_count)

        return {"message": "Leave application rejected successfully", "leaveApplication": self.get(application_id)}

    def _decide(
        self,
        application: LeaveApplication,
        status: LeaveApplicationStatus,
        actor: Actor,
        now: datetime,
    ) -> None:
        ok = self._applications.decide(
            application.application_id,
            from_status=application.status,
            status=status,
            decided_by_id=actor.user_id,
            updated_at=now,
        )
        if not ok:
            raise StateConflictError(f"Leave application is no longer {application.status.value}")
        logger.info(
            "[leaves] application %s %s -> %s by %s",
            application.application_id, application.status.value, status.value, actor.display_name,
        )

    def delete(self, actor: Actor, application_id: int) -> dict:
        application = self._get(application_id)
        if not actor.is_admin and application.status != LeaveApplicationStatus.PENDING:
            raise AuthorizationError("Only pending applications can be deleted")

        balance = None
        if application.status.holds_days:
            balance = self._balances.find_balance(application.employee_id, application.leave_type_id, application.year)

        with self._transaction():
            self._applications.delete(application_id)
            if balance is not None:
                self._balances.record_usage(balance, -application.days_count)

        return {
            "message": "Leave application deleted successfully",
            "deletedApplication": {
                "id": application.application_id,
                "employee": application.employee_name,
                "leaveType": application.leave_type_name,
                "daysCount": application.days_count,
            },
        }

    def employee_balance(self, employee_id: int, *, now: Optional[datetime] = None) -> dict:
        """Current-year balances, opened from the position's policy on first use."""

        now = now or now_utc()
        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFoundError("Employee not found")

        balances = self._balances.ensure_for_year(employee_id, now.year)
        return {
            "employee": employee.to_ref(),
            "year": now.year,
            "balances": [
                {
                    "leaveType": {"id": b.leave_type_id, "name": b.leave_type_name},
                    "totalDays": b.total_days,
                    "usedDays": b.used_days,
                    "remainingDays": b.remaining_days,
                }
                for b in balances
            ],
        }
