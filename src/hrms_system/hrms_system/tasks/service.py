from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from ..common.datetime_utils import business_days_between, now_utc, parse_iso_datetime, to_business_date
from ..common.pagination import PageRequest
from ..common.validators import optional_text, parse_id, require_min_int, require_rating
from ..core.actor import Actor
from ..core.constants import EMPLOYEE_SEARCH_LIMIT
from ..core.enums import Role, TaskStatus, TimelineAction
from ..core.exceptions import NotFoundError, StateConflictError, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from .model import ActorRef, Remark, TimelineEntry, WorkProgressReport
from .repository import TaskRepository
from .timing.factory import CompletionTimingFactory

logger = logging.getLogger(__name__)

_NOT_FOUND = "Work progress report not found"


def _employee_ids(raw: Any) -> list[int]:
    if not isinstance(raw, list) or not raw:
        raise ValidationError("At least one employee is required")
    ids = [parse_id(value, "employee ID") for value in raw]
    if len(set(ids)) != len(ids):
        raise ValidationError("Duplicate employees are not allowed")
    return ids


def _task_description(raw: Any) -> str:
    text = optional_text(raw)
    if not text:
        raise ValidationError("Task description is required")
    return text


def _require_date(raw: Any, message: str, field_name: str) -> datetime:
    if raw is None or raw == "":
        raise ValidationError(message)
    return parse_iso_datetime(raw, field_name)


def _require_deadline_after(assignment_date: datetime, deadline: datetime) -> None:
    if deadline <= assignment_date:
        raise ValidationError("Deadline must be after the assignment date")


def day_stats(report: WorkProgressReport) -> Optional[dict]:
    """Whole-day figures for a finished report, on UTC+5 civil dates."""

    finished = report.status.is_completed or report.status.is_closed
    if not finished or report.completion_date is None:
        return None

    days_passed = business_days_between(report.assignment_date, report.completion_date)
    total_allowed = business_days_between(report.assignment_date, report.deadline)
    on_time = to_business_date(report.completion_date) <= to_business_date(report.deadline)
    return {
        "daysPassed": days_passed,
        "totalDaysAllowed": total_allowed,
        "remainingDays": total_allowed - days_passed,
        "completedOnTime": on_time,
        "completedLate": not on_time,
    }


class TaskService:
    """Work progress report lifecycle.

    Pending -> In Progress -> Completed (timing) -> Closed (timing).
    Every precondition is checked before the guarded write; the repository
    write itself is a compare-and-set, so a concurrent transition surfaces as
    a state conflict instead of a double update.
    """

    def __init__(
        self,
        tasks: TaskRepository,
        employees: EmployeeRepository,
        *,
        timing_factory: Optional[CompletionTimingFactory] = None,
    ):
        self._tasks = tasks
        self._employees = employees
        self._timing = timing_factory or CompletionTimingFactory()

    # ---------- reads ----------

    def _get(self, report_id: int) -> WorkProgressReport:
        report = self._tasks.get_by_id(report_id)
        if not report:
            raise NotFoundError(_NOT_FOUND)
        return report

    def _employee_map(self, ids: Iterable[int]) -> dict[int, Employee]:
        unique = sorted(set(ids))
        if not unique:
            return {}
        return {e.employee_id: e for e in self._employees.get_by_ids(unique)}

    def _load_employees(self, ids: Sequence[int]) -> list[Employee]:
        found = self._employee_map(ids)
        if len(found) != len(set(ids)):
            raise NotFoundError("One or more employees not found")
        return [found[i] for i in ids]

    @staticmethod
    def to_dict(report: WorkProgressReport, employees: dict[int, Employee]) -> dict:
        return {
            "id": report.report_id,
            "employees": [employees[i].to_ref() for i in report.employee_ids if i in employees],
            "assignmentDate": report.assignment_date.isoformat(),
            "deadline": report.deadline.isoformat(),
            "daysForCompletion": report.days_for_completion,
            "taskDescription": report.task_description,
            "status": report.status.value,
            "startDate": report.start_date.isoformat() if report.start_date else None,
            "completionDate": report.completion_date.isoformat() if report.completion_date else None,
            "assignedBy": report.assigned_by.to_dict(),
            "startedBy": report.started_by.to_dict() if report.started_by else None,
            "completedBy": report.completed_by.to_dict() if report.completed_by else None,
            "closedBy": report.closed_by.to_dict() if report.closed_by else None,
            "closingRemarks": report.closing_remarks,
            "rating": report.rating,
            "remarks": [r.to_dict() for r in report.remarks],
            "timeline": [t.to_dict() for t in report.timeline],
            "createdAt": report.created_at.isoformat(),
            "updatedAt": report.updated_at.isoformat(),
        }

    def _populated(self, report_id: int) -> dict:
        report = self._get(report_id)
        return self.to_dict(report, self._employee_map(report.employee_ids))

    def get(self, report_id: int) -> dict:
        report = self._get(report_id)
        data = self.to_dict(report, self._employee_map(report.employee_ids))
        stats = day_stats(report)
        if stats is not None:
            data["dayStats"] = stats
        return data

    def list_reports(self, *, page: PageRequest, search: str = "") -> dict:
        reports, total = self._tasks.page(page=page, search=search.strip())
        employees = self._employee_map(i for r in reports for i in r.employee_ids)
        return {
            "workProgressReports": [self.to_dict(r, employees) for r in reports],
            "pagination": page.describe(total, total_key="totalReports"),
        }

    def search_employees(self, query: str) -> list[dict]:
        q = (query or "").strip()
        if not q:
            return []
        return [e.to_ref() for e in self._employees.search_active(q, limit=EMPLOYEE_SEARCH_LIMIT)]

    # ---------- transitions ----------

    def _conflict(self, report_id: int, action: str, required: str) -> StateConflictError:
        current = self._get(report_id)
        return StateConflictError(
            f"Only tasks with {required} status can be {action}. Current status: {current.status.value}"
        )

    def assign(self, actor: Actor, payload: dict, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN})
        now = now or now_utc()

        employee_ids = _employee_ids(payload.get("employees"))
        employees = self._load_employees(employee_ids)
        assignment_date = _require_date(payload.get("assignmentDate"), "Assignment date is required", "Assignment date")
        deadline = _require_date(payload.get("deadline"), "Deadline is required", "Deadline")
        _require_deadline_after(assignment_date, deadline)
        days = require_min_int(payload.get("daysForCompletion"), "Days for completion", 1)
        description = _task_description(payload.get("taskDescription"))

        by = ActorRef.from_actor(actor)
        entry = TimelineEntry(
            action=TimelineAction.ASSIGNED,
            performed_by=by,
            timestamp=now,
            details="Task assigned to " + ", ".join(e.full_name for e in employees),
        )
        report_id = self._tasks.create(
            employee_ids=employee_ids,
            assignment_date=assignment_date,
            deadline=deadline,
            days_for_completion=days,
            task_description=description,
            assigned_by=by,
            entry=entry,
        )
        logger.info("[tasks] report %s assigned to %s by %s", report_id, employee_ids, by.name)
        return self._populated(report_id)

    def edit(self, actor: Actor, report_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN})
        now = now or now_utc()
        report = self._get(report_id)
        if report.status != TaskStatus.PENDING:
            raise StateConflictError(
                f"Only tasks with Pending status can be edited. Current status: {report.status.value}"
            )

        employee_ids = list(report.employee_ids)
        if payload.get("employees") is not None:
            employee_ids = _employee_ids(payload.get("employees"))
            self._load_employees(employee_ids)

        assignment_date = report.assignment_date
        if payload.get("assignmentDate"):
            assignment_date = parse_iso_datetime(payload["assignmentDate"], "Assignment date")
        deadline = report.deadline
        if payload.get("deadline"):
            deadline = parse_iso_datetime(payload["deadline"], "Deadline")
        _require_deadline_after(assignment_date, deadline)

        days = report.days_for_completion
        if payload.get("daysForCompletion") is not None:
            days = require_min_int(payload.get("daysForCompletion"), "Days for completion", 1)

        description = report.task_description
        if "taskDescription" in payload:
            description = _task_description(payload.get("taskDescription"))

        ok = self._tasks.update_pending(
            report_id,
            employee_ids=employee_ids,
            assignment_date=assignment_date,
            deadline=deadline,
            days_for_completion=days,
            task_description=description,
            updated_at=now,
        )
        if not ok:
            raise self._conflict(report_id, "edited", TaskStatus.PENDING.value)
        return self._populated(report_id)

    def start(self, actor: Actor, report_id: int, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN, Role.SUPERVISOR})
        now = now or now_utc()
        report = self._get(report_id)
        if report.status != TaskStatus.PENDING:
            raise StateConflictError(
                f"Only tasks with Pending status can be started. Current status: {report.status.value}"
            )

        by = ActorRef.from_actor(actor)
        entry = TimelineEntry(action=TimelineAction.STARTED, performed_by=by, timestamp=now, details="Task started")
        if not self._tasks.mark_started(report_id, by=by, entry=entry):
            raise self._conflict(report_id, "started", TaskStatus.PENDING.value)
        logger.info("[tasks] report %s started by %s", report_id, by.name)
        return self._populated(report_id)

    def complete(self, actor: Actor, report_id: int, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN, Role.SUPERVISOR})
        now = now or now_utc()
        report = self._get(report_id)
        if report.status != TaskStatus.IN_PROGRESS:
            raise StateConflictError(
                f"Only tasks with In Progress status can be completed. Current status: {report.status.value}"
            )

        decision = self._timing.for_completion(deadline=report.deadline, completed_at=now).decide_completion()
        by = ActorRef.from_actor(actor)
        entry = TimelineEntry(
            action=TimelineAction.COMPLETED,
            performed_by=by,
            timestamp=now,
            details=decision.details,
        )
        if not self._tasks.mark_completed(report_id, status=decision.status, by=by, entry=entry):
            raise self._conflict(report_id, "completed", TaskStatus.IN_PROGRESS.value)
        logger.info("[tasks] report %s -> %s", report_id, decision.status.value)
        return self._populated(report_id)

    def add_remarks(self, actor: Actor, report_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN, Role.SUPERVISOR})
        now = now or now_utc()
        report = self._get(report_id)
        if report.status.is_closed:
            raise ValidationError("Cannot add remarks to a closed task")

        remark_date = _require_date(payload.get("date"), "Remarks date is required", "Remarks date")
        text = optional_text(payload.get("text"))
        if not text:
            raise ValidationError("Remarks text is required")

        by = ActorRef.from_actor(actor)
        remark = Remark(added_by=by, date=remark_date, text=text, created_at=now)
        entry = TimelineEntry(action=TimelineAction.REMARKS_ADDED, performed_by=by, timestamp=now, details=text)
        if not self._tasks.add_remark(report_id, remark=remark, entry=entry):
            self._get(report_id)
            raise ValidationError("Cannot add remarks to a closed task")
        return self._populated(report_id)

    def close(self, actor: Actor, report_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        actor.require({Role.ADMIN})
        now = now or now_utc()
        report = self._get(report_id)
        strategy = self._timing.for_status(report.status)

        closing_remarks = optional_text(payload.get("closingRemarks"))
        if not closing_remarks:
            raise ValidationError("Closing remarks are required")
        rating = require_rating(payload.get("rating"))

        by = ActorRef.from_actor(actor)
        entry = TimelineEntry(
            action=TimelineAction.CLOSED,
            performed_by=by,
            timestamp=now,
            details=f"Task closed with rating {rating:g}/5. Remarks: {closing_remarks}",
        )
        ok = self._tasks.mark_closed(
            report_id,
            from_status=report.status,
            status=strategy.closed_status(),
            closing_remarks=closing_remarks,
            rating=rating,
            by=by,
            entry=entry,
        )
        if not ok:
            current = self._get(report_id)
            raise StateConflictError(f"Only completed tasks can be closed. Current status: {current.status.value}")
        logger.info("[tasks] report %s closed by %s with rating %s", report_id, by.name, rating)
        return self._populated(report_id)

    def delete(self, actor: Actor, report_id: int) -> dict:
        actor.require({Role.ADMIN})
        report = self._get(report_id)
        employees = self._employee_map(report.employee_ids)
        names = ", ".join(employees[i].full_name for i in report.employee_ids if i in employees)

        if not self._tasks.delete(report_id):
            raise NotFoundError(_NOT_FOUND)
        logger.info("[tasks] report %s deleted by %s", report_id, actor.display_name)
        return {
            "message": "Work progress report deleted successfully",
            "deletedReport": {"id": report.report_id, "employees": names},
        }
