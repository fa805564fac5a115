from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import now_utc
from ..common.number_utils import round_to_tenth
from ..common.pagination import PageRequest
from ..common.validators import optional_text, parse_id, parse_page, parse_year
from ..core.constants import DEFAULT_PAGE_SIZE, MAX_YEAR
from ..core.enums import EmployeeStatus, EmploymentType, PeriodType
from ..core.exceptions import ValidationError
from ..employees.repository import EmployeeRepository
from ..organization.repository import PositionRepository
from ..tasks.repository import TaskRepository
from .period.calendar_periods import period_for


def _int_or(value: Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed or default


def _enum_filter(enum_cls, value: Any, label: str):
    raw = optional_text(value)
    if not raw:
        return None
    try:
        return enum_cls(raw)
    except ValueError:
        valid = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {label}. Must be one of: {valid}")


@dataclass(frozen=True)
class ProgressQuery:
    page: PageRequest
    search: str
    status: Optional[EmployeeStatus]
    employment_type: Optional[EmploymentType]
    position_name: str
    department_id: Optional[int]
    period_type: PeriodType
    year: int
    quarter: int
    month: int

    @classmethod
    def from_args(cls, args: Mapping[str, Any], *, now: datetime) -> "ProgressQuery":
        raw_period = optional_text(args.get("periodType")) or PeriodType.YEARLY.value
        period_type = _enum_filter(PeriodType, raw_period, "period type")

        raw_department = optional_text(args.get("department"))
        return cls(
            page=PageRequest(
                page=parse_page(args.get("page"), 1),
                # 0 falls back to the default; a negative limit returns every row.
                limit=_int_or(args.get("limit"), DEFAULT_PAGE_SIZE),
            ),
            search=optional_text(args.get("search")),
            status=_enum_filter(EmployeeStatus, args.get("status"), "status"),
            employment_type=_enum_filter(EmploymentType, args.get("type"), "employment type"),
            position_name=optional_text(args.get("position")),
            department_id=parse_id(raw_department, "department ID") if raw_department else None,
            period_type=period_type,
            # The window ends on January 1st of the following year.
            year=parse_year(_int_or(args.get("year"), now.year), default=now.year, maximum=MAX_YEAR - 1),
            quarter=_int_or(args.get("quarter"), 1),
            month=_int_or(args.get("month"), 1),
        )


class EmployeeProgressService:
    """Per-employee closed-task counts and mean rating for a reporting window.

    Recomputed on every request; nothing is materialised.
    """

    def __init__(self, tasks: TaskRepository, employees: EmployeeRepository, positions: PositionRepository):
        self._tasks = tasks
        self._employees = employees
        self._positions = positions

    def _position_filter(self, q: ProgressQuery) -> Optional[Sequence[int]]:
        if q.department_id is None and not q.position_name:
            return None
        return self._positions.list_ids(department_id=q.department_id, name=q.position_name or None)

    def build_report(self, args: Mapping[str, Any], *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        q = ProgressQuery.from_args(args, now=now)
        start, end = period_for(q.period_type, year=q.year, quarter=q.quarter, month=q.month).window()

        employees, total = self._employees.page_filtered(
            page=q.page,
            search=q.search,
            status=q.status,
            employment_type=q.employment_type,
            position_ids=self._position_filter(q),
        )

        stats = {
            s.employee_id: s
            for s in self._tasks.closed_task_stats([e.employee_id for e in employees], start=start, end=end)
        }

        rows = []
        for e in employees:
            s = stats.get(e.employee_id)
            row = e.to_dict()
            row["tasksCompleted"] = s.tasks_completed if s else 0
            row["averageRating"] = round_to_tenth(s.average_rating) if s and s.average_rating is not None else 0
            rows.append(row)

        return {
            "employees": rows,
            "period": {"type": q.period_type.value, "start": start.isoformat(), "end": end.isoformat()},
            "pagination": q.page.describe(total, total_key="totalEmployees"),
        }
