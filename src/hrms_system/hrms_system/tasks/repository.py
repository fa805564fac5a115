from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import TaskStatus
from .model import ActorRef, EmployeeTaskStats, Remark, TimelineEntry, WorkProgressReport


class TaskRepository(Protocol):
    """Work progress report persistence.

    Every transition is a compare-and-set on ``status``: it returns False when
    the stored status no longer matches, and writes nothing in that case. The
    timeline entry is stored in the same transaction as the state change.
    """

    def create(
        self,
        *,
        employee_ids: Sequence[int],
        assignment_date: datetime,
        deadline: datetime,
        days_for_completion: int,
        task_description: str,
        assigned_by: ActorRef,
        entry: TimelineEntry,
    ) -> int:
        raise NotImplementedError

    def get_by_id(self, report_id: int) -> Optional[WorkProgressReport]:
        raise NotImplementedError

    def update_pending(
        self,
        report_id: int,
        *,
        employee_ids: Sequence[int],
        assignment_date: datetime,
        deadline: datetime,
        days_for_completion: int,
        task_description: str,
        updated_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def mark_started(self, report_id: int, *, by: ActorRef, entry: TimelineEntry) -> bool:
        raise NotImplementedError

    def mark_completed(self, report_id: int, *, status: TaskStatus, by: ActorRef, entry: TimelineEntry) -> bool:
        raise NotImplementedError

    def add_remark(self, report_id: int, *, remark: Remark, entry: TimelineEntry) -> bool:
        """Rejected (False) once the report is in any Closed status."""
        raise NotImplementedError

    def mark_closed(
        self,
        report_id: int,
        *,
        from_status: TaskStatus,
        status: TaskStatus,
        closing_remarks: str,
        rating: float,
        by: ActorRef,
        entry: TimelineEntry,
    ) -> bool:
        raise NotImplementedError

    def delete(self, report_id: int) -> bool:
        raise NotImplementedError

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[WorkProgressReport], int]:
        raise NotImplementedError

    def closed_task_stats(
        self,
        employee_ids: Sequence[int],
        *,
        start: datetime,
        end: datetime,
    ) -> Sequence[EmployeeTaskStats]:
        """Closed reports whose last update falls in ``[start, end)``, per employee."""
        raise NotImplementedError
