from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import CLOSED_STATUSES, TaskStatus, TimelineAction
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    fetchall,
    fetchone,
    from_db_datetime,
    placeholders,
    to_db_datetime,
    to_float,
)
from .model import ActorRef, EmployeeTaskStats, Remark, TimelineEntry, WorkProgressReport
from .repository import TaskRepository

_REPORT_COLUMNS = """
    r.report_id, r.assignment_date, r.deadline, r.days_for_completion, r.task_description,
    r.status, r.start_date, r.completion_date,
    r.assigned_by_id, r.assigned_by_name, r.started_by_id, r.started_by_name,
    r.completed_by_id, r.completed_by_name, r.closed_by_id, r.closed_by_name,
    r.closing_remarks, r.rating, r.created_at, r.updated_at
"""

_CLOSED_VALUES = tuple(s.value for s in CLOSED_STATUSES)


def _ref(r: dict, prefix: str) -> Optional[ActorRef]:
    name = r.get(f"{prefix}_name")
    if name is None:
        return None
    return ActorRef(user_id=r.get(f"{prefix}_id"), name=name)


def _row_to_report(
    r: dict,
    employee_ids: Sequence[int],
    remarks: Sequence[Remark] = (),
    timeline: Sequence[TimelineEntry] = (),
) -> WorkProgressReport:
    return WorkProgressReport(
        report_id=int(r["report_id"]),
        employee_ids=tuple(employee_ids),
        assignment_date=from_db_datetime(r["assignment_date"]),
        deadline=from_db_datetime(r["deadline"]),
        days_for_completion=int(r["days_for_completion"]),
        task_description=r["task_description"],
        status=TaskStatus(r["status"]),
        assigned_by=_ref(r, "assigned_by") or ActorRef(user_id=None, name=""),
        created_at=from_db_datetime(r["created_at"]),
        updated_at=from_db_datetime(r["updated_at"]),
        start_date=from_db_datetime(r.get("start_date")),
        completion_date=from_db_datetime(r.get("completion_date")),
        started_by=_ref(r, "started_by"),
        completed_by=_ref(r, "completed_by"),
        closed_by=_ref(r, "closed_by"),
        closing_remarks=r.get("closing_remarks"),
        rating=to_float(r.get("rating")),
        remarks=tuple(remarks),
        timeline=tuple(timeline),
    )


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _insert_entry(cur, report_id: int, entry: TimelineEntry) -> None:
        cur.execute(
            """
            INSERT INTO work_progress_report_timeline(
                report_id, action, performed_by_id, performed_by_name, occurred_at, details
            )
            VALUES(%s,%s,%s,%s,%s,%s)
            """,
            (
                int(report_id),
                entry.action.value,
                entry.performed_by.user_id,
                entry.performed_by.name,
                to_db_datetime(entry.timestamp),
                entry.details,
            ),
        )

    @staticmethod
    def _insert_employees(cur, report_id: int, employee_ids: Sequence[int]) -> None:
        cur.executemany(
            "INSERT INTO work_progress_report_employees(report_id, employee_id, sort_order) VALUES(%s,%s,%s)",
            [(int(report_id), int(emp_id), idx) for idx, emp_id in enumerate(employee_ids)],
        )

    @staticmethod
    def _employee_ids(cur, report_ids: Sequence[int]) -> dict[int, list[int]]:
        out: dict[int, list[int]] = {int(i): [] for i in report_ids}
        if not report_ids:
            return out
        cur.execute(
            f"""
            SELECT report_id, employee_id
            FROM work_progress_report_employees
            WHERE report_id IN ({placeholders(report_ids)})
            ORDER BY report_id, sort_order
            """,
            tuple(int(i) for i in report_ids),
        )
        for r in fetchall(cur):
            out[int(r["report_id"])].append(int(r["employee_id"]))
        return out

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO work_progress_reports(
                    assignment_date, deadline, days_for_completion, task_description, status,
                    assigned_by_id, assigned_by_name, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    to_db_datetime(assignment_date),
                    to_db_datetime(deadline),
                    int(days_for_completion),
                    task_description,
                    TaskStatus.PENDING.value,
                    assigned_by.user_id,
                    assigned_by.name,
                    to_db_datetime(entry.timestamp),
                    to_db_datetime(entry.timestamp),
                ),
            )
            report_id = int(cur.lastrowid)
            self._insert_employees(cur, report_id, employee_ids)
            self._insert_entry(cur, report_id, entry)
            return report_id

    def get_by_id(self, report_id: int) -> Optional[WorkProgressReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_REPORT_COLUMNS} FROM work_progress_reports r WHERE r.report_id=%s",
                (int(report_id),),
            )
            row = fetchone(cur)
            if not row:
                return None

            employee_ids = self._employee_ids(cur, [int(report_id)])[int(report_id)]

            cur.execute(
                """
                SELECT added_by_id, added_by_name, remark_date, text, created_at
                FROM work_progress_report_remarks
                WHERE report_id=%s
                ORDER BY remark_id
                """,
                (int(report_id),),
            )
            remarks = [
                Remark(
                    added_by=ActorRef(user_id=r.get("added_by_id"), name=r.get("added_by_name") or ""),
                    date=from_db_datetime(r["remark_date"]),
                    text=r["text"],
                    created_at=from_db_datetime(r["created_at"]),
                )
                for r in fetchall(cur)
            ]

            cur.execute(
                """
                SELECT action, performed_by_id, performed_by_name, occurred_at, details
                FROM work_progress_report_timeline
                WHERE report_id=%s
                ORDER BY entry_id
                """,
                (int(report_id),),
            )
            timeline = [
                TimelineEntry(
                    action=TimelineAction(r["action"]),
                    performed_by=ActorRef(user_id=r.get("performed_by_id"), name=r.get("performed_by_name") or ""),
                    timestamp=from_db_datetime(r["occurred_at"]),
                    details=r.get("details") or "",
                )
                for r in fetchall(cur)
            ]

            return _row_to_report(row, employee_ids, remarks, timeline)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_progress_reports
                SET assignment_date=%s, deadline=%s, days_for_completion=%s,
                    task_description=%s, updated_at=%s
                WHERE report_id=%s AND status=%s
                """,
                (
                    to_db_datetime(assignment_date),
                    to_db_datetime(deadline),
                    int(days_for_completion),
                    task_description,
                    to_db_datetime(updated_at),
                    int(report_id),
                    TaskStatus.PENDING.value,
                ),
            )
            if cur.rowcount != 1:
                return False
            cur.execute("DELETE FROM work_progress_report_employees WHERE report_id=%s", (int(report_id),))
            self._insert_employees(cur, report_id, employee_ids)
            return True

    def mark_started(self, report_id: int, *, by: ActorRef, entry: TimelineEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_progress_reports
                SET status=%s, start_date=%s, started_by_id=%s, started_by_name=%s, updated_at=%s
                WHERE report_id=%s AND status=%s
                """,
                (
                    TaskStatus.IN_PROGRESS.value,
                    to_db_datetime(entry.timestamp),
                    by.user_id,
                    by.name,
                    to_db_datetime(entry.timestamp),
                    int(report_id),
                    TaskStatus.PENDING.value,
                ),
            )
            if cur.rowcount != 1:
                return False
            self._insert_entry(cur, report_id, entry)
            return True

    def mark_completed(self, report_id: int, *, status: TaskStatus, by: ActorRef, entry: TimelineEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_progress_reports
                SET status=%s, completion_date=%s, completed_by_id=%s, completed_by_name=%s, updated_at=%s
                WHERE report_id=%s AND status=%s
                """,
                (
                    status.value,
                    to_db_datetime(entry.timestamp),
                    by.user_id,
                    by.name,
                    to_db_datetime(entry.timestamp),
                    int(report_id),
                    TaskStatus.IN_PROGRESS.value,
                ),
            )
            if cur.rowcount != 1:
                return False
            self._insert_entry(cur, report_id, entry)
            return True

    def add_remark(self, report_id: int, *, remark: Remark, entry: TimelineEntry) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE work_progress_reports
                SET updated_at=%s
                WHERE report_id=%s AND status NOT IN ({placeholders(_CLOSED_VALUES)})
                """,
                (to_db_datetime(entry.timestamp), int(report_id), *_CLOSED_VALUES),
            )
            if cur.rowcount != 1:
                return False
            cur.execute(
                """
                INSERT INTO work_progress_report_remarks(
                    report_id, added_by_id, added_by_name, remark_date, text, created_at
                )
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(report_id),
                    remark.added_by.user_id,
                    remark.added_by.name,
                    to_db_datetime(remark.date),
                    remark.text,
                    to_db_datetime(remark.created_at),
                ),
            )
            self._insert_entry(cur, report_id, entry)
            return True

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE work_progress_reports
                SET status=%s, closing_remarks=%s, rating=%s, closed_by_id=%s, closed_by_name=%s, updated_at=%s
                WHERE report_id=%s AND status=%s
                """,
                (
                    status.value,
                    closing_remarks,
                    rating,
                    by.user_id,
                    by.name,
                    to_db_datetime(entry.timestamp),
                    int(report_id),
                    from_status.value,
                ),
            )
            if cur.rowcount != 1:
                return False
            self._insert_entry(cur, report_id, entry)
            return True

    def delete(self, report_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM work_progress_reports WHERE report_id=%s", (int(report_id),))
            return cur.rowcount == 1

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[WorkProgressReport], int]:
        where = "1=1"
        params: list[object] = []
        if search:
            like = f"%{search}%"
            where = """
                (r.task_description LIKE %s
                 OR r.assigned_by_name LIKE %s
                 OR EXISTS (
                    SELECT 1 FROM work_progress_report_employees re
                    JOIN employees e ON e.employee_id = re.employee_id
                    WHERE re.report_id = r.report_id
                      AND (e.full_name LIKE %s OR e.employee_code LIKE %s)
                 ))
            """
            params = [like, like, like, like]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM work_progress_reports r WHERE {where}", tuple(params))
            total = int((fetchone(cur) or {"total": 0})["total"])

            sql = f"""
                SELECT {_REPORT_COLUMNS}
                FROM work_progress_reports r
                WHERE {where}
                ORDER BY r.created_at DESC, r.report_id DESC
            """
            page_params = list(params)
            if page.limit > 0:
                sql += " LIMIT %s OFFSET %s"
                page_params.extend([page.limit, page.offset])
            cur.execute(sql, tuple(page_params))
            rows = fetchall(cur)

            ids = self._employee_ids(cur, [int(r["report_id"]) for r in rows])
            return [_row_to_report(r, ids[int(r["report_id"])]) for r in rows], total

    def closed_task_stats(
        self,
        employee_ids: Sequence[int],
        *,
        start: datetime,
        end: datetime,
    ) -> Sequence[EmployeeTaskStats]:
        ids = [int(i) for i in employee_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT re.employee_id, COUNT(*) AS tasks_completed, AVG(r.rating) AS average_rating
                FROM work_progress_reports r
                JOIN work_progress_report_employees re ON re.report_id = r.report_id
                WHERE re.employee_id IN ({placeholders(ids)})
                  AND r.status IN ({placeholders(_CLOSED_VALUES)})
                  AND r.updated_at >= %s AND r.updated_at < %s
                GROUP BY re.employee_id
                """,
                (*ids, *_CLOSED_VALUES, to_db_datetime(start), to_db_datetime(end)),
            )
            return [
                EmployeeTaskStats(
                    employee_id=int(r["employee_id"]),
                    tasks_completed=int(r["tasks_completed"]),
                    average_rating=to_float(r.get("average_rating")),
                )
                for r in fetchall(cur)
            ]
