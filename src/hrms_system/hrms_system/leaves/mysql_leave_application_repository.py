from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import LeaveApplicationStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, placeholders, to_db_datetime
from .application_model import DateRange, LeaveApplication, NewLeaveApplication
from .application_repository import LeaveApplicationRepository

_FROM = """
    FROM leave_applications a
    JOIN employees e ON e.employee_id = a.employee_id
    JOIN leave_types t ON t.leave_type_id = a.leave_type_id
"""

_SELECT = (
    """
    SELECT a.application_id, a.employee_id, a.leave_type_id, a.reason, a.status,
           a.applied_by_id, a.approved_by_id, a.created_by, a.created_at, a.updated_at,
           e.full_name AS employee_name, e.employee_code,
           t.name AS leave_type_name
    """
    + _FROM
)


def _row_to_application(r: dict, ranges: Sequence[DateRange], dates: Sequence[date]) -> LeaveApplication:
    return LeaveApplication(
        application_id=int(r["application_id"]),
        employee_id=int(r["employee_id"]),
        leave_type_id=int(r["leave_type_id"]),
        date_ranges=tuple(ranges),
        dates=tuple(dates),
        reason=r.get("reason") or "",
        status=LeaveApplicationStatus(r["status"]),
        applied_by_id=r.get("applied_by_id"),
        approved_by_id=r.get("approved_by_id"),
        created_by=r.get("created_by") or "",
        created_at=from_db_datetime(r["created_at"]),
        updated_at=from_db_datetime(r["updated_at"]),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
        leave_type_name=r.get("leave_type_name") or "",
    )


class MySQLLeaveApplicationRepository(LeaveApplicationRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _insert_days(cur, application_id: int, ranges: Sequence[DateRange], dates: Sequence[date]) -> None:
        cur.executemany(
            "INSERT INTO leave_application_ranges(application_id, start_date, end_date, sort_order) VALUES(%s,%s,%s,%s)",
            [(int(application_id), r.start_date, r.end_date, idx) for idx, r in enumerate(ranges)],
        )
        cur.executemany(
            "INSERT INTO leave_application_dates(application_id, leave_date) VALUES(%s,%s)",
            [(int(application_id), d) for d in dates],
        )

    @staticmethod
    def _days(cur, application_ids: Sequence[int]) -> tuple[dict[int, list[DateRange]], dict[int, list[date]]]:
        ranges: dict[int, list[DateRange]] = {int(i): [] for i in application_ids}
        dates: dict[int, list[date]] = {int(i): [] for i in application_ids}
        if not application_ids:
            return ranges, dates

        ids = tuple(int(i) for i in application_ids)
        cur.execute(
            f"""
            SELECT application_id, start_date, end_date
            FROM leave_application_ranges
            WHERE application_id IN ({placeholders(ids)})
            ORDER BY application_id, sort_order
            """,
            ids,
        )
        for r in fetchall(cur):
            ranges[int(r["application_id"])].append(DateRange(r["start_date"], r["end_date"]))

        cur.execute(
            f"""
            SELECT application_id, leave_date
            FROM leave_application_dates
            WHERE application_id IN ({placeholders(ids)})
            ORDER BY application_id, leave_date
            """,
            ids,
        )
        for r in fetchall(cur):
            dates[int(r["application_id"])].append(r["leave_date"])
        return ranges, dates

    def get_by_id(self, application_id: int) -> Optional[LeaveApplication]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.application_id=%s", (int(application_id),))
            row = fetchone(cur)
            if not row:
                return None
            ranges, dates = self._days(cur, [int(application_id)])
            return _row_to_application(row, ranges[int(application_id)], dates[int(application_id)])

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[LeaveApplication], int]:
        where = ""
        params: list[object] = []
        if search:
            like = f"%{search}%"
            where = " WHERE (e.full_name LIKE %s OR e.employee_code LIKE %s OR t.name LIKE %s)"
            params = [like, like, like]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS total" + _FROM + where, tuple(params))
            total = int((fetchone(cur) or {"total": 0})["total"])

            sql = _SELECT + where + " ORDER BY a.created_at DESC, a.application_id DESC"
            if page.limit > 0:
                sql += " LIMIT %s OFFSET %s"
                params.extend([page.limit, page.offset])
            cur.execute(sql, tuple(params))
            rows = fetchall(cur)

            ranges, dates = self._days(cur, [int(r["application_id"]) for r in rows])
            return [
                _row_to_application(r, ranges[int(r["application_id"])], dates[int(r["application_id"])])
                for r in rows
            ], total

    def booked_dates(
        self,
        employee_id: int,
        dates: Sequence[date],
        *,
        exclude_id: Optional[int] = None,
    ) -> Sequence[date]:
        if not dates:
            return []
        sql = f"""
            SELECT DISTINCT d.leave_date
            FROM leave_application_dates d
            JOIN leave_applications a ON a.application_id = d.application_id
            WHERE a.employee_id=%s AND a.status<>%s
              AND d.leave_date IN ({placeholders(dates)})
        """
        params: list[object] = [int(employee_id), LeaveApplicationStatus.REJECTED.value, *dates]
        if exclude_id is not None:
            sql += " AND a.application_id<>%s"
            params.append(int(exclude_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY d.leave_date", tuple(params))
            return [r["leave_date"] for r in fetchall(cur)]

    def create(self, data: NewLeaveApplication) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_applications(
                    employee_id, leave_type_id, reason, status, applied_by_id, approved_by_id,
                    created_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(data.employee_id),
                    int(data.leave_type_id),
                    data.reason,
                    data.status.value,
                    data.applied_by_id,
                    data.approved_by_id,
                    data.created_by,
                    to_db_datetime(data.created_at),
                    to_db_datetime(data.created_at),
                ),
            )
            application_id = int(cur.lastrowid)
            self._insert_days(cur, application_id, data.date_ranges, data.dates)
            return application_id

    def update(
        self,
        application_id: int,
        *,
        employee_id: int,
        leave_type_id: int,
        date_ranges: Sequence[DateRange],
        dates: Sequence[date],
        reason: str,
        updated_at: datetime,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET employee_id=%s, leave_type_id=%s, reason=%s, updated_at=%s
                WHERE application_id=%s
                """,
                (int(employee_id), int(leave_type_id), reason, to_db_datetime(updated_at), int(application_id)),
            )
            cur.execute("DELETE FROM leave_application_ranges WHERE application_id=%s", (int(application_id),))
            cur.execute("DELETE FROM leave_application_dates WHERE application_id=%s", (int(application_id),))
            self._insert_days(cur, application_id, date_ranges, dates)

    def decide(
        self,
        application_id: int,
        *,
        from_status: LeaveApplicationStatus,
        status: LeaveApplicationStatus,
        decided_by_id: Optional[int],
        updated_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE leave_applications
                SET status=%s, approved_by_id=%s, updated_at=%s
                WHERE application_id=%s AND status=%s
                """,
                (
                    status.value,
                    decided_by_id,
                    to_db_datetime(updated_at),
                    int(application_id),
                    from_status.value,
                ),
            )
            return cur.rowcount == 1

    def delete(self, application_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_applications WHERE application_id=%s", (int(application_id),))
            return cur.rowcount == 1
