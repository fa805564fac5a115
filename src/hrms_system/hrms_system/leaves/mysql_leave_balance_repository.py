from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Entitlement, LeaveBalance
from .repository import LeaveBalanceRepository


class MySQLLeaveBalanceRepository(LeaveBalanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_for_employee(self, employee_id: int, *, year: Optional[int] = None) -> Sequence[LeaveBalance]:
        clauses = ["b.employee_id=%s"]
        params: list[object] = [int(employee_id)]
        if year is not None:
            clauses.append("b.year=%s")
            params.append(int(year))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT b.balance_id, b.employee_id, b.leave_type_id, b.year,
                       b.total_days, b.used_days, b.remaining_days,
                       t.name AS leave_type_name
                FROM leave_balances b
                JOIN leave_types t ON t.leave_type_id = b.leave_type_id
                WHERE {' AND '.join(clauses)}
                ORDER BY b.year DESC, t.name
                """,
                tuple(params),
            )
            return [
                LeaveBalance(
                    balance_id=int(r["balance_id"]),
                    employee_id=int(r["employee_id"]),
                    leave_type_id=int(r["leave_type_id"]),
                    year=int(r["year"]),
                    total_days=int(r["total_days"]),
                    used_days=int(r["used_days"]),
                    remaining_days=int(r["remaining_days"]),
                    leave_type_name=r.get("leave_type_name"),
                )
                for r in fetchall(cur)
            ]

    def count_for_employee(self, employee_id: int, *, year: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS total FROM leave_balances WHERE employee_id=%s AND year=%s",
                (int(employee_id), int(year)),
            )
            r = fetchone(cur)
            return int(r["total"]) if r else 0

    def create(
        self,
        *,
        employee_id: int,
        leave_type_id: int,
        year: int,
        total_days: int,
        used_days: int = 0,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO leave_balances(employee_id, leave_type_id, year, total_days, used_days, remaining_days)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    int(leave_type_id),
                    int(year),
                    int(total_days),
                    int(used_days),
                    max(0, int(total_days) - int(used_days)),
                ),
            )
            return int(cur.lastrowid)

    def create_many(self, *, employee_id: int, year: int, entitlements: Sequence[Entitlement]) -> int:
        rows = [
            (int(employee_id), int(e.leave_type_id), int(year), int(e.days), 0, int(e.days))
            for e in entitlements
        ]
        if not rows:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT INTO leave_balances(employee_id, leave_type_id, year, total_days, used_days, remaining_days)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                rows,
            )
            return len(rows)

    def update_totals(self, balance_id: int, *, total_days: int, remaining_days: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_balances SET total_days=%s, remaining_days=%s WHERE balance_id=%s",
                (int(total_days), int(remaining_days), int(balance_id)),
            )

    def update_used(self, balance_id: int, *, used_days: int, remaining_days: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_balances SET used_days=%s, remaining_days=%s WHERE balance_id=%s",
                (int(used_days), int(remaining_days), int(balance_id)),
            )
