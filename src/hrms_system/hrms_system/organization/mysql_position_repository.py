from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Position
from .repository import PositionRepository


def _row_to_position(r: dict) -> Position:
    return Position(
        position_id=int(r["position_id"]),
        name=r["name"],
        department_id=int(r["department_id"]),
        leave_policy_id=(int(r["leave_policy_id"]) if r.get("leave_policy_id") is not None else None),
        employee_limit=r.get("employee_limit") or "",
        hired_employees=int(r.get("hired_employees") or 0),
        allowance_policy_id=r.get("allowance_policy_id"),
        department_name=r.get("department_name"),
    )


class MySQLPositionRepository(PositionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, position_id: int) -> Optional[Position]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT p.position_id, p.name, p.department_id, p.leave_policy_id,
                       p.allowance_policy_id, p.employee_limit, p.hired_employees,
                       d.name AS department_name
                FROM positions p
                JOIN departments d ON d.department_id = p.department_id
                WHERE p.position_id=%s
                """,
                (int(position_id),),
            )
            row = fetchone(cur)
            return _row_to_position(row) if row else None

    def increment_hired(self, position_id: int, delta: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE positions SET hired_employees = hired_employees + %s WHERE position_id=%s",
                (int(delta), int(position_id)),
            )

    def list_ids(self, *, department_id: Optional[int] = None, name: Optional[str] = None) -> Sequence[int]:
        clauses = ["1=1"]
        params: list[object] = []
        if department_id is not None:
            clauses.append("department_id=%s")
            params.append(int(department_id))
        if name:
            clauses.append("name=%s")
            params.append(name)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT position_id FROM positions WHERE {' AND '.join(clauses)}",
                tuple(params),
            )
            return [int(r["position_id"]) for r in fetchall(cur)]

    def list_ids_by_leave_policy(self, leave_policy_id: int) -> Sequence[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT position_id FROM positions WHERE leave_policy_id=%s",
                (int(leave_policy_id),),
            )
            return [int(r["position_id"]) for r in fetchall(cur)]
