from __future__ import annotations

from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import Department
from .repository import DepartmentRepository


class MySQLDepartmentRepository(DepartmentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, department_id: int) -> Optional[Department]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT department_id, name, position_count, employee_count, is_active
                FROM departments
                WHERE department_id=%s
                """,
                (int(department_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Department(
                department_id=int(r["department_id"]),
                name=r["name"],
                position_count=r.get("position_count") or "",
                employee_count=int(r.get("employee_count") or 0),
                is_active=bool(r.get("is_active", True)),
            )

    def increment_employee_count(self, department_id: int, delta: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE departments SET employee_count = employee_count + %s WHERE department_id=%s",
                (int(delta), int(department_id)),
            )
