from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import EmployeeStatus, EmploymentType, Gender
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders, to_float
from .model import Employee, NewEmployee
from .repository import EmployeeRepository

_SELECT = """
    SELECT e.employee_id, e.employee_code, e.full_name, e.gender, e.position_id,
           e.status, e.employment_type, e.father_name, e.cnic, e.dob,
           e.contact_number, e.province, e.city, e.current_address,
           e.joining_date, e.basic_salary,
           p.name AS position_name, p.department_id, d.name AS department_name
    FROM employees e
    JOIN positions p ON p.position_id = e.position_id
    JOIN departments d ON d.department_id = p.department_id
"""

# Columns the profile update may touch (domain field -> column).
_PROFILE_COLUMNS = {
    "full_name": "full_name",
    "gender": "gender",
    "father_name": "father_name",
    "cnic": "cnic",
    "dob": "dob",
    "contact_number": "contact_number",
    "province": "province",
    "city": "city",
    "current_address": "current_address",
    "joining_date": "joining_date",
    "basic_salary": "basic_salary",
    "employment_type": "employment_type",
}


def _row_to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        full_name=r["full_name"],
        gender=Gender(r["gender"]),
        position_id=int(r["position_id"]),
        status=EmployeeStatus(r["status"]),
        employment_type=EmploymentType(r["employment_type"]),
        father_name=r.get("father_name") or "",
        cnic=r.get("cnic"),
        dob=r.get("dob"),
        contact_number=r.get("contact_number") or "",
        province=r.get("province") or "",
        city=r.get("city") or "",
        current_address=r.get("current_address") or "",
        joining_date=r.get("joining_date"),
        basic_salary=to_float(r.get("basic_salary")) or 0.0,
        position_name=r.get("position_name"),
        department_id=r.get("department_id"),
        department_name=r.get("department_name"),
    )


def _db_value(value: Any) -> Any:
    # Enums go to the DB as their string value.
    return getattr(value, "value", value)


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, employee_id: int) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.employee_id=%s", (int(employee_id),))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def get_by_ids(self, employee_ids: Sequence[int]) -> Sequence[Employee]:
        ids = [int(i) for i in employee_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + f" WHERE e.employee_id IN ({placeholders(ids)})", tuple(ids))
            return [_row_to_employee(r) for r in fetchall(cur)]

    def find_by_cnic(self, cnic: str, *, exclude_id: Optional[int] = None) -> Optional[Employee]:
        sql = _SELECT + " WHERE e.cnic=%s"
        params: list[object] = [cnic]
        if exclude_id is not None:
            sql += " AND e.employee_id<>%s"
            params.append(int(exclude_id))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            row = fetchone(cur)
            return _row_to_employee(row) if row else None

    def last_employee_code(self) -> Optional[str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT employee_code FROM employees ORDER BY employee_id DESC LIMIT 1")
            row = fetchone(cur)
            return row["employee_code"] if row else None

    def create(self, data: NewEmployee) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO employees(
                    employee_code, position_id, full_name, gender, father_name, cnic, dob,
                    contact_number, province, city, current_address, joining_date,
                    basic_salary, status, employment_type
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    data.employee_code,
                    int(data.position_id),
                    data.full_name,
                    data.gender.value,
                    data.father_name,
                    data.cnic,
                    data.dob,
                    data.contact_number,
                    data.province,
                    data.city,
                    data.current_address,
                    data.joining_date,
                    data.basic_salary,
                    EmployeeStatus.ACTIVE.value,
                    data.employment_type.value,
                ),
            )
            return int(cur.lastrowid)

    def update_profile(self, employee_id: int, changes: Mapping[str, Any]) -> None:
        sets: list[str] = []
        params: list[object] = []
        for key, value in changes.items():
            column = _PROFILE_COLUMNS.get(key)
            if column is None:
                raise KeyError(f"Unknown employee field: {key}")
            sets.append(f"{column}=%s")
            params.append(_db_value(value))
        if not sets:
            return

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE employees SET {', '.join(sets)} WHERE employee_id=%s",
                tuple(params + [int(employee_id)]),
            )

    def set_position(self, employee_id: int, position_id: int) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET position_id=%s WHERE employee_id=%s",
                (int(position_id), int(employee_id)),
            )

    def set_status(self, employee_id: int, status: EmployeeStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE employees SET status=%s WHERE employee_id=%s",
                (status.value, int(employee_id)),
            )

    def list_active(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE e.status=%s ORDER BY e.employee_id", (EmployeeStatus.ACTIVE.value,))
            return [_row_to_employee(r) for r in fetchall(cur)]

    def list_active_by_positions(self, position_ids: Sequence[int]) -> Sequence[Employee]:
        ids = [int(i) for i in position_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + f" WHERE e.status=%s AND e.position_id IN ({placeholders(ids)}) ORDER BY e.employee_id",
                tuple([EmployeeStatus.ACTIVE.value] + ids),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def search_active(self, query: str, *, limit: int) -> Sequence[Employee]:
        like = f"%{query}%"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE e.status=%s AND (e.full_name LIKE %s OR e.employee_code LIKE %s)
                ORDER BY e.full_name
                LIMIT %s
                """,
                (EmployeeStatus.ACTIVE.value, like, like, int(limit)),
            )
            return [_row_to_employee(r) for r in fetchall(cur)]

    def page_filtered(
        self,
        *,
        page: PageRequest,
        search: str = "",
        status: Optional[EmployeeStatus] = None,
        employment_type: Optional[EmploymentType] = None,
        position_ids: Optional[Sequence[int]] = None,
    ) -> tuple[Sequence[Employee], int]:
        if position_ids is not None and not position_ids:
            return [], 0

        clauses = ["1=1"]
        params: list[object] = []
        if search:
            like = f"%{search}%"
            clauses.append("(e.full_name LIKE %s OR e.employee_code LIKE %s OR e.cnic LIKE %s)")
            params.extend([like, like, like])
        if status is not None:
            clauses.append("e.status=%s")
            params.append(status.value)
        if employment_type is not None:
            clauses.append("e.employment_type=%s")
            params.append(employment_type.value)
        if position_ids is not None:
            ids = [int(i) for i in position_ids]
            clauses.append(f"e.position_id IN ({placeholders(ids)})")
            params.extend(ids)

        where = " AND ".join(clauses)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT COUNT(*) AS total FROM employees e WHERE {where}",
                tuple(params),
            )
            total = int((fetchone(cur) or {"total": 0})["total"])

            sql = _SELECT + f" WHERE {where} ORDER BY e.created_at DESC, e.employee_id DESC"
            page_params = list(params)
            if page.limit > 0:
                sql += " LIMIT %s OFFSET %s"
                page_params.extend([page.limit, page.offset])
            cur.execute(sql, tuple(page_params))
            return [_row_to_employee(r) for r in fetchall(cur)], total
