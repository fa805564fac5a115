from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import DisciplinaryStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, placeholders, to_db_datetime
from .model import DisciplinaryAction, NewDisciplinaryAction, WarningType
from .repository import DisciplinaryActionRepository, WarningTypeRepository

# Columns an edit may touch (domain field -> column).
_EDITABLE_COLUMNS = {
    "employee_id": "employee_id",
    "warning_type_id": "warning_type_id",
    "description": "description",
    "action_date": "action_date",
    "status": "status",
}

_SELECT = """
    SELECT a.action_id, a.employee_id, a.description, a.action_date, a.status,
           a.created_by, a.created_at, a.updated_at,
           e.full_name AS employee_name, e.employee_code,
           w.warning_type_id, w.name AS warning_type_name, w.severity
    FROM disciplinary_actions a
    JOIN employees e ON e.employee_id = a.employee_id
    JOIN warning_types w ON w.warning_type_id = a.warning_type_id
"""


def _row_to_action(r: dict) -> DisciplinaryAction:
    return DisciplinaryAction(
        action_id=int(r["action_id"]),
        employee_id=int(r["employee_id"]),
        warning_type=WarningType(
            warning_type_id=int(r["warning_type_id"]),
            name=r["warning_type_name"],
            severity=r.get("severity") or "",
        ),
        description=r["description"],
        action_date=from_db_datetime(r["action_date"]),
        status=DisciplinaryStatus(r["status"]),
        created_by=r.get("created_by") or "",
        created_at=from_db_datetime(r["created_at"]),
        updated_at=from_db_datetime(r["updated_at"]),
        employee_name=r.get("employee_name") or "",
        employee_code=r.get("employee_code") or "",
    )


class MySQLWarningTypeRepository(WarningTypeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, warning_type_id: int) -> Optional[WarningType]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT warning_type_id, name, severity FROM warning_types WHERE warning_type_id=%s",
                (int(warning_type_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return WarningType(warning_type_id=int(r["warning_type_id"]), name=r["name"], severity=r["severity"])


class MySQLDisciplinaryActionRepository(DisciplinaryActionRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, action_id: int) -> Optional[DisciplinaryAction]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SELECT + " WHERE a.action_id=%s", (int(action_id),))
            row = fetchone(cur)
            return _row_to_action(row) if row else None

    def create(self, data: NewDisciplinaryAction) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO disciplinary_actions(
                    employee_id, warning_type_id, description, action_date, status,
                    created_by, created_at, updated_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(data.employee_id),
                    int(data.warning_type_id),
                    data.description,
                    to_db_datetime(data.action_date),
                    DisciplinaryStatus.ACTIVE.value,
                    data.created_by,
                    to_db_datetime(data.created_at),
                    to_db_datetime(data.created_at),
                ),
            )
            return int(cur.lastrowid)

    def update(self, action_id: int, changes: Mapping[str, Any], *, updated_at: datetime) -> None:
        sets: list[str] = []
        params: list[object] = []
        for key, value in changes.items():
            column = _EDITABLE_COLUMNS.get(key)
            if column is None:
                raise KeyError(f"Unknown disciplinary action field: {key}")
            if isinstance(value, datetime):
                value = to_db_datetime(value)
            elif isinstance(value, DisciplinaryStatus):
                value = value.value
            sets.append(f"{column}=%s")
            params.append(value)
        sets.append("updated_at=%s")
        params.append(to_db_datetime(updated_at))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE disciplinary_actions SET {', '.join(sets)} WHERE action_id=%s",
                tuple(params + [int(action_id)]),
            )

    def set_status(self, action_id: int, status: DisciplinaryStatus, *, updated_at: datetime) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE disciplinary_actions SET status=%s, updated_at=%s WHERE action_id=%s",
                (status.value, to_db_datetime(updated_at), int(action_id)),
            )

    def delete(self, action_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM disciplinary_actions WHERE action_id=%s", (int(action_id),))
            return cur.rowcount > 0

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[DisciplinaryAction], int]:
        where = ""
        params: list[object] = []
        if search:
            like = f"%{search}%"
            where = " WHERE (e.full_name LIKE %s OR e.employee_code LIKE %s OR w.name LIKE %s)"
            params = [like, like, like]

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(*) AS total
                FROM disciplinary_actions a
                JOIN employees e ON e.employee_id = a.employee_id
                JOIN warning_types w ON w.warning_type_id = a.warning_type_id
                """
                + where,
                tuple(params),
            )
            total = int((fetchone(cur) or {"total": 0})["total"])

            sql = _SELECT + where + " ORDER BY a.created_at DESC, a.action_id DESC"
            if page.limit > 0:
                sql += " LIMIT %s OFFSET %s"
                params.extend([page.limit, page.offset])
            cur.execute(sql, tuple(params))
            return [_row_to_action(r) for r in fetchall(cur)], total

    def mark_inactive(self, action_ids: Sequence[int]) -> int:
        ids = [int(i) for i in action_ids]
        if not ids:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE disciplinary_actions SET status=%s WHERE status=%s AND action_id IN ({placeholders(ids)})",
                (DisciplinaryStatus.INACTIVE.value, DisciplinaryStatus.ACTIVE.value, *ids),
            )
            return int(cur.rowcount)
