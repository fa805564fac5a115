from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, from_db_datetime, to_db_datetime
from .model import PositionHistoryEntry
from .repository import PositionHistoryRepository


class MySQLPositionHistoryRepository(PositionHistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def add(
        self,
        *,
        employee_id: int,
        from_position_id: Optional[int],
        to_position_id: int,
        changed_by_id: Optional[int],
        changed_by_name: str,
        effective_date: datetime,
        reason: str,
        changed_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO position_history(
                    employee_id, from_position_id, to_position_id, changed_by_id,
                    changed_by_name, effective_date, reason, changed_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(employee_id),
                    from_position_id,
                    int(to_position_id),
                    changed_by_id,
                    changed_by_name,
                    to_db_datetime(effective_date),
                    reason,
                    to_db_datetime(changed_at),
                ),
            )
            return int(cur.lastrowid)

    def list_for_employee(self, employee_id: int) -> Sequence[PositionHistoryEntry]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT h.history_id, h.employee_id, h.from_position_id, h.to_position_id,
                       h.changed_by_id, h.changed_by_name, h.effective_date, h.reason, h.changed_at,
                       fp.name AS from_position_name, tp.name AS to_position_name
                FROM position_history h
                LEFT JOIN positions fp ON fp.position_id = h.from_position_id
                JOIN positions tp ON tp.position_id = h.to_position_id
                WHERE h.employee_id=%s
                ORDER BY h.changed_at DESC, h.history_id DESC
                """,
                (int(employee_id),),
            )
            return [
                PositionHistoryEntry(
                    history_id=int(r["history_id"]),
                    employee_id=int(r["employee_id"]),
                    from_position_id=r.get("from_position_id"),
                    to_position_id=int(r["to_position_id"]),
                    changed_by_id=r.get("changed_by_id"),
                    changed_by_name=r.get("changed_by_name") or "",
                    effective_date=from_db_datetime(r["effective_date"]),
                    reason=r.get("reason") or "",
                    changed_at=from_db_datetime(r["changed_at"]),
                    from_position_name=r.get("from_position_name"),
                    to_position_name=r.get("to_position_name"),
                )
                for r in fetchall(cur)
            ]
