from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import PolicyStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, placeholders
from .model import Entitlement, LeavePolicy, LeaveType
from .repository import LeavePolicyRepository


class MySQLLeavePolicyRepository(LeavePolicyRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @staticmethod
    def _load_entitlements(cur, leave_policy_id: int) -> tuple[Entitlement, ...]:
        cur.execute(
            """
            SELECT e.leave_type_id, e.days, t.name AS leave_type_name
            FROM leave_policy_entitlements e
            JOIN leave_types t ON t.leave_type_id = e.leave_type_id
            WHERE e.leave_policy_id=%s
            ORDER BY e.sort_order, e.leave_type_id
            """,
            (int(leave_policy_id),),
        )
        return tuple(
            Entitlement(
                leave_type_id=int(r["leave_type_id"]),
                days=int(r["days"]),
                leave_type_name=r.get("leave_type_name"),
            )
            for r in fetchall(cur)
        )

    @staticmethod
    def _insert_entitlements(cur, leave_policy_id: int, entitlements: Sequence[Entitlement]) -> None:
        for idx, ent in enumerate(entitlements):
            cur.execute(
                """
                INSERT INTO leave_policy_entitlements(leave_policy_id, leave_type_id, days, sort_order)
                VALUES(%s,%s,%s,%s)
                """,
                (int(leave_policy_id), int(ent.leave_type_id), int(ent.days), idx),
            )

    def _row_to_policy(self, cur, r: dict) -> LeavePolicy:
        policy_id = int(r["leave_policy_id"])
        return LeavePolicy(
            leave_policy_id=policy_id,
            name=r["name"],
            entitlements=self._load_entitlements(cur, policy_id),
            status=PolicyStatus(r["status"]),
            created_by=r.get("created_by") or "",
        )

    def get_by_id(self, leave_policy_id: int) -> Optional[LeavePolicy]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT leave_policy_id, name, status, created_by FROM leave_policies WHERE leave_policy_id=%s",
                (int(leave_policy_id),),
            )
            r = fetchone(cur)
            return self._row_to_policy(cur, r) if r else None

    def find_by_name(self, name: str, *, exclude_id: Optional[int] = None) -> Optional[LeavePolicy]:
        sql = "SELECT leave_policy_id, name, status, created_by FROM leave_policies WHERE LOWER(name)=LOWER(%s)"
        params: list[object] = [name]
        if exclude_id is not None:
            sql += " AND leave_policy_id<>%s"
            params.append(int(exclude_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            r = fetchone(cur)
            return self._row_to_policy(cur, r) if r else None

    def create(
        self,
        *,
        name: str,
        entitlements: Sequence[Entitlement],
        status: PolicyStatus,
        created_by: str,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO leave_policies(name, status, created_by) VALUES(%s,%s,%s)",
                (name, status.value, created_by),
            )
            policy_id = int(cur.lastrowid)
            self._insert_entitlements(cur, policy_id, entitlements)
            return policy_id

    def update(
        self,
        leave_policy_id: int,
        *,
        name: Optional[str] = None,
        entitlements: Optional[Sequence[Entitlement]] = None,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            if name is not None:
                cur.execute(
                    "UPDATE leave_policies SET name=%s WHERE leave_policy_id=%s",
                    (name, int(leave_policy_id)),
                )
            if entitlements is not None:
                cur.execute(
                    "DELETE FROM leave_policy_entitlements WHERE leave_policy_id=%s",
                    (int(leave_policy_id),),
                )
                self._insert_entitlements(cur, int(leave_policy_id), entitlements)

    def set_status(self, leave_policy_id: int, status: PolicyStatus) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE leave_policies SET status=%s WHERE leave_policy_id=%s",
                (status.value, int(leave_policy_id)),
            )

    def delete(self, leave_policy_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM leave_policies WHERE leave_policy_id=%s", (int(leave_policy_id),))
            return cur.rowcount == 1

    def get_leave_types(self, leave_type_ids: Sequence[int]) -> Sequence[LeaveType]:
        ids = [int(i) for i in leave_type_ids]
        if not ids:
            return []
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT leave_type_id, name, is_paid FROM leave_types WHERE leave_type_id IN ({placeholders(ids)})",
                tuple(ids),
            )
            return [
                LeaveType(leave_type_id=int(r["leave_type_id"]), name=r["name"], is_paid=bool(r.get("is_paid", True)))
                for r in fetchall(cur)
            ]
