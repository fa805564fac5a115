from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import now_utc
from ..common.validators import parse_id, require_non_empty
from ..core.actor import Actor
from ..core.enums import PolicyStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..organization.repository import PositionRepository
from .model import Entitlement, LeavePolicy
from .repository import LeavePolicyRepository
from .service import LeaveBalanceService

logger = logging.getLogger(__name__)


def _parse_days(value: Any) -> int:
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError("Days must be a non-negative number")
    try:
        days = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Days must be a non-negative number")
    if days < 0 or not days.is_integer():
        raise ValidationError("Days must be a non-negative number")
    return int(days)


class LeavePolicyService:
    def __init__(
        self,
        policies: LeavePolicyRepository,
        positions: PositionRepository,
        balances: LeaveBalanceService,
    ):
        self._policies = policies
        self._positions = positions
        self._balances = balances

    def _parse_entitlements(self, raw: Any) -> list[Entitlement]:
        if not isinstance(raw, list) or not raw:
            raise ValidationError("At least one leave type entitlement is required")

        parsed: list[Entitlement] = []
        for item in raw:
            if not isinstance(item, dict):
                raise ValidationError("Invalid leave type ID in entitlements")
            try:
                leave_type_id = parse_id(item.get("leaveType"), "leave type ID")
            except ValidationError:
                raise ValidationError("Invalid leave type ID in entitlements")
            parsed.append(Entitlement(leave_type_id=leave_type_id, days=_parse_days(item.get("days"))))

        ids = [e.leave_type_id for e in parsed]
        if len(set(ids)) != len(ids):
            raise ValidationError("Duplicate leave types are not allowed in entitlements")

        known = {t.leave_type_id: t.name for t in self._policies.get_leave_types(ids)}
        if len(known) != len(set(ids)):
            raise NotFoundError("One or more leave types not found")

        return [Entitlement(e.leave_type_id, e.days, known[e.leave_type_id]) for e in parsed]

    def _get(self, leave_policy_id: int) -> LeavePolicy:
        policy = self._policies.get_by_id(leave_policy_id)
        if not policy:
            raise NotFoundError("Leave policy not found")
        return policy

    def get(self, leave_policy_id: int) -> dict:
        return self._get(leave_policy_id).to_dict()

    def create(self, actor: Actor, payload: dict) -> dict:
        name = require_non_empty(payload.get("name"), "Leave policy name")
        entitlements = self._parse_entitlements(payload.get("entitlements"))

        if self._policies.find_by_name(name):
            raise ValidationError("Leave policy with this name already exists")

        status = PolicyStatus.APPROVED if actor.is_admin else PolicyStatus.PENDING
        policy_id = self._policies.create(
            name=name,
            entitlements=entitlements,
            status=status,
            created_by=actor.display_name,
        )
        logger.info("[leaves] policy %s created by %s", policy_id, actor.display_name)
        return self._get(policy_id).to_dict()

    def update(self, leave_policy_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        """Rename and/or replace entitlements, then push the new entitlements to balances."""
        now = now or now_utc()
        policy = self._get(leave_policy_id)

        new_name: Optional[str] = None
        raw_name = payload.get("name")
        if isinstance(raw_name, str) and raw_name.strip():
            new_name = raw_name.strip()
            if new_name != policy.name and self._policies.find_by_name(new_name, exclude_id=leave_policy_id):
                raise ValidationError("Leave policy with this name already exists")

        entitlements = None
        if payload.get("entitlements") is not None:
            entitlements = self._parse_entitlements(payload.get("entitlements"))

        self._policies.update(leave_policy_id, name=new_name, entitlements=entitlements)
        updated = self._get(leave_policy_id)
        self._balances.sync_policy(updated, year=now.year)
        return updated.to_dict()

    def change_status(self, leave_policy_id: int, status: Any) -> dict:
        self._get(leave_policy_id)
        try:
            new_status = PolicyStatus(status)
        except ValueError:
            valid = ", ".join(s.value for s in PolicyStatus)
            raise ValidationError(f"Invalid status. Valid statuses are: {valid}")

        self._policies.set_status(leave_policy_id, new_status)
        return {
            "message": f"Leave policy {new_status.value.lower()} successfully",
            "leavePolicy": self._get(leave_policy_id).to_dict(),
        }

    def delete(self, leave_policy_id: int) -> dict:
        policy = self._get(leave_policy_id)

        in_use = len(self._positions.list_ids_by_leave_policy(leave_policy_id))
        if in_use > 0:
            raise ValidationError(
                f"Cannot delete leave policy assigned to {in_use} position(s). Please reassign positions first."
            )

        self._policies.delete(leave_policy_id)
        logger.info("[leaves] policy %s deleted", leave_policy_id)
        return {
            "message": "Leave policy deleted successfully",
            "deletedLeavePolicy": {"id": policy.leave_policy_id, "name": policy.name},
        }
