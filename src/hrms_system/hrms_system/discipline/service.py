from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import now_utc, parse_iso_datetime
from ..common.pagination import PageRequest
from ..common.validators import optional_text, require_reference
from ..core.actor import Actor
from ..core.enums import DisciplinaryStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..employees.repository import EmployeeRepository
from .model import DisciplinaryAction, NewDisciplinaryAction
from .repository import DisciplinaryActionRepository, WarningTypeRepository

logger = logging.getLogger(__name__)


class DisciplinaryActionService:
    """Warnings with a 90-day active window.

    Expiry is derived on read; expired rows still stored as Active are
    written back as Inactive in one bulk statement.
    """

    def __init__(
        self,
        actions: DisciplinaryActionRepository,
        warning_types: WarningTypeRepository,
        employees: EmployeeRepository,
    ):
        self._actions = actions
        self._warning_types = warning_types
        self._employees = employees

    def _expire(self, actions: Sequence[DisciplinaryAction], now: datetime) -> list[DisciplinaryAction]:
        out: list[DisciplinaryAction] = []
        expired: list[int] = []
        for action in actions:
            current = action.current_status(now)
            if current != action.status:
                expired.append(action.action_id)
                action = action.with_status(current)
            out.append(action)

        if expired:
            try:
                changed = self._actions.mark_inactive(expired)
                logger.info("[discipline] expired %s action(s)", changed)
            except Exception as exc:
                # The response already carries the derived status.
                logger.warning("[discipline] expiry write-back failed for %s: %s", expired, exc)
        return out

    def list_actions(self, *, page: PageRequest, search: str = "", now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        actions, total = self._actions.page(page=page, search=search.strip())
        return {
            "disciplinaryActions": [a.to_dict(now) for a in self._expire(actions, now)],
            "pagination": page.describe(total, total_key="totalActions"),
        }

    def _get(self, action_id: int) -> DisciplinaryAction:
        action = self._actions.get_by_id(action_id)
        if not action:
            raise NotFoundError("Disciplinary action not found")
        return action

    def get(self, action_id: int, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        return self._expire([self._get(action_id)], now)[0].to_dict(now)

    def create(self, actor: Actor, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()

        employee_id = require_reference(payload.get("employee"), "Employee")
        if not self._employees.get_by_id(employee_id):
            raise NotFoundError("Employee not found")

        warning_type_id = require_reference(payload.get("warningType"), "Warning type")
        if not self._warning_types.get_by_id(warning_type_id):
            raise NotFoundError("Warning type not found")

        description = optional_text(payload.get("description"))
        if not description:
            raise ValidationError("Description is required")

        raw_date = payload.get("actionDate")
        if raw_date is None or raw_date == "":
            raise ValidationError("Action date is required")
        action_date = parse_iso_datetime(raw_date, "Action date")

        action_id = self._actions.create(
            NewDisciplinaryAction(
                employee_id=employee_id,
                warning_type_id=warning_type_id,
                description=description,
                action_date=action_date,
                created_by=actor.display_name,
                created_at=now,
            )
        )
        logger.info("[discipline] action %s created for employee %s by %s", action_id, employee_id, actor.display_name)
        return self.get(action_id, now=now)

    def update(self, action_id: int, payload: dict, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        action = self._get(action_id)
        changes: dict[str, Any] = {}

        if payload.get("employee"):
            employee_id = require_reference(payload.get("employee"), "Employee")
            if not self._employees.get_by_id(employee_id):
                raise NotFoundError("Employee not found")
            changes["employee_id"] = employee_id

        if payload.get("warningType"):
            warning_type_id = require_reference(payload.get("warningType"), "Warning type")
            if not self._warning_types.get_by_id(warning_type_id):
                raise NotFoundError("Warning type not found")
            changes["warning_type_id"] = warning_type_id

        if "description" in payload:
            description = optional_text(payload.get("description"))
            if not description:
                raise ValidationError("Description is required")
            changes["description"] = description

        if payload.get("actionDate"):
            action_date = parse_iso_datetime(payload.get("actionDate"), "Action date")
            changes["action_date"] = action_date
            # A new date restarts the window, so the stored status follows it.
            changes["status"] = replace(
                action, action_date=action_date, status=DisciplinaryStatus.ACTIVE
            ).current_status(now)

        if changes:
            self._actions.update(action_id, changes, updated_at=now)
        return self.get(action_id, now=now)

    def toggle_status(self, action_id: int, *, now: Optional[datetime] = None) -> dict:
        now = now or now_utc()
        action = self._get(action_id)

        if action.current_status(now) == DisciplinaryStatus.ACTIVE:
            new_status = DisciplinaryStatus.INACTIVE
        else:
            if action.is_expired(now):
                raise ValidationError("Disciplinary action has expired and cannot be reactivated")
            new_status = DisciplinaryStatus.ACTIVE

        self._actions.set_status(action_id, new_status, updated_at=now)
        verb = "activated" if new_status == DisciplinaryStatus.ACTIVE else "deactivated"
        logger.info("[discipline] action %s %s", action_id, verb)
        return {
            "message": f"Disciplinary action {verb} successfully",
            "disciplinaryAction": self.get(action_id, now=now),
        }

    def delete(self, action_id: int) -> dict:
        action = self._get(action_id)
        self._actions.delete(action_id)
        logger.info("[discipline] action %s deleted", action_id)
        return {
            "message": "Disciplinary action deleted successfully",
            "deletedAction": {
                "id": action.action_id,
                "employee": action.employee_name,
                "warningType": action.warning_type.name,
            },
        }
