from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import DisciplinaryStatus
from .model import DisciplinaryAction, NewDisciplinaryAction, WarningType


class WarningTypeRepository(Protocol):
    def get_by_id(self, warning_type_id: int) -> Optional[WarningType]:
        raise NotImplementedError


class DisciplinaryActionRepository(Protocol):
    def get_by_id(self, action_id: int) -> Optional[DisciplinaryAction]:
        raise NotImplementedError

    def create(self, data: NewDisciplinaryAction) -> int:
        raise NotImplementedError

    def update(self, action_id: int, changes: Mapping[str, Any], *, updated_at: datetime) -> None:
        """``changes`` keys: employee_id, warning_type_id, description, action_date, status."""
        raise NotImplementedError

    def set_status(self, action_id: int, status: DisciplinaryStatus, *, updated_at: datetime) -> None:
        raise NotImplementedError

    def delete(self, action_id: int) -> bool:
        raise NotImplementedError

    def page(self, *, page: PageRequest, search: str = "") -> tuple[Sequence[DisciplinaryAction], int]:
        """Newest first; search matches employee name/code and warning type name."""
        raise NotImplementedError

    def mark_inactive(self, action_ids: Sequence[int]) -> int:
        """Flip still-Active rows to Inactive in one statement; returns rows changed."""
        raise NotImplementedError
