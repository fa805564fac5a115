from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..core.constants import UNLIMITED
from ..core.exceptions import CapacityExceededError

_LEADING_INT = re.compile(r"^\s*(\d+)")


def parse_limit(raw: Optional[str]) -> Optional[int]:
    """Numeric value of a limit column, or None when it is unlimited/blank."""
    text = (raw or "").strip().lower()
    if not text or text == UNLIMITED:
        return None
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class Department:
    department_id: int
    name: str
    position_count: str
    employee_count: int
    is_active: bool = True


@dataclass(frozen=True)
class Position:
    position_id: int
    name: str
    department_id: int
    leave_policy_id: Optional[int]
    employee_limit: str
    hired_employees: int
    allowance_policy_id: Optional[int] = None
    department_name: Optional[str] = None

    @property
    def numeric_limit(self) -> Optional[int]:
        return parse_limit(self.employee_limit)

    def ensure_capacity(self) -> None:
        limit = self.numeric_limit
        if limit is not None and self.hired_employees >= limit:
            raise CapacityExceededError(
                f"Employee limit reached for {self.name} position. "
                f"Maximum employees allowed: {limit} (currently hired: {self.hired_employees})"
            )

    def to_ref(self) -> dict:
        return {
            "id": self.position_id,
            "name": self.name,
            "department": {"id": self.department_id, "name": self.department_name},
            "allowancePolicy": self.allowance_policy_id,
        }
