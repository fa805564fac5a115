from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .enums import Role
from .exceptions import AuthorizationError


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, passed explicitly into every service call."""

    user_id: Optional[int]
    name: str
    role: Role

    @property
    def display_name(self) -> str:
        return self.name or str(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def require(self, roles: Iterable[Role]) -> None:
        if self.role not in set(roles):
            raise AuthorizationError("You do not have permission for this action")
