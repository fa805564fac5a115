from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.actor import Actor
from ..core.enums import TaskStatus, TimelineAction


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class ActorRef:
    """Who performed a step, frozen at the time it happened."""

    user_id: Optional[int]
    name: str

    @classmethod
    def from_actor(cls, actor: Actor) -> "ActorRef":
        return cls(user_id=actor.user_id, name=actor.display_name)

    def to_dict(self) -> dict:
        return {"user": self.user_id, "name": self.name}


@dataclass(frozen=True)
class TimelineEntry:
    action: TimelineAction
    performed_by: ActorRef
    timestamp: datetime
    details: str

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "performedBy": self.performed_by.to_dict(),
            "timestamp": _iso(self.timestamp),
            "details": self.details,
        }


@dataclass(frozen=True)
class Remark:
    added_by: ActorRef
    date: datetime
    text: str
    created_at: datetime

    def to_dict(self) -> dict:
        return {
            "addedBy": self.added_by.to_dict(),
            "date": _iso(self.date),
            "text": self.text,
            "createdAt": _iso(self.created_at),
        }


@dataclass(frozen=True)
class WorkProgressReport:
    """A task assigned to one or more employees.

    ``remarks`` and ``timeline`` are append-only and only loaded on the
    single-report read path; list queries leave them empty.
    """

    report_id: int
    employee_ids: tuple[int, ...]
    assignment_date: datetime
    deadline: datetime
    days_for_completion: int
    task_description: str
    status: TaskStatus
    assigned_by: ActorRef
    created_at: datetime
    updated_at: datetime
    start_date: Optional[datetime] = None
    completion_date: Optional[datetime] = None
    started_by: Optional[ActorRef] = None
    completed_by: Optional[ActorRef] = None
    closed_by: Optional[ActorRef] = None
    closing_remarks: Optional[str] = None
    rating: Optional[float] = None
    remarks: tuple[Remark, ...] = field(default_factory=tuple)
    timeline: tuple[TimelineEntry, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class EmployeeTaskStats:
    """Closed tasks of one employee inside a reporting window."""

    employee_id: int
    tasks_completed: int
    average_rating: Optional[float]
