from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles carried in the bearer token claims."""

    ADMIN = "admin"
    SUPERVISOR = "supervisor"


class TaskStatus(str, Enum):
    """Lifecycle states of a work progress report."""

    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED_EARLY = "Completed (Early)"
    COMPLETED_ON_TIME = "Completed (On Time)"
    COMPLETED_LATE = "Completed (Late)"
    CLOSED_EARLY = "Closed (Early)"
    CLOSED_ON_TIME = "Closed (On Time)"
    CLOSED_LATE = "Closed (Late)"
    # Legacy value, read-only.
    CLOSED = "Closed"

    @property
    def is_completed(self) -> bool:
        return self in COMPLETED_STATUSES

    @property
    def is_closed(self) -> bool:
        return self in CLOSED_STATUSES


COMPLETED_STATUSES = frozenset(
    {TaskStatus.COMPLETED_EARLY, TaskStatus.COMPLETED_ON_TIME, TaskStatus.COMPLETED_LATE}
)
CLOSED_STATUSES = frozenset(
    {TaskStatus.CLOSED_EARLY, TaskStatus.CLOSED_ON_TIME, TaskStatus.CLOSED_LATE, TaskStatus.CLOSED}
)


class TimelineAction(str, Enum):
    ASSIGNED = "Task Assigned"
    STARTED = "Task Started"
    REMARKS_ADDED = "Remarks Added"
    COMPLETED = "Task Completed"
    CLOSED = "Task Closed"


class EmployeeStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    RESIGNED = "Resigned"
    TERMINATED = "Terminated"


class EmploymentType(str, Enum):
    PERMANENT = "Permanent"
    CONTRACT = "Contract"
    PART_TIME = "Part Time"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class PolicyStatus(str, Enum):
    """Approval state of a leave policy."""

    APPROVED = "Approved"
    PENDING = "Pending"
    REJECTED = "Rejected"


class PeriodType(str, Enum):
    YEARLY = "yearly"
    QUARTERLY = "quarterly"
    MONTHLY = "monthly"


class DisciplinaryStatus(str, Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class BalanceChangeAction(str, Enum):
    INCREASED = "increased"
    ADJUSTED = "adjusted"
    CREATED = "created"


class LeaveApplicationStatus(str, Enum):
    """Pending and Approved applications both hold their days against the balance."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"

    @property
    def holds_days(self) -> bool:
        return self != LeaveApplicationStatus.REJECTED
