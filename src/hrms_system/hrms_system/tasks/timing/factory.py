from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ...common.datetime_utils import to_business_date
from ...core.enums import TaskStatus
from ...core.exceptions import StateConflictError
from .base import CompletionTimingStrategy
from .early_strategy import EarlyCompletionStrategy
from .late_strategy import LateCompletionStrategy
from .on_time_strategy import OnTimeCompletionStrategy


@dataclass
class CompletionTimingFactory:
    """Factory Pattern: pick the timing strategy for a task."""

    def for_completion(self, *, deadline: datetime, completed_at: datetime) -> CompletionTimingStrategy:
        # Compare UTC+5 civil dates, not raw UTC instants.
        deadline_day = to_business_date(deadline)
        completed_day = to_business_date(completed_at)
        if completed_day < deadline_day:
            return EarlyCompletionStrategy()
        if completed_day == deadline_day:
            return OnTimeCompletionStrategy()
        return LateCompletionStrategy()

    def for_status(self, status: TaskStatus) -> CompletionTimingStrategy:
        if status == TaskStatus.COMPLETED_EARLY:
            return EarlyCompletionStrategy()
        if status == TaskStatus.COMPLETED_ON_TIME:
            return OnTimeCompletionStrategy()
        if status == TaskStatus.COMPLETED_LATE:
            return LateCompletionStrategy()
        raise StateConflictError(f"Only completed tasks can be closed. Current status: {status.value}")
