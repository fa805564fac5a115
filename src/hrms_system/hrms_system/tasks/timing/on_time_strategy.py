from __future__ import annotations

from ...core.enums import TaskStatus
from .base import CompletionDecision, CompletionTimingStrategy


class OnTimeCompletionStrategy(CompletionTimingStrategy):
    """Finished on the deadline's business day."""

    def decide_completion(self) -> CompletionDecision:
        return CompletionDecision(status=TaskStatus.COMPLETED_ON_TIME, details="Task completed on time")

    def closed_status(self) -> TaskStatus:
        return TaskStatus.CLOSED_ON_TIME
