from __future__ import annotations

from ...core.enums import TaskStatus
from .base import CompletionDecision, CompletionTimingStrategy


class EarlyCompletionStrategy(CompletionTimingStrategy):
    """Finished on a business day before the deadline's."""

    def decide_completion(self) -> CompletionDecision:
        return CompletionDecision(
            status=TaskStatus.COMPLETED_EARLY,
            details="Task completed early (before deadline)",
        )

    def closed_status(self) -> TaskStatus:
        return TaskStatus.CLOSED_EARLY
