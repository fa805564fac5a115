from __future__ import annotations

from ...core.enums import TaskStatus
from .base import CompletionDecision, CompletionTimingStrategy


class LateCompletionStrategy(CompletionTimingStrategy):
    def decide_completion(self) -> CompletionDecision:
        return CompletionDecision(status=TaskStatus.COMPLETED_LATE, details="Task completed late")

    def closed_status(self) -> TaskStatus:
        return TaskStatus.CLOSED_LATE
