from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ...core.enums import TaskStatus


@dataclass(frozen=True)
class CompletionDecision:
    status: TaskStatus
    details: str


class CompletionTimingStrategy(ABC):
    """Strategy Pattern: how a finished task is labelled relative to its deadline."""

    @abstractmethod
    def decide_completion(self) -> CompletionDecision:
        raise NotImplementedError

    @abstractmethod
    def closed_status(self) -> TaskStatus:
        """Closed variant that keeps the same timing suffix."""
        raise NotImplementedError
