from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ReportingPeriod(ABC):
    """Reporting window interface (Strategy Pattern for progress periods)."""

    @abstractmethod
    def window(self) -> tuple[datetime, datetime]:
        """UTC ``[start, end)`` boundaries."""
        raise NotImplementedError
