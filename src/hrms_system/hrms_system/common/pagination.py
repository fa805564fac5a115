from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class PageRequest:
    page: int = 1
    limit: int = 10

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit if self.limit > 0 else 0

    def describe(self, total: int, *, total_key: str) -> dict:
        """Pagination block for list responses."""
        return {
            "currentPage": self.page,
            "totalPages": math.ceil(total / self.limit) if self.limit > 0 else 1,
            total_key: total,
            "limit": self.limit,
        }
