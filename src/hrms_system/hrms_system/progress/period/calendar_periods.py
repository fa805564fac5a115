from __future__ import annotations

from datetime import datetime, timezone

from ...common.datetime_utils import month_window
from ...core.enums import PeriodType
from ...core.exceptions import ValidationError
from .base import ReportingPeriod


class YearlyPeriod(ReportingPeriod):
    def __init__(self, year: int):
        self.year = year

    def window(self) -> tuple[datetime, datetime]:
        return (
            datetime(self.year, 1, 1, tzinfo=timezone.utc),
            datetime(self.year + 1, 1, 1, tzinfo=timezone.utc),
        )


class QuarterlyPeriod(ReportingPeriod):
    def __init__(self, year: int, quarter: int):
        if quarter < 1 or quarter > 4:
            raise ValidationError("Quarter must be between 1 and 4")
        self.year = year
        self.quarter = quarter

    def window(self) -> tuple[datetime, datetime]:
        first_month = (self.quarter - 1) * 3 + 1
        start, _ = month_window(self.year, first_month)
        _, end = month_window(self.year, first_month + 2)
        return start, end


class MonthlyPeriod(ReportingPeriod):
    def __init__(self, year: int, month: int):
        if month < 1 or month > 12:
            raise ValidationError("Month must be between 1 and 12")
        self.year = year
        self.month = month

    def window(self) -> tuple[datetime, datetime]:
        return month_window(self.year, self.month)


def period_for(period_type: PeriodType, *, year: int, quarter: int = 1, month: int = 1) -> ReportingPeriod:
    if period_type == PeriodType.MONTHLY:
        return MonthlyPeriod(year, month)
    if period_type == PeriodType.QUARTERLY:
        return QuarterlyPeriod(year, quarter)
    return YearlyPeriod(year)
