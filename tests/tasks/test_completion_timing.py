from __future__ import annotations

from datetime import datetime, timezone

import pytest

from src.hrms_system.hrms_system.core.enums import TaskStatus
from src.hrms_system.hrms_system.core.exceptions import StateConflictError
from src.hrms_system.hrms_system.tasks.timing.early_strategy import EarlyCompletionStrategy
from src.hrms_system.hrms_system.tasks.timing.factory import CompletionTimingFactory
from src.hrms_system.hrms_system.tasks.timing.late_strategy import LateCompletionStrategy
from src.hrms_system.hrms_system.tasks.timing.on_time_strategy import OnTimeCompletionStrategy

DEADLINE = datetime(2024, 3, 15, tzinfo=timezone.utc)


@pytest.fixture
def factory():
    return CompletionTimingFactory()


@pytest.mark.parametrize(
    "completed_at, strategy_cls",
    [
        (datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc), EarlyCompletionStrategy),
        # 18:59 UTC on the 14th is still the 14th in UTC+5
        (datetime(2024, 3, 14, 18, 59, tzinfo=timezone.utc), EarlyCompletionStrategy),
        (datetime(2024, 3, 14, 19, 0, tzinfo=timezone.utc), OnTimeCompletionStrategy),
        (datetime(2024, 3, 15, 18, 59, tzinfo=timezone.utc), OnTimeCompletionStrategy),
        (datetime(2024, 3, 15, 19, 0, tzinfo=timezone.utc), LateCompletionStrategy),
    ],
)
def test_for_completion_compares_business_dates(factory, completed_at, strategy_cls):
    assert isinstance(factory.for_completion(deadline=DEADLINE, completed_at=completed_at), strategy_cls)


@pytest.mark.parametrize(
    "strategy, completed, closed",
    [
        (EarlyCompletionStrategy(), TaskStatus.COMPLETED_EARLY, TaskStatus.CLOSED_EARLY),
        (OnTimeCompletionStrategy(), TaskStatus.COMPLETED_ON_TIME, TaskStatus.CLOSED_ON_TIME),
        (LateCompletionStrategy(), TaskStatus.COMPLETED_LATE, TaskStatus.CLOSED_LATE),
    ],
)
def test_strategy_keeps_timing_suffix_when_closed(factory, strategy, completed, closed):
    assert strategy.decide_completion().status == completed
    assert strategy.closed_status() == closed
    assert type(factory.for_status(completed)) is type(strategy)


@pytest.mark.parametrize(
    "status",
    [TaskStatus.PENDING, TaskStatus.IN_PROGRESS, TaskStatus.CLOSED_EARLY, TaskStatus.CLOSED],
)
def test_for_status_rejects_non_completed(factory, status):
    with pytest.raises(StateConflictError) as exc:
        factory.for_status(status)
    assert str(exc.value) == f"Only completed tasks can be closed. Current status: {status.value}"
