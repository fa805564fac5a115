"""Leave proration for mid-year position changes.

Every path that moves an employee to a position with a different leave
policy goes through :func:`plan_transfer_adjustments`, so the numbers are
identical whichever endpoint triggered the change. The function is pure: it
returns the writes to perform and the caller persists them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Mapping, Optional, Sequence

from ..common.datetime_utils import days_in_year, days_remaining_in_year
from ..common.number_utils import round_half_up
from ..core.enums import BalanceChangeAction
from .model import BalanceChange, LeaveBalance, LeavePolicy


@dataclass(frozen=True)
class ProrationWindow:
    effective_date: date
    days_remaining: int
    days_in_year: int

    @classmethod
    def for_date(cls, effective_date: date) -> "ProrationWindow":
        return cls(
            effective_date=effective_date,
            days_remaining=days_remaining_in_year(effective_date),
            days_in_year=days_in_year(effective_date.year),
        )

    @property
    def year(self) -> int:
        return self.effective_date.year

    @property
    def factor(self) -> float:
        return self.days_remaining / self.days_in_year

    def prorate(self, days: float) -> int:
        return round_half_up(days * self.factor)


@dataclass(frozen=True)
class BalanceWrite:
    """A planned write: update ``existing`` or create a new balance."""

    leave_type_id: int
    total_days: int
    remaining_days: int
    change: BalanceChange
    existing: Optional[LeaveBalance] = None

    @property
    def is_new(self) -> bool:
        return self.existing is None


def plan_transfer_adjustments(
    *,
    window: ProrationWindow,
    old_policy: Optional[LeavePolicy],
    new_policy: LeavePolicy,
    balances: Sequence[LeaveBalance],
    leave_type_names: Optional[Mapping[int, str]] = None,
) -> list[BalanceWrite]:
    """Balance writes for moving from ``old_policy`` to ``new_policy``.

    ``balances`` are the employee's balances for ``window.year``. Leave types
    that only exist in the old policy are not touched.
    """

    names = dict(leave_type_names or {})
    by_type = {b.leave_type_id: b for b in balances}
    writes: list[BalanceWrite] = []

    for ent in new_policy.entitlements:
        label = ent.leave_type_name or names.get(ent.leave_type_id) or str(ent.leave_type_id)
        existing = by_type.get(ent.leave_type_id)

        if existing is None:
            days = window.prorate(ent.days)
            writes.append(
                BalanceWrite(
                    leave_type_id=ent.leave_type_id,
                    total_days=days,
                    remaining_days=days,
                    change=BalanceChange(
                        leave_type=label,
                        action=BalanceChangeAction.CREATED,
                        total_days=days,
                        note=f"Prorated for {window.days_remaining} remaining days in year",
                    ),
                )
            )
            continue

        old_ent = old_policy.entitlement_for(ent.leave_type_id) if old_policy else None
        old_total = old_ent.days if old_ent else 0
        new_total = ent.days

        if new_total > old_total:
            additional = window.prorate(new_total - old_total)
            updated = existing.with_total(old_total + additional)
            writes.append(
                BalanceWrite(
                    leave_type_id=ent.leave_type_id,
                    total_days=updated.total_days,
                    remaining_days=updated.remaining_days,
                    existing=existing,
                    change=BalanceChange(
                        leave_type=label,
                        action=BalanceChangeAction.INCREASED,
                        old_total=old_total,
                        new_total=updated.total_days,
                        additional_days=additional,
                    ),
                )
            )
        elif new_total < old_total:
            # Never below what has already been used.
            total = max(existing.used_days, window.prorate(new_total) + existing.used_days)
            updated = existing.with_total(total)
            writes.append(
                BalanceWrite(
                    leave_type_id=ent.leave_type_id,
                    total_days=updated.total_days,
                    remaining_days=updated.remaining_days,
                    existing=existing,
                    change=BalanceChange(
                        leave_type=label,
                        action=BalanceChangeAction.ADJUSTED,
                        old_total=old_total,
                        new_total=updated.total_days,
                    ),
                )
            )

    return writes
