"""Recurring transaction expansion."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import Iterable, Optional
from uuid import UUID, uuid4

from ..models.transaction import RecurrenceInterval, Transaction, TransactionType

DEFAULT_HORIZON = timedelta(days=365)

_MONTH_STEPS = {
    RecurrenceInterval.MONTHLY: 1,
    RecurrenceInterval.QUARTERLY: 3,
    RecurrenceInterval.YEARLY: 12,
}

_DAY_STEPS = {
    RecurrenceInterval.DAILY: 1,
    RecurrenceInterval.WEEKLY: 7,
    RecurrenceInterval.BIWEEKLY: 14,
}


def add_months(value: datetime, months: int) -> datetime:
    """Shift by whole months, clamping the day to the target month's length."""

    index = value.month - 1 + months
    year = value.year + index // 12
    month = index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def nth_occurrence(anchor: datetime, interval: RecurrenceInterval, n: int) -> Optional[datetime]:
    """Date of the ``n``-th repeat after ``anchor``; None for non-repeating intervals.

    Month-based intervals are measured from the anchor so that a 31st keeps
    landing on month ends instead of drifting to the 28th.
    """

    if interval in _DAY_STEPS:
        return anchor + timedelta(days=_DAY_STEPS[interval] * n)
    if interval in _MONTH_STEPS:
        return add_months(anchor, _MONTH_STEPS[interval] * n)
    return None


def next_occurrence(value: datetime, interval: RecurrenceInterval) -> Optional[datetime]:
    return nth_occurrence(value, interval, 1)


def generate_recurring_transactions(
    parent: Transaction,
    up_to: Optional[datetime] = None,
    *,
    now: Optional[datetime] = None,
) -> list[Transaction]:
    """Future instances of ``parent`` up to its end date (or ``up_to``).

    The parent itself is not included. Each instance gets a fresh id, the
    parent's id as ``parent_transaction_id`` and is flagged as a future
    transaction. Instances start unassigned from any pool. Without an end
    date or ``up_to`` the horizon is one year from ``now``.
    """

    if not parent.is_recurring or parent.recurrence_interval == RecurrenceInterval.NONE:
        return []

    end = parent.recurrence_end_date or up_to or (now or datetime.now()) + DEFAULT_HORIZON
    instances: list[Transaction] = []
    n = 1
    while True:
        when = nth_occurrence(parent.date, parent.recurrence_interval, n)
        if when is None or when > end:
            break
        instances.append(
            parent.copy_with(
                id=uuid4(),
                date=when,
                parent_transaction_id=parent.id,
                is_future_transaction=True,
                pool_id=None,
            )
        )
        n += 1
    return instances


def children_of(transactions: Iterable[Transaction], parent_id: UUID) -> list[Transaction]:
    return [t for t in transactions if t.parent_transaction_id == parent_id]


def propagate_to_children(parent: Transaction, children: Iterable[Transaction]) -> list[Transaction]:
    """Replacements for ``children`` carrying the parent's fields.

    Each child keeps its own id, date and pool link; everything else comes
    from ``parent``.
    """

    return [
        parent.copy_with(
            id=child.id,
            date=child.date,
            parent_transaction_id=parent.id,
            is_future_transaction=child.is_future_transaction,
            pool_id=None if parent.transaction_type == TransactionType.TRANSFER else child.pool_id,
        )
        for child in children
    ]


__all__ = [
    "DEFAULT_HORIZON",
    "add_months",
    "children_of",
    "generate_recurring_transactions",
    "next_occurrence",
    "nth_occurrence",
    "propagate_to_children",
]
