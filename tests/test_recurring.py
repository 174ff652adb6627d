"""Tests for recurring transaction expansion."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import pytest

from studentfinance.models import RecurrenceInterval, TransactionType
from studentfinance.services.recurring import (
    add_months,
    children_of,
    generate_recurring_transactions,
    next_occurrence,
    propagate_to_children,
)


@pytest.mark.parametrize(
    ("value", "months", "expected"),
    [
        (datetime(2025, 1, 31), 1, datetime(2025, 2, 28)),
        (datetime(2024, 1, 31), 1, datetime(2024, 2, 29)),
        (datetime(2025, 11, 15), 3, datetime(2026, 2, 15)),
        (datetime(2025, 3, 31, 8, 0), 12, datetime(2026, 3, 31, 8, 0)),
    ],
)
def test_add_months_clamps_to_month_end(value, months, expected):
    assert add_months(value, months) == expected


@pytest.mark.parametrize(
    ("interval", "expected"),
    [
        (RecurrenceInterval.DAILY, datetime(2025, 3, 2)),
        (RecurrenceInterval.WEEKLY, datetime(2025, 3, 8)),
        (RecurrenceInterval.BIWEEKLY, datetime(2025, 3, 15)),
        (RecurrenceInterval.MONTHLY, datetime(2025, 4, 1)),
        (RecurrenceInterval.QUARTERLY, datetime(2025, 6, 1)),
        (RecurrenceInterval.YEARLY, datetime(2026, 3, 1)),
        (RecurrenceInterval.NONE, None),
    ],
)
def test_next_occurrence(interval, expected):
    assert next_occurrence(datetime(2025, 3, 1), interval) == expected


def test_generates_until_end_date(transaction_factory, account_factory):
    current = account_factory()
    parent = transaction_factory(
        TransactionType.EXPENSE,
        "9.99",
        source=current,
        date=datetime(2025, 1, 31),
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.MONTHLY,
        recurrence_end_date=datetime(2025, 5, 31),
        pool_id=uuid4(),
    )

    children = generate_recurring_transactions(parent)

    assert [c.date for c in children] == [
        datetime(2025, 2, 28),
        datetime(2025, 3, 31),
        datetime(2025, 4, 30),
        datetime(2025, 5, 31),
    ]
    assert len({c.id for c in children} | {parent.id}) == 5
    assert all(c.parent_transaction_id == parent.id for c in children)
    assert all(c.is_future_transaction for c in children)
    assert all(c.pool_id is None for c in children)
    assert all(c.amount == parent.amount for c in children)


def test_horizon_defaults_to_a_year(transaction_factory, account_factory):
    parent = transaction_factory(
        source=account_factory(),
        date=datetime(2025, 3, 12),
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.WEEKLY,
    )

    children = generate_recurring_transactions(parent, now=datetime(2025, 3, 12))

    assert len(children) == 52
    assert children[-1].date == datetime(2026, 3, 11)


def test_up_to_limits_when_no_end_date(transaction_factory, account_factory):
    parent = transaction_factory(
        source=account_factory(),
        date=datetime(2025, 3, 1),
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.DAILY,
    )

    children = generate_recurring_transactions(parent, up_to=datetime(2025, 3, 4))

    assert [c.date.day for c in children] == [2, 3, 4]


def test_non_recurring_parent_has_no_children(transaction_factory, account_factory):
    parent = transaction_factory(source=account_factory())

    assert generate_recurring_transactions(parent) == []


def test_propagate_keeps_child_identity(transaction_factory, account_factory):
    current = account_factory()
    parent = transaction_factory(
        source=current,
        amount="15",
        date=datetime(2025, 3, 1),
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.MONTHLY,
        recurrence_end_date=datetime(2025, 5, 1),
    )
    children = generate_recurring_transactions(parent)
    children[0].pool_id = uuid4()

    parent.amount = parent.amount * 2
    parent.description = "Gym membership"
    updated = propagate_to_children(parent, children)

    assert [u.id for u in updated] == [c.id for c in children]
    assert [u.date for u in updated] == [c.date for c in children]
    assert updated[0].pool_id == children[0].pool_id
    assert all(u.description == "Gym membership" for u in updated)
    assert all(u.amount == Decimal("30") for u in updated)


def test_propagate_drops_pool_for_transfers(transaction_factory, account_factory):
    current = account_factory()
    savings = account_factory(name="Savings")
    parent = transaction_factory(
        TransactionType.TRANSFER,
        source=current,
        target=savings,
        is_recurring=True,
        recurrence_interval=RecurrenceInterval.WEEKLY,
    )
    child = parent.copy_with(id=uuid4(), parent_transaction_id=parent.id, pool_id=uuid4())

    assert propagate_to_children(parent, [child])[0].pool_id is None


def test_children_of(transaction_factory, account_factory):
    parent = transaction_factory(source=account_factory())
    child = parent.copy_with(id=uuid4(), parent_transaction_id=parent.id)
    other = transaction_factory(source=account_factory())

    assert children_of([parent, child, other], parent.id) == [child]
