"""Tests for ledger filtering and summaries."""

from __future__ import annotations

import calendar
from datetime import datetime
from decimal import Decimal

import pytest

from studentfinance.models import AccountType, TransactionType
from studentfinance.services.ledger_service import (
    LedgerFilters,
    TimeFilter,
    compute_spending_by_category,
    compute_summary,
    filtered_transactions,
    transactions_for_account,
    transactions_for_pool,
)

NOW = datetime(2025, 3, 12, 9, 30)


@pytest.fixture
def ledger(transaction_factory, account_factory, category_factory):
    current = account_factory(AccountType.CURRENT, name="Bank")
    savings = account_factory(AccountType.SAVINGS, name="ISA")
    food = category_factory("Food")
    rent = category_factory("Rent")
    rows = {
        "feb_rent": transaction_factory(
            amount="450", source=current, date=datetime(2025, 2, 1), category_id=rent.id
        ),
        "monday_lunch": transaction_factory(
            amount="8.50", source=current, date=datetime(2025, 3, 10, 12), category_id=food.id
        ),
        "today_shop": transaction_factory(
            amount="31.20", source=current, date=datetime(2025, 3, 12, 18), category_id=food.id
        ),
        "loan": transaction_factory(
            TransactionType.INCOME, "1200", target=current, date=datetime(2025, 3, 3)
        ),
        "saving": transaction_factory(
            TransactionType.TRANSFER, "100", source=current, target=savings, date=datetime(2025, 3, 5)
        ),
        "next_rent": transaction_factory(
            amount="450",
            source=current,
            date=datetime(2025, 4, 1),
            category_id=rent.id,
            is_recurring=True,
        ),
    }
    return {"rows": rows, "current": current, "savings": savings, "food": food, "rent": rent}


def _names(ledger, result):
    lookup = {id(txn): name for name, txn in ledger["rows"].items()}
    return [lookup[id(txn)] for txn in result]


@pytest.mark.parametrize(
    ("time_filter", "expected"),
    [
        (TimeFilter.ALL, ["next_rent", "today_shop", "monday_lunch", "saving", "loan", "feb_rent"]),
        (TimeFilter.FUTURE, ["next_rent"]),
        (TimeFilter.PAST, ["today_shop", "monday_lunch", "saving", "loan", "feb_rent"]),
        (TimeFilter.TODAY, ["today_shop"]),
        (TimeFilter.THIS_WEEK, ["today_shop", "monday_lunch"]),
        (TimeFilter.THIS_MONTH, ["today_shop", "monday_lunch", "saving", "loan"]),
        (TimeFilter.LAST_MONTH, ["feb_rent"]),
    ],
)
def test_time_filters(ledger, time_filter, expected):
    result = filtered_transactions(
        ledger["rows"].values(), LedgerFilters(time_filter=time_filter), now=NOW
    )

    assert _names(ledger, result) == expected


def test_this_week_respects_week_start(ledger):
    filters = LedgerFilters(time_filter=TimeFilter.THIS_WEEK)

    result = filtered_transactions(
        ledger["rows"].values(), filters, now=NOW, week_start=calendar.THURSDAY
    )

    # Thursday 6 March to Wednesday 12 March
    assert _names(ledger, result) == ["today_shop", "monday_lunch"]


def test_custom_range_is_inclusive_by_day(ledger):
    filters = LedgerFilters(
        time_filter=TimeFilter.CUSTOM,
        custom_start=datetime(2025, 3, 3, 15),
        custom_end=datetime(2025, 3, 10),
    )

    result = filtered_transactions(ledger["rows"].values(), filters, now=NOW)

    assert _names(ledger, result) == ["monday_lunch", "saving", "loan"]


def test_type_category_and_amount_filters(ledger):
    filters = LedgerFilters(
        transaction_types={TransactionType.EXPENSE},
        category_ids={ledger["food"].id},
        min_amount=Decimal("10"),
    )

    result = filtered_transactions(ledger["rows"].values(), filters, now=NOW)

    assert _names(ledger, result) == ["today_shop"]
    assert filters.has_active_filters
    assert not LedgerFilters().has_active_filters


def test_only_recurring(ledger):
    filters = LedgerFilters(only_recurring=True, max_amount=Decimal("500"))

    result = filtered_transactions(ledger["rows"].values(), filters, now=NOW)

    assert _names(ledger, result) == ["next_rent"]


def test_summary_ignores_transfers(ledger):
    summary = compute_summary(ledger["rows"].values())

    assert summary == {
        "income": Decimal("1200.00"),
        "expenses": Decimal("939.70"),
        "net": Decimal("260.30"),
    }


def test_spending_by_category(ledger, transaction_factory):
    rows = list(ledger["rows"].values())
    rows.append(transaction_factory(amount="5", source=ledger["current"]))

    breakdown = compute_spending_by_category(rows, [ledger["food"], ledger["rent"]])

    assert [(entry["name"], entry["amount"]) for entry in breakdown] == [
        ("Rent", Decimal("900.00")),
        ("Food", Decimal("39.70")),
        ("Uncategorized", Decimal("5.00")),
    ]


def test_account_and_pool_listings(ledger, pool_factory):
    rows = ledger["rows"]
    pool = pool_factory(ledger["current"])
    rows["monday_lunch"].pool_id = pool.id
    rows["today_shop"].pool_id = pool.id

    assert _names(ledger, transactions_for_pool(rows.values(), pool.id)) == [
        "today_shop",
        "monday_lunch",
    ]
    assert _names(ledger, transactions_for_account(rows.values(), ledger["savings"])) == ["saving"]
    assert len(transactions_for_account(rows.values(), ledger["current"])) == 6
