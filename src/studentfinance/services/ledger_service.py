"""Ledger-specific helpers for filtering and summaries."""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID

from ..models.account import Account
from ..models.category import Category
from ..models.transaction import Transaction, TransactionType
from ..money import ZERO, to_money
from .balances import credits, debits, receives_friend_share


class TimeFilter(str, Enum):
    ALL = "all"
    FUTURE = "future"
    PAST = "past"
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    CUSTOM = "custom"


@dataclass
class LedgerFilters:
    """Filters applied to ledger listings."""

    time_filter: TimeFilter = TimeFilter.ALL
    custom_start: Optional[datetime] = None
    custom_end: Optional[datetime] = None
    transaction_types: set[TransactionType] = field(default_factory=set)
    category_ids: set[UUID] = field(default_factory=set)
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    only_recurring: bool = False

    @property
    def has_active_filters(self) -> bool:
        return (
            self.time_filter != TimeFilter.ALL
            or bool(self.transaction_types)
            or bool(self.category_ids)
            or self.min_amount is not None
            or self.max_amount is not None
            or self.only_recurring
        )


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def _matches_time(
    txn: Transaction, filters: LedgerFilters, now: datetime, week_start: int
) -> bool:
    day = _start_of_day(txn.date)
    today = _start_of_day(now)
    kind = filters.time_filter

    if kind == TimeFilter.ALL:
        return True
    if kind == TimeFilter.FUTURE:
        return day > today
    if kind == TimeFilter.PAST:
        return day <= today
    if kind == TimeFilter.TODAY:
        return day == today
    if kind == TimeFilter.THIS_WEEK:
        start = today - timedelta(days=(today.weekday() - week_start) % 7)
        return start <= txn.date < start + timedelta(days=7)
    if kind == TimeFilter.THIS_MONTH:
        return (txn.date.year, txn.date.month) == (now.year, now.month)
    if kind == TimeFilter.LAST_MONTH:
        year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
        return (txn.date.year, txn.date.month) == (year, month)
    if kind == TimeFilter.CUSTOM:
        if filters.custom_start is not None and txn.date < _start_of_day(filters.custom_start):
            return False
        if filters.custom_end is not None and day > _start_of_day(filters.custom_end):
            return False
        return True
    return True


def filtered_transactions(
    transactions: Iterable[Transaction],
    filters: LedgerFilters,
    *,
    now: Optional[datetime] = None,
    week_start: int = calendar.MONDAY,
) -> list[Transaction]:
    """Apply ``filters`` and sort newest first."""

    reference = now or datetime.now()
    min_amount = to_money(filters.min_amount) if filters.min_amount is not None else None
    max_amount = to_money(filters.max_amount) if filters.max_amount is not None else None

    result = []
    for txn in transactions:
        if not _matches_time(txn, filters, reference, week_start):
            continue
        if filters.transaction_types and txn.transaction_type not in filters.transaction_types:
            continue
        if filters.category_ids and txn.category_id not in filters.category_ids:
            continue
        if min_amount is not None and txn.amount < min_amount:
            continue
        if max_amount is not None and txn.amount > max_amount:
            continue
        if filters.only_recurring and not txn.is_recurring:
            continue
        result.append(txn)
    return sorted(result, key=lambda t: t.date, reverse=True)


def compute_summary(transactions: Iterable[Transaction]) -> dict[str, Decimal]:
    """Compute income, expenses, and net totals from the provided transactions.

    Transfers move money between the user's own accounts and are left out.
    """

    income = ZERO
    expenses = ZERO
    for txn in transactions:
        if txn.transaction_type == TransactionType.INCOME:
            income += to_money(txn.amount)
        elif txn.transaction_type == TransactionType.EXPENSE:
            expenses += to_money(txn.amount)
    return {"income": income, "expenses": expenses, "net": income - expenses}


def compute_spending_by_category(
    transactions: Iterable[Transaction], categories: Iterable[Category]
) -> list[dict[str, object]]:
    """Roll up expense totals by category id."""

    lookup = {c.id: c.name for c in categories}
    totals: dict[Optional[UUID], Decimal] = {}
    for txn in transactions:
        if txn.transaction_type != TransactionType.EXPENSE:
            continue
        totals[txn.category_id] = totals.get(txn.category_id, ZERO) + to_money(txn.amount)

    breakdown: list[dict[str, object]] = []
    for cat_id, total in totals.items():
        name = lookup.get(cat_id, "Uncategorized")
        breakdown.append({"category_id": cat_id, "name": name, "amount": total})
    breakdown.sort(key=lambda entry: entry["amount"], reverse=True)
    return breakdown


def transactions_for_pool(transactions: Iterable[Transaction], pool_id: UUID) -> list[Transaction]:
    return sorted(
        (t for t in transactions if t.pool_id == pool_id), key=lambda t: t.date, reverse=True
    )


def transactions_for_account(
    transactions: Iterable[Transaction], account: Account
) -> list[Transaction]:
    """Every transaction that moves money in or out of ``account``, newest first."""

    return sorted(
        (
            t
            for t in transactions
            if debits(t, account) or credits(t, account) or receives_friend_share(t, account)
        ),
        key=lambda t: t.date,
        reverse=True,
    )


__all__ = [
    "LedgerFilters",
    "TimeFilter",
    "compute_spending_by_category",
    "compute_summary",
    "filtered_transactions",
    "transactions_for_account",
    "transactions_for_pool",
]
