"""Budget period tracking and spend aggregation."""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from ..errors import PeriodComputationError, ValidationError
from ..logging_config import get_logger
from ..models.account import Account
from ..models.budget import Budget, BudgetType, TimePeriod
from ..models.category import Category
from ..models.transaction import Transaction, TransactionType
from ..money import ZERO, to_money

logger = get_logger(__name__)


def _period_start(time_period: TimePeriod, reference: datetime, week_start: int) -> datetime:
    midnight = reference.replace(hour=0, minute=0, second=0, microsecond=0)
    try:
        if time_period == TimePeriod.WEEKLY:
            offset = (midnight.weekday() - week_start) % 7
            return midnight - timedelta(days=offset)
        if time_period == TimePeriod.MONTHLY:
            return midnight.replace(day=1)
        if time_period == TimePeriod.YEARLY:
            return midnight.replace(month=1, day=1)
    except (OverflowError, ValueError) as exc:
        raise PeriodComputationError(
            f"Cannot resolve {time_period} period start for {reference.isoformat()}"
        ) from exc
    raise PeriodComputationError(f"Unknown time period: {time_period!r}")


def get_current_period_start_date(
    time_period: TimePeriod,
    reference_date: Optional[datetime] = None,
    week_start: int = calendar.MONDAY,
) -> datetime:
    """Start of the weekly/monthly/yearly window containing ``reference_date``.

    Weeks begin on ``week_start`` (0 = Monday). If the boundary cannot be
    computed the reference date itself is returned.
    """

    reference = reference_date or datetime.now()
    try:
        return _period_start(time_period, reference, week_start)
    except PeriodComputationError as exc:
        logger.warning(f"{exc}; using reference date as period start")
        return reference


def check_and_roll_periods(
    budgets: Iterable[Budget],
    now: datetime,
    week_start: int = calendar.MONDAY,
) -> list[Budget]:
    """Move every budget whose window has ended into the current one.

    A rolled budget gets the new ``period_start_date`` and ``current_spent``
    reset to zero. Budgets already in the current period are left alone, so
    calling this twice is harmless. Returns the budgets that rolled.
    """

    rolled: list[Budget] = []
    for budget in budgets:
        current_start = get_current_period_start_date(budget.time_period, now, week_start)
        previous = budget.period_start_date
        if previous is not None and previous.date() == current_start.date():
            continue
        budget.period_start_date = current_start
        budget.current_spent = ZERO
        rolled.append(budget)
        logger.info(
            f"Budget period rolled: {budget.name}",
            extra={
                "budget_id": str(budget.id),
                "previous_start": previous.isoformat() if previous else None,
                "period_start": current_start.isoformat(),
            },
        )
    return rolled


def transaction_matches_budget(
    budget: Budget,
    transaction: Transaction,
    accounts: Iterable[Account],
    categories: Optional[Iterable[Category]] = None,
) -> bool:
    """True when ``transaction`` counts toward ``budget`` in its current period.

    A budget whose account or category no longer exists matches nothing.
    """

    if transaction.transaction_type != TransactionType.EXPENSE:
        return False
    if budget.period_start_date is None or transaction.date < budget.period_start_date:
        return False

    if budget.budget_type == BudgetType.OVERALL:
        return True

    if budget.budget_type == BudgetType.CATEGORY:
        if budget.category_id is None or transaction.category_id != budget.category_id:
            return False
        if categories is not None:
            return any(c.id == budget.category_id for c in categories)
        return True

    if budget.budget_type == BudgetType.ACCOUNT:
        account = next((a for a in accounts if a.id == budget.account_id), None)
        if account is None:
            return False
        if transaction.from_account_id is not None:
            return transaction.from_account_id == account.id
        return transaction.from_account == account.account_type

    return False


def recalculate_spend(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    accounts: Iterable[Account],
    categories: Optional[Iterable[Category]] = None,
    *,
    now: Optional[datetime] = None,
    week_start: int = calendar.MONDAY,
) -> list[Budget]:
    """Full recompute of ``current_spent`` for every budget.

    Periods are rolled first when ``now`` is given. Returns the budgets whose
    spend or period changed.
    """

    budget_list = list(budgets)
    txn_list = list(transactions)
    account_list = list(accounts)
    category_list = list(categories) if categories is not None else None

    changed: dict[UUID, Budget] = {}
    if now is not None:
        for budget in check_and_roll_periods(budget_list, now, week_start):
            changed[budget.id] = budget

    for budget in budget_list:
        total = sum(
            (
                to_money(t.amount)
                for t in txn_list
                if transaction_matches_budget(budget, t, account_list, category_list)
            ),
            ZERO,
        )
        if total != budget.current_spent:
            budget.current_spent = total
            changed[budget.id] = budget
    return list(changed.values())


def apply_new_transaction(
    budget: Budget,
    transaction: Transaction,
    accounts: Iterable[Account],
    categories: Optional[Iterable[Category]] = None,
) -> bool:
    """Incremental path for a freshly added transaction. Returns True if it counted."""

    if not transaction_matches_budget(budget, transaction, accounts, categories):
        return False
    budget.current_spent = to_money(budget.current_spent) + to_money(transaction.amount)
    return True


def validate_budget(
    budget: Budget,
    accounts: Iterable[Account],
    categories: Iterable[Category],
) -> None:
    """Raise ``ValidationError`` for a budget that cannot be tracked."""

    if not (budget.name or "").strip():
        raise ValidationError("Budget name is required")
    try:
        amount = to_money(budget.amount)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid budget amount: {budget.amount!r}") from exc
    if amount <= ZERO:
        raise ValidationError("Budget amount must be greater than zero")

    if budget.budget_type == BudgetType.CATEGORY:
        if budget.category_id is None:
            raise ValidationError("Category budgets need a category")
        if not any(c.id == budget.category_id for c in categories):
            raise ValidationError(f"Category {budget.category_id} does not exist")
    elif budget.budget_type == BudgetType.ACCOUNT:
        if budget.account_id is None:
            raise ValidationError("Account budgets need an account")
        if not any(a.id == budget.account_id for a in accounts):
            raise ValidationError(f"Account {budget.account_id} does not exist")


def total_budgeted(budgets: Iterable[Budget]) -> Decimal:
    return sum((to_money(b.amount) for b in budgets), ZERO)


def over_budget(budgets: Iterable[Budget]) -> list[Budget]:
    return [b for b in budgets if b.current_spent > b.amount]


__all__ = [
    "apply_new_transaction",
    "check_and_roll_periods",
    "get_current_period_start_date",
    "over_budget",
    "recalculate_spend",
    "total_budgeted",
    "transaction_matches_budget",
    "validate_budget",
]
