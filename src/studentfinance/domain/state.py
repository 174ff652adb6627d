"""In-memory ledger state shared by every service for one coordinator call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional
from uuid import UUID

from ..models import (
    Account,
    AccountType,
    Budget,
    Category,
    CategoryType,
    Pool,
    Transaction,
    UserPreferences,
)


@dataclass
class LedgerState:
    """Explicit container for the mutable collections.

    Services receive this by reference instead of reaching for module globals,
    so each one can be tested against a hand-built state.
    """

    accounts: list[Account] = field(default_factory=list)
    transactions: list[Transaction] = field(default_factory=list)
    income_categories: list[Category] = field(default_factory=list)
    expense_categories: list[Category] = field(default_factory=list)
    budgets: list[Budget] = field(default_factory=list)
    # account id -> ordered pool list; the account owns these
    pools: dict[UUID, list[Pool]] = field(default_factory=dict)
    preferences: UserPreferences = field(default_factory=UserPreferences)

    # Accounts

    def account_by_id(self, account_id: Optional[UUID]) -> Optional[Account]:
        if account_id is None:
            return None
        return next((a for a in self.accounts if a.id == account_id), None)

    def accounts_of_type(self, account_type: AccountType) -> list[Account]:
        return [a for a in self.accounts if a.account_type == account_type]

    # Pools

    def pools_for(self, account_id: UUID) -> list[Pool]:
        return self.pools.setdefault(account_id, [])

    def iter_pools(self) -> Iterator[Pool]:
        for pools in self.pools.values():
            yield from pools

    def pool_by_id(self, pool_id: Optional[UUID]) -> Optional[Pool]:
        if pool_id is None:
            return None
        return next((p for p in self.iter_pools() if p.id == pool_id), None)

    # Transactions

    def transaction_index(self, transaction_id: UUID) -> Optional[int]:
        for index, txn in enumerate(self.transactions):
            if txn.id == transaction_id:
                return index
        return None

    def transaction_by_id(self, transaction_id: UUID) -> Optional[Transaction]:
        index = self.transaction_index(transaction_id)
        return None if index is None else self.transactions[index]

    def transactions_for_pool(self, pool_id: UUID) -> list[Transaction]:
        return [t for t in self.transactions if t.pool_id == pool_id]

    # Categories

    def categories(self, category_type: CategoryType) -> list[Category]:
        if category_type == CategoryType.INCOME:
            return self.income_categories
        return self.expense_categories

    def category_by_id(self, category_id: Optional[UUID]) -> Optional[Category]:
        if category_id is None:
            return None
        for category in [*self.income_categories, *self.expense_categories]:
            if category.id == category_id:
                return category
        return None

    def budget_by_id(self, budget_id: UUID) -> Optional[Budget]:
        return next((b for b in self.budgets if b.id == budget_id), None)
