"""Bundle of the persistence ports the coordinator writes through."""

from __future__ import annotations

from dataclasses import dataclass

from .account import AccountRepository
from .budget import BudgetRepository
from .category import CategoryRepository
from .pool import PoolRepository
from .settings import SettingsRepository
from .transaction import TransactionRepository


@dataclass
class LedgerRepositories:
    """One repository per persisted collection kind."""

    accounts: AccountRepository
    transactions: TransactionRepository
    categories: CategoryRepository
    budgets: BudgetRepository
    pools: PoolRepository
    settings: SettingsRepository
