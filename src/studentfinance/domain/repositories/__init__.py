"""Repository protocol definitions for domain layer."""

from .account import AccountRepository
from .budget import BudgetRepository
from .category import CategoryRepository
from .ledger import LedgerRepositories
from .pool import PoolRepository
from .settings import SettingsRepository
from .transaction import TransactionRepository

__all__ = [
    "AccountRepository",
    "BudgetRepository",
    "CategoryRepository",
    "LedgerRepositories",
    "PoolRepository",
    "SettingsRepository",
    "TransactionRepository",
]
