"""SQLModel table exports."""

from .account import Account, AccountType
from .budget import Budget, BudgetType, TimePeriod
from .category import Category, CategoryType, default_categories
from .pool import Pool, PoolColor
from .preferences import UserPreferences
from .settings import AppSetting
from .transaction import RecurrenceInterval, Transaction, TransactionType

__all__ = [
    "Account",
    "AccountType",
    "AppSetting",
    "Budget",
    "BudgetType",
    "Category",
    "CategoryType",
    "Pool",
    "PoolColor",
    "RecurrenceInterval",
    "TimePeriod",
    "Transaction",
    "TransactionType",
    "UserPreferences",
    "default_categories",
]
