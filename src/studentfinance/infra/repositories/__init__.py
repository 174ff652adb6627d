"""Concrete repository implementations using SQLModel."""

from ...domain.repositories import LedgerRepositories
from ..database import SessionFactory
from .account import SQLModelAccountRepository
from .budget import SQLModelBudgetRepository
from .category import SQLModelCategoryRepository
from .pool import SQLModelPoolRepository
from .settings import SQLModelSettingsRepository
from .transaction import SQLModelTransactionRepository


def build_sqlmodel_repositories(session_factory: SessionFactory) -> LedgerRepositories:
    """Wire every SQLModel repository onto one session factory."""

    return LedgerRepositories(
        accounts=SQLModelAccountRepository(session_factory),
        transactions=SQLModelTransactionRepository(session_factory),
        categories=SQLModelCategoryRepository(session_factory),
        budgets=SQLModelBudgetRepository(session_factory),
        pools=SQLModelPoolRepository(session_factory),
        settings=SQLModelSettingsRepository(session_factory),
    )


__all__ = [
    "SQLModelAccountRepository",
    "SQLModelBudgetRepository",
    "SQLModelCategoryRepository",
    "SQLModelPoolRepository",
    "SQLModelSettingsRepository",
    "SQLModelTransactionRepository",
    "build_sqlmodel_repositories",
]
