"""Pytest configuration and shared fixtures for the ledger tests.

This module provides database fixtures, an in-memory repository bundle with
failure injection, a controllable clock and entity factories so services and
the coordinator can be tested without touching a real data directory.
"""

from __future__ import annotations

import tempfile
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID

import pytest
from sqlmodel import SQLModel, create_engine

# Import all models to ensure they're registered with SQLModel metadata
from studentfinance.domain.repositories import LedgerRepositories
from studentfinance.domain.state import LedgerState
from studentfinance.errors import StorageError
from studentfinance.infra.database import create_session_factory
from studentfinance.infra.repositories import build_sqlmodel_repositories
from studentfinance.models import (
    Account,
    AccountType,
    Budget,
    BudgetType,
    Category,
    CategoryType,
    Pool,
    TimePeriod,
    Transaction,
    TransactionType,
    UserPreferences,
)
from studentfinance.services.coordinator import LedgerCoordinator

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture(scope="function")
def db_engine():
    """Create an isolated SQLite database file for each test.

    Yields:
        Engine: SQLModel engine connected to test database
    """
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        db_path = Path(f.name)

    engine = create_engine(f"sqlite:///{db_path}", echo=False)
    SQLModel.metadata.create_all(engine)

    yield engine

    engine.dispose()
    db_path.unlink(missing_ok=True)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory matching the one the application wires up."""

    return create_session_factory(db_engine)


@pytest.fixture
def sql_repositories(session_factory) -> LedgerRepositories:
    return build_sqlmodel_repositories(session_factory)


# =============================================================================
# In-memory repositories
# =============================================================================


def _copy(row):
    return type(row)(**row.model_dump())


class MemoryStore:
    """Dict-backed storage shared by the in-memory repositories.

    Add a collection key ("accounts", "budgets", "pools", "pools.<id>",
    "categories.expense", ...) to ``failing`` to make reads and writes of
    that collection raise ``StorageError``.
    """

    def __init__(self):
        self.data: dict[str, list] = {}
        self.preferences: Optional[UserPreferences] = None
        self.failing: set[str] = set()
        self.writes: list[str] = []

    def check(self, key: str) -> None:
        if key in self.failing or key.split(".")[0] in self.failing:
            raise StorageError(key, "simulated failure")

    def load(self, key: str):
        self.check(key)
        rows = self.data.get(key)
        if rows is None:
            return None
        return [_copy(row) for row in rows]

    def save(self, key: str, rows) -> None:
        self.check(key)
        self.writes.append(key)
        self.data[key] = [_copy(row) for row in rows]


class _MemoryCollectionRepository:
    def __init__(self, store: MemoryStore, key: str):
        self.store = store
        self.key = key

    def load_all(self):
        return self.store.load(self.key)

    def save_all(self, rows) -> None:
        self.store.save(self.key, rows)


class _MemoryCategoryRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def load_all(self, category_type: CategoryType):
        return self.store.load(f"categories.{category_type.value}")

    def save_all(self, category_type: CategoryType, categories) -> None:
        self.store.save(f"categories.{category_type.value}", categories)


class _MemoryPoolRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def load_for_account(self, account_id: UUID):
        return self.store.load(f"pools.{account_id}") or []

    def save_for_account(self, account_id: UUID, pools) -> None:
        self.store.save(f"pools.{account_id}", pools)

    def delete_for_account(self, account_id: UUID) -> None:
        self.store.check(f"pools.{account_id}")
        self.store.writes.append(f"pools.{account_id}")
        self.store.data.pop(f"pools.{account_id}", None)


class _MemorySettingsRepository:
    def __init__(self, store: MemoryStore):
        self.store = store

    def load_preferences(self):
        self.store.check("preferences")
        if self.store.preferences is None:
            return None
        return replace(self.store.preferences)

    def save_preferences(self, preferences: UserPreferences) -> None:
        self.store.check("preferences")
        self.store.writes.append("preferences")
        self.store.preferences = replace(preferences)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def memory_repositories(memory_store) -> LedgerRepositories:
    return LedgerRepositories(
        accounts=_MemoryCollectionRepository(memory_store, "accounts"),
        transactions=_MemoryCollectionRepository(memory_store, "transactions"),
        categories=_MemoryCategoryRepository(memory_store),
        budgets=_MemoryCollectionRepository(memory_store, "budgets"),
        pools=_MemoryPoolRepository(memory_store),
        settings=_MemorySettingsRepository(memory_store),
    )


# =============================================================================
# Clock and coordinator
# =============================================================================


class FixedClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock() -> FixedClock:
    # a Wednesday
    return FixedClock(datetime(2025, 3, 12, 9, 30))


@pytest.fixture
def coordinator(memory_repositories, clock) -> LedgerCoordinator:
    """Coordinator over the in-memory store, already loaded (default accounts and categories)."""

    ledger = LedgerCoordinator(LedgerState(), memory_repositories, clock=clock)
    ledger.load()
    return ledger


@pytest.fixture
def accounts(coordinator) -> dict[AccountType, Account]:
    """The three default accounts keyed by type."""

    return {a.account_type: a for a in coordinator.state.accounts}


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def transaction_factory(clock):
    """Factory for building (unsaved) transactions.

    Returns:
        Callable: Function that creates Transaction instances
    """

    def _create_transaction(
        kind: TransactionType = TransactionType.EXPENSE,
        amount: Decimal | int | str = "20.00",
        source: Optional[Account] = None,
        target: Optional[Account] = None,
        date: Optional[datetime] = None,
        description: str = "Test transaction",
        **extra,
    ) -> Transaction:
        """Create a transaction wired to account ids.

        Args:
            kind: income, expense or transfer
            amount: Positive magnitude
            source: Account money leaves (expense/transfer)
            target: Account money lands in (income/transfer)
            date: Defaults to the fixed clock's now
        """
        return Transaction(
            date=date or clock.now,
            amount=Decimal(str(amount)),
            description=description,
            transaction_type=kind,
            from_account=source.account_type if source else None,
            to_account=target.account_type if target else None,
            from_account_id=source.id if source else None,
            to_account_id=target.id if target else None,
            **extra,
        )

    return _create_transaction


@pytest.fixture
def budget_factory():
    def _create_budget(
        amount: Decimal | int | str = "100.00",
        budget_type: BudgetType = BudgetType.OVERALL,
        time_period: TimePeriod = TimePeriod.MONTHLY,
        name: str = "Test budget",
        start_date: Optional[datetime] = None,
        **extra,
    ) -> Budget:
        return Budget(
            name=name,
            amount=Decimal(str(amount)),
            budget_type=budget_type,
            time_period=time_period,
            start_date=start_date or datetime(2025, 1, 1),
            **extra,
        )

    return _create_budget


@pytest.fixture
def empty_state() -> LedgerState:
    return LedgerState()


def make_account(
    account_type: AccountType = AccountType.CURRENT,
    balance: Decimal | int | str = "0.00",
    name: str = "Account",
) -> Account:
    value = Decimal(str(balance))
    return Account(name=name, account_type=account_type, initial_balance=value, balance=value)


@pytest.fixture
def account_factory():
    return make_account


@pytest.fixture
def pool_factory():
    def _create_pool(account: Account, amount: Decimal | int | str = "60.00", name: str = "Food") -> Pool:
        return Pool(account_id=account.id, name=name, amount=Decimal(str(amount)))

    return _create_pool


@pytest.fixture
def category_factory():
    def _create_category(
        name: str = "Groceries", category_type: CategoryType = CategoryType.EXPENSE
    ) -> Category:
        return Category(name=name, category_type=category_type)

    return _create_category
