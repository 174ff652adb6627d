"""Transaction mutation coordinator.

Every change to the ledger goes through ``LedgerCoordinator``. Each call
mutates the in-memory ``LedgerState`` first, then refreshes balances, pool
amounts and budget spend, and finally writes every touched collection
through the repositories. A failed write is reported on the returned
``MutationResult``; the in-memory change is kept.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Iterable, Mapping, Optional
from uuid import UUID

from ..domain.repositories import LedgerRepositories
from ..domain.state import LedgerState
from ..errors import StorageError, ValidationError
from ..logging_config import get_logger
from ..models import (
    Account,
    AccountType,
    Budget,
    Category,
    CategoryType,
    Pool,
    PoolColor,
    RecurrenceInterval,
    Transaction,
    TransactionType,
    UserPreferences,
    default_categories,
)
from ..money import ZERO, to_money
from . import balances, budgeting, importers, pools, recurring

logger = get_logger(__name__)

Clock = Callable[[], datetime]

DEFAULT_ACCOUNTS: tuple[tuple[str, AccountType], ...] = (
    ("Savings Account", AccountType.SAVINGS),
    ("Current Account", AccountType.CURRENT),
    ("Credit Card", AccountType.CREDIT),
)


@dataclass
class MutationResult:
    """What a coordinator call did, and whether it reached storage."""

    value: Any = None
    warnings: list[str] = field(default_factory=list)
    storage_errors: list[StorageError] = field(default_factory=list)

    @property
    def saved(self) -> bool:
        return not self.storage_errors


@dataclass
class _Touched:
    """Collections that need writing at the end of a call."""

    accounts: bool = False
    transactions: bool = False
    budgets: bool = False
    preferences: bool = False
    pool_accounts: set[UUID] = field(default_factory=set)
    dropped_pool_accounts: set[UUID] = field(default_factory=set)
    categories: set[CategoryType] = field(default_factory=set)

    def pools(self, updated: Iterable[Pool]) -> None:
        for pool in updated:
            self.pool_accounts.add(pool.account_id)


class LedgerCoordinator:
    """Single entry point for ledger mutations."""

    def __init__(
        self,
        state: LedgerState,
        repositories: LedgerRepositories,
        *,
        clock: Clock = datetime.now,
        week_start: int = calendar.MONDAY,
        default_preferences: Optional[UserPreferences] = None,
    ):
        self.state = state
        self.repositories = repositories
        self.clock = clock
        self.week_start = week_start
        self.default_preferences = default_preferences or UserPreferences()

    # Loading

    def load(self) -> MutationResult:
        """Read every collection, fill in first-launch defaults and refresh derived values."""

        result = MutationResult(value=self.state)
        touched = _Touched()
        unreadable: set[str] = set()
        repos = self.repositories

        accounts = self._read("accounts", repos.accounts.load_all, result, unreadable)
        if accounts is None:
            accounts = [
                Account(name=name, account_type=kind, position=index)
                for index, (name, kind) in enumerate(DEFAULT_ACCOUNTS)
            ]
            touched.accounts = True
        self.state.accounts = accounts

        for category_type in CategoryType:
            key = f"categories.{category_type.value}"
            loaded = self._read(
                key, lambda kind=category_type: repos.categories.load_all(kind), result, unreadable
            )
            if loaded is None:
                loaded = default_categories(category_type)
                touched.categories.add(category_type)
            if category_type == CategoryType.INCOME:
                self.state.income_categories = loaded
            else:
                self.state.expense_categories = loaded

        self.state.transactions = (
            self._read("transactions", repos.transactions.load_all, result, unreadable) or []
        )
        self.state.budgets = self._read("budgets", repos.budgets.load_all, result, unreadable) or []

        self.state.pools = {}
        for account in self.state.accounts:
            key = f"pools.{account.id}"
            loaded_pools = self._read(
                key, lambda account_id=account.id: repos.pools.load_for_account(account_id), result, unreadable
            )
            self.state.pools[account.id] = list(loaded_pools or [])

        preferences = self._read("preferences", repos.settings.load_preferences, result, unreadable)
        if preferences is None:
            preferences = replace(self.default_preferences)
            touched.preferences = True
        self.state.preferences = preferences

        if self.migrate_legacy_transactions():
            touched.transactions = True
        if balances.apply_balances(self.state.accounts, self.state.transactions):
            touched.accounts = True
        if self._refresh_budgets():
            touched.budgets = True

        # never overwrite a collection we failed to read
        touched.accounts = touched.accounts and "accounts" not in unreadable
        touched.transactions = touched.transactions and "transactions" not in unreadable
        touched.budgets = touched.budgets and "budgets" not in unreadable
        touched.preferences = touched.preferences and "preferences" not in unreadable
        touched.categories = {
            kind for kind in touched.categories if f"categories.{kind.value}" not in unreadable
        }

        self._persist(touched, result)
        logger.info(
            "Ledger loaded",
            extra={
                "accounts": len(self.state.accounts),
                "transactions": len(self.state.transactions),
                "budgets": len(self.state.budgets),
                "storage_errors": len(result.storage_errors),
            },
        )
        return result

    def migrate_legacy_transactions(self) -> int:
        """Fill missing account ids on tag-only transactions when the tag is unambiguous.

        Returns the number of transactions changed.
        """

        by_type: dict[AccountType, list[Account]] = {}
        for account in self.state.accounts:
            by_type.setdefault(account.account_type, []).append(account)

        migrated = 0
        for txn in self.state.transactions:
            changed = False
            if txn.from_account_id is None and txn.from_account is not None:
                candidates = by_type.get(AccountType(txn.from_account), [])
                if len(candidates) == 1:
                    txn.from_account_id = candidates[0].id
                    changed = True
            if txn.to_account_id is None and txn.to_account is not None:
                candidates = by_type.get(AccountType(txn.to_account), [])
                if len(candidates) == 1:
                    txn.to_account_id = candidates[0].id
                    changed = True
            migrated += changed
        if migrated:
            logger.info(f"Migrated {migrated} legacy transactions to account ids")
        return migrated

    # Transactions

    def add_transaction(self, transaction: Transaction) -> MutationResult:
        self._check_transaction(transaction)
        result = MutationResult(value=transaction)
        touched = _Touched(transactions=True)

        self.state.transactions.append(transaction)
        touched.accounts = self._refresh_balances([transaction])
        self._move_pool_contribution(None, transaction, result, touched)

        now = self.clock()
        if budgeting.check_and_roll_periods(self.state.budgets, now, self.week_start):
            self._refresh_budgets()
            touched.budgets = True
        else:
            for budget in self.state.budgets:
                if budgeting.apply_new_transaction(
                    budget, transaction, self.state.accounts, self._all_categories()
                ):
                    touched.budgets = True

        self._persist(touched, result)
        logger.info(
            f"Transaction added: {transaction.description}",
            extra={
                "transaction_id": str(transaction.id),
                "type": _value(transaction.transaction_type),
                "amount": str(transaction.amount),
            },
        )
        return result

    def update_transaction(self, old: Transaction, new: Transaction) -> MutationResult:
        """Replace the stored version of ``old`` with ``new``.

        ``new`` must be a separate object; its id is forced to the stored one.
        """

        index = self._require_transaction_index(old.id)
        stored = self.state.transactions[index]
        if new is stored:
            raise ValidationError("Pass an edited copy of the transaction, not the stored instance")
        self._check_transaction(new)
        new.id = stored.id

        result = MutationResult(value=new)
        touched = _Touched(transactions=True)
        self.state.transactions[index] = new
        touched.accounts = self._refresh_balances([stored, new])
        self._move_pool_contribution(stored, new, result, touched)
        touched.budgets = self._refresh_budgets()

        self._persist(touched, result)
        logger.info("Transaction updated", extra={"transaction_id": str(new.id)})
        return result

    def delete_transaction(self, transaction: Transaction) -> MutationResult:
        index = self._require_transaction_index(transaction.id)
        stored = self.state.transactions.pop(index)

        result = MutationResult(value=stored)
        touched = _Touched(transactions=True)
        touched.accounts = self._refresh_balances([stored])
        self._move_pool_contribution(stored, None, result, touched)
        touched.budgets = self._refresh_budgets()

        self._persist(touched, result)
        logger.info("Transaction deleted", extra={"transaction_id": str(stored.id)})
        return result

    def reassign_pool(self, transaction: Transaction, pool_id: Optional[UUID]) -> MutationResult:
        """Move a transaction to another pool, or unassign it with ``None``."""

        index = self._require_transaction_index(transaction.id)
        stored = self.state.transactions[index]
        previous = stored.pool_id

        assignment = pools.assign_transaction(self.state, stored, pool_id)
        result = MutationResult(value=stored, warnings=list(assignment.warnings))
        touched = _Touched(transactions=stored.pool_id != previous)
        touched.pools(assignment.updated_pools)

        self._persist(touched, result)
        if touched.transactions:
            logger.info(
                "Transaction pool reassigned",
                extra={
                    "transaction_id": str(stored.id),
                    "from_pool": str(previous) if previous else None,
                    "to_pool": str(stored.pool_id) if stored.pool_id else None,
                },
            )
        return result

    def add_recurring_transaction(
        self, transaction: Transaction, up_to: Optional[datetime] = None
    ) -> MutationResult:
        """Add a recurring parent and every future instance up to its end date (or ``up_to``)."""

        if not transaction.is_recurring or transaction.recurrence_interval == RecurrenceInterval.NONE:
            raise ValidationError("Recurring transactions need a recurrence interval")
        self._check_transaction(transaction)
        transaction.parent_transaction_id = None

        instances = recurring.generate_recurring_transactions(transaction, up_to, now=self.clock())
        created = [transaction, *instances]
        result = MutationResult(value=created)
        touched = _Touched(transactions=True)

        self.state.transactions.extend(created)
        touched.accounts = self._refresh_balances(created)
        self._move_pool_contribution(None, transaction, result, touched)
        touched.budgets = self._refresh_budgets()

        self._persist(touched, result)
        logger.info(
            "Recurring transaction added",
            extra={
                "transaction_id": str(transaction.id),
                "interval": _value(transaction.recurrence_interval),
                "instances": len(instances),
            },
        )
        return result

    def update_recurring_transaction(self, transaction: Transaction) -> MutationResult:
        """Update a recurring parent and copy its fields onto every generated instance."""

        index = self._require_transaction_index(transaction.id)
        stored = self.state.transactions[index]
        if transaction is stored:
            raise ValidationError("Pass an edited copy of the transaction, not the stored instance")
        self._check_transaction(transaction)

        result = MutationResult(value=transaction)
        touched = _Touched(transactions=True)

        self.state.transactions[index] = transaction
        changed: list[tuple[Transaction, Transaction]] = [(stored, transaction)]
        old_children = recurring.children_of(self.state.transactions, stored.id)
        for old_child, new_child in zip(
            old_children, recurring.propagate_to_children(transaction, old_children)
        ):
            child_pool = self.state.pool_by_id(new_child.pool_id)
            if child_pool is not None and not pools.moves_money_for_pool(
                self.state, new_child, child_pool
            ):
                new_child.pool_id = None
                message = (
                    f"Transaction {new_child.id} left pool {child_pool.name!r} "
                    "after its account changed"
                )
                logger.warning(message)
                result.warnings.append(message)
            child_index = self.state.transaction_index(old_child.id)
            if child_index is not None:
                self.state.transactions[child_index] = new_child
                changed.append((old_child, new_child))

        touched.accounts = self._refresh_balances([t for pair in changed for t in pair])
        for before, after in changed:
            self._move_pool_contribution(before, after, result, touched)
        touched.budgets = self._refresh_budgets()

        self._persist(touched, result)
        logger.info(
            "Recurring transaction updated",
            extra={"transaction_id": str(transaction.id), "instances": len(changed) - 1},
        )
        return result

    def delete_recurring_transaction(
        self, transaction: Transaction, delete_all_future_instances: bool = False
    ) -> MutationResult:
        """Delete one occurrence, or a recurring parent together with its instances."""

        stored = self.state.transaction_by_id(transaction.id)
        if stored is None:
            raise ValidationError(f"Transaction {transaction.id} does not exist")

        doomed = [stored]
        if (
            delete_all_future_instances
            and stored.is_recurring
            and stored.parent_transaction_id is None
        ):
            doomed.extend(recurring.children_of(self.state.transactions, stored.id))
        return self._remove_transactions(doomed, "Recurring transaction deleted")

    def delete_all_transactions(self) -> MutationResult:
        return self._remove_transactions(list(self.state.transactions), "All transactions deleted")

    def import_transactions(self, raw_records: Iterable[Mapping[str, Any]]) -> MutationResult:
        """Append transactions from raw records, skipping duplicates."""

        outcome = importers.import_transactions(self.state, raw_records)
        result = MutationResult(value=outcome, warnings=list(outcome.errors))
        touched = _Touched(
            accounts=bool(outcome.accounts),
            transactions=bool(outcome.transactions),
        )
        for account in outcome.accounts:
            self.state.pools_for(account.id)
        if outcome.accounts or outcome.transactions:
            if balances.apply_balances(self.state.accounts, self.state.transactions):
                touched.accounts = True
            touched.budgets = self._refresh_budgets()

        self._persist(touched, result)
        return result

    def export_all(self) -> dict[str, Any]:
        return importers.export_all(self.state)

    # Accounts

    def create_account(
        self,
        name: str,
        account_type: AccountType | str,
        initial_balance: Decimal | int | str = ZERO,
    ) -> MutationResult:
        clean_name = (name or "").strip()
        if not clean_name:
            raise ValidationError("Account name is required")
        kind = _account_type(account_type)
        opening = _money(initial_balance, "initial balance")

        account = Account(
            name=clean_name,
            account_type=kind,
            initial_balance=opening,
            balance=opening,
            position=len(self.state.accounts),
        )
        account.balance = balances.recalculate_balance(account, self.state.transactions)
        self.state.accounts.append(account)
        self.state.pools_for(account.id)

        result = MutationResult(value=account)
        self._persist(_Touched(accounts=True), result)
        logger.info(f"Account created: {account.name}", extra={"account_id": str(account.id)})
        return result

    def update_account(
        self,
        account: Account,
        *,
        name: Optional[str] = None,
        account_type: AccountType | str | None = None,
        initial_balance: Decimal | int | str | None = None,
    ) -> MutationResult:
        """Edit an account. A new initial balance rescales its pools proportionally."""

        stored = self._require_account(account.id)
        clean_name = stored.name
        if name is not None:
            clean_name = name.strip()
            if not clean_name:
                raise ValidationError("Account name is required")
        kind = _account_type(account_type) if account_type is not None else stored.account_type
        opening = (
            _money(initial_balance, "initial balance")
            if initial_balance is not None
            else to_money(stored.initial_balance)
        )

        result = MutationResult(value=stored)
        touched = _Touched(accounts=True)
        previous_opening = to_money(stored.initial_balance)
        stored.name = clean_name
        stored.account_type = kind
        stored.initial_balance = opening

        if opening != previous_opening:
            if previous_opening == ZERO:
                logger.info(
                    "Pool rescale skipped for zero opening balance",
                    extra={"account_id": str(stored.id)},
                )
            else:
                scaled = pools.rescale_pools(
                    self.state.pools_for(stored.id), opening / previous_opening
                )
                touched.pools(scaled)

        balances.apply_balances(self.state.accounts, self.state.transactions)
        touched.budgets = self._refresh_budgets()
        self._persist(touched, result)
        logger.info(f"Account updated: {stored.name}", extra={"account_id": str(stored.id)})
        return result

    def delete_account(self, account: Account) -> MutationResult:
        """Remove an account with its transactions and pools."""

        stored = self._require_account(account.id)
        shares_type = any(
            a.id != stored.id and a.account_type == stored.account_type for a in self.state.accounts
        )

        def owned(txn: Transaction) -> bool:
            if txn.references_account(stored.id):
                return True
            if shares_type:
                return False
            return balances.debits(txn, stored) or balances.credits(txn, stored)

        doomed = [t for t in self.state.transactions if owned(t)]
        result = MutationResult(value=stored)
        touched = _Touched(accounts=True, transactions=bool(doomed))

        for txn in doomed:
            self._move_pool_contribution(txn, None, result, touched)
        doomed_ids = {t.id for t in doomed}
        self.state.transactions[:] = [t for t in self.state.transactions if t.id not in doomed_ids]
        for txn in self.state.transactions:
            if txn.friend_payment_account_id == stored.id:
                txn.friend_payment_account_id = None
                txn.friend_payment_is_account = False
                touched.transactions = True

        self.state.accounts[:] = [a for a in self.state.accounts if a.id != stored.id]
        for index, remaining in enumerate(self.state.accounts):
            remaining.position = index
        self.state.pools.pop(stored.id, None)
        touched.pool_accounts.discard(stored.id)
        touched.dropped_pool_accounts.add(stored.id)

        balances.apply_balances(self.state.accounts, self.state.transactions)
        touched.budgets = self._refresh_budgets()
        self._persist(touched, result)
        logger.info(
            f"Account deleted: {stored.name}",
            extra={"account_id": str(stored.id), "transactions_removed": len(doomed)},
        )
        return result

    # Pools

    def create_pool(
        self,
        account: Account,
        name: str,
        amount: Decimal | int | str,
        color: PoolColor | str = PoolColor.BLUE,
    ) -> MutationResult:
        pool = pools.create_pool(self.state, account, name, amount, color)
        result = MutationResult(value=pool)
        self._persist(_Touched(pool_accounts={pool.account_id}), result)
        return result

    def update_pool(
        self,
        pool: Pool,
        *,
        name: Optional[str] = None,
        amount: Decimal | int | str | None = None,
        color: PoolColor | str | None = None,
    ) -> MutationResult:
        updated = pools.update_pool(self.state, pool, name=name, amount=amount, color=color)
        result = MutationResult(value=updated)
        self._persist(_Touched(pool_accounts={updated.account_id}), result)
        return result

    def delete_pool(self, pool: Pool) -> MutationResult:
        """Unassign the pool's transactions, then remove it."""

        unassigned = pools.delete_pool(self.state, pool)
        result = MutationResult(value=unassigned)
        self._persist(
            _Touched(transactions=bool(unassigned), pool_accounts={pool.account_id}), result
        )
        return result

    # Categories

    def add_category(self, category: Category) -> MutationResult:
        if not (category.name or "").strip():
            raise ValidationError("Category name is required")
        kind = CategoryType(category.category_type)
        if self.state.category_by_id(category.id) is not None:
            raise ValidationError(f"Category {category.id} already exists")

        category.name = category.name.strip()
        collection = self.state.categories(kind)
        category.position = len(collection)
        collection.append(category)

        result = MutationResult(value=category)
        self._persist(_Touched(categories={kind}), result)
        logger.info(f"Category added: {category.name}", extra={"category_type": kind.value})
        return result

    def update_category(self, category: Category) -> MutationResult:
        stored = self.state.category_by_id(category.id)
        if stored is None:
            raise ValidationError(f"Category {category.id} does not exist")
        if CategoryType(category.category_type) != stored.category_type:
            raise ValidationError("A category cannot change between income and expense")
        if not (category.name or "").strip():
            raise ValidationError("Category name is required")

        stored.name = category.name.strip()
        stored.icon_name = category.icon_name

        result = MutationResult(value=stored)
        self._persist(_Touched(categories={CategoryType(stored.category_type)}), result)
        return result

    def delete_category(self, category: Category) -> MutationResult:
        """Remove a category; refused while any transaction still uses it."""

        stored = self.state.category_by_id(category.id)
        if stored is None:
            raise ValidationError(f"Category {category.id} does not exist")
        in_use = sum(1 for t in self.state.transactions if t.category_id == stored.id)
        if in_use:
            raise ValidationError(
                f"Category {stored.name!r} is used by {in_use} transaction(s)"
            )

        kind = CategoryType(stored.category_type)
        collection = self.state.categories(kind)
        collection[:] = [c for c in collection if c.id != stored.id]
        for index, remaining in enumerate(collection):
            remaining.position = index

        result = MutationResult(value=stored)
        touched = _Touched(categories={kind})
        touched.budgets = self._refresh_budgets()
        self._persist(touched, result)
        logger.info(f"Category deleted: {stored.name}", extra={"category_id": str(stored.id)})
        return result

    # Budgets

    def add_budget(self, budget: Budget) -> MutationResult:
        budgeting.validate_budget(budget, self.state.accounts, self._all_categories())
        if self.state.budget_by_id(budget.id) is not None:
            raise ValidationError(f"Budget {budget.id} already exists")

        budget.name = budget.name.strip()
        budget.amount = to_money(budget.amount)
        budget.period_start_date = budgeting.get_current_period_start_date(
            budget.time_period, self.clock(), self.week_start
        )
        budget.current_spent = ZERO
        self.state.budgets.append(budget)
        budgeting.recalculate_spend(
            [budget], self.state.transactions, self.state.accounts, self._all_categories()
        )

        result = MutationResult(value=budget)
        self._persist(_Touched(budgets=True), result)
        logger.info(
            f"Budget added: {budget.name}",
            extra={"budget_id": str(budget.id), "time_period": _value(budget.time_period)},
        )
        return result

    def update_budget(self, budget: Budget) -> MutationResult:
        """Replace a budget. The period start moves only when the time period changed."""

        stored = self.state.budget_by_id(budget.id)
        if stored is None:
            raise ValidationError(f"Budget {budget.id} does not exist")
        budgeting.validate_budget(budget, self.state.accounts, self._all_categories())

        if budget.time_period != stored.time_period or stored.period_start_date is None:
            budget.period_start_date = budgeting.get_current_period_start_date(
                budget.time_period, self.clock(), self.week_start
            )
        else:
            budget.period_start_date = stored.period_start_date
        budget.name = budget.name.strip()
        budget.amount = to_money(budget.amount)

        index = self.state.budgets.index(stored)
        self.state.budgets[index] = budget
        budgeting.recalculate_spend(
            [budget], self.state.transactions, self.state.accounts, self._all_categories()
        )

        result = MutationResult(value=budget)
        self._persist(_Touched(budgets=True), result)
        logger.info(f"Budget updated: {budget.name}", extra={"budget_id": str(budget.id)})
        return result

    def delete_budget(self, budget: Budget) -> MutationResult:
        stored = self.state.budget_by_id(budget.id)
        if stored is None:
            raise ValidationError(f"Budget {budget.id} does not exist")
        self.state.budgets[:] = [b for b in self.state.budgets if b.id != stored.id]

        result = MutationResult(value=stored)
        self._persist(_Touched(budgets=True), result)
        logger.info(f"Budget deleted: {stored.name}", extra={"budget_id": str(stored.id)})
        return result

    def roll_periods(self) -> MutationResult:
        """Roll budgets into the current period after time has moved on."""

        rolled = budgeting.check_and_roll_periods(self.state.budgets, self.clock(), self.week_start)
        result = MutationResult(value=rolled)
        if rolled:
            self._refresh_budgets()
            self._persist(_Touched(budgets=True), result)
        return result

    # Preferences

    def update_preferences(self, **changes: Any) -> MutationResult:
        known = {f.name for f in fields(UserPreferences)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(f"Unknown preference(s): {', '.join(unknown)}")
        for name, value in changes.items():
            setattr(self.state.preferences, name, value)

        result = MutationResult(value=self.state.preferences)
        self._persist(_Touched(preferences=True), result)
        return result

    def reset_all_data(self) -> MutationResult:
        """Wipe accounts, transactions, pools and budgets; categories are kept."""

        result = MutationResult(value=self.state)
        touched = _Touched(accounts=True, transactions=True, budgets=True, preferences=True)
        touched.dropped_pool_accounts.update(self.state.pools)
        self.state.accounts.clear()
        self.state.transactions.clear()
        self.state.budgets.clear()
        self.state.pools.clear()
        self.state.preferences = replace(self.default_preferences)
        self._persist(touched, result)
        logger.warning("All ledger data reset")
        return result

    # Internals

    def _all_categories(self) -> list[Category]:
        return [*self.state.income_categories, *self.state.expense_categories]

    def _require_transaction_index(self, transaction_id: UUID) -> int:
        index = self.state.transaction_index(transaction_id)
        if index is None:
            raise ValidationError(f"Transaction {transaction_id} does not exist")
        return index

    def _require_account(self, account_id: UUID) -> Account:
        account = self.state.account_by_id(account_id)
        if account is None:
            raise ValidationError(f"Account {account_id} does not exist")
        return account

    def _check_transaction(self, txn: Transaction) -> None:
        """Validate ``txn`` against the current state; normalise it only once it passes."""

        amount = _money(txn.amount, "transaction amount")
        if amount <= ZERO:
            raise ValidationError("Transaction amount must be greater than zero")
        try:
            kind = TransactionType(txn.transaction_type)
        except ValueError as exc:
            raise ValidationError(f"Unknown transaction type: {txn.transaction_type!r}") from exc

        needs = {
            "from": kind in (TransactionType.EXPENSE, TransactionType.TRANSFER),
            "to": kind in (TransactionType.INCOME, TransactionType.TRANSFER),
        }
        resolved: dict[str, Optional[Account]] = {}
        for side, required in needs.items():
            account_id = getattr(txn, f"{side}_account_id")
            tag = getattr(txn, f"{side}_account")
            if account_id is not None:
                resolved[side] = self._require_account(account_id)
            elif required and tag is None:
                raise ValidationError(f"{kind.value.capitalize()} needs a '{side}' account")

        pools.check_pool_link(self.state, txn, txn.pool_id)
        if kind == TransactionType.TRANSFER:
            source, target = resolved.get("from"), resolved.get("to")
            if source is not None and target is not None and source.id == target.id:
                raise ValidationError("A transfer needs two different accounts")
        if txn.category_id is not None and self.state.category_by_id(txn.category_id) is None:
            raise ValidationError(f"Category {txn.category_id} does not exist")
        friend_amount = self._check_split(txn, kind)

        txn.amount = amount
        if txn.is_split:
            txn.friend_amount = friend_amount
            txn.user_amount = amount
        txn.transaction_type = kind
        for side, account in resolved.items():
            if account is not None:
                setattr(txn, f"{side}_account", account.account_type)

    def _check_split(self, txn: Transaction, kind: TransactionType) -> Decimal:
        if not txn.is_split:
            return ZERO
        if kind != TransactionType.EXPENSE:
            raise ValidationError("Only expenses can be split with a friend")
        friend_amount = _money(txn.friend_amount, "friend amount")
        if friend_amount < ZERO:
            raise ValidationError("Friend amount cannot be negative")
        if txn.friend_payment_is_account:
            if txn.friend_payment_account_id is None:
                raise ValidationError("Split payment needs the account the friend paid into")
            self._require_account(txn.friend_payment_account_id)
        return friend_amount

    def _refresh_balances(self, changed: Iterable[Optional[Transaction]]) -> bool:
        affected = balances.accounts_touched_by(self.state.accounts, changed)
        return bool(balances.apply_balances(affected, self.state.transactions))

    def _refresh_budgets(self) -> bool:
        changed = budgeting.recalculate_spend(
            self.state.budgets,
            self.state.transactions,
            self.state.accounts,
            self._all_categories(),
            now=self.clock(),
            week_start=self.week_start,
        )
        return bool(changed)

    def _move_pool_contribution(
        self,
        before: Optional[Transaction],
        after: Optional[Transaction],
        result: MutationResult,
        touched: _Touched,
    ) -> None:
        moved = pools.move_contribution(self.state, before, after)
        if moved is None:
            return
        result.warnings.extend(moved.warnings)
        touched.pools(moved.updated_pools)
        if moved.warnings:
            touched.transactions = True

    def _remove_transactions(self, doomed: list[Transaction], message: str) -> MutationResult:
        result = MutationResult(value=doomed)
        touched = _Touched(transactions=True)
        for txn in doomed:
            self._move_pool_contribution(txn, None, result, touched)
        doomed_ids = {t.id for t in doomed}
        self.state.transactions[:] = [t for t in self.state.transactions if t.id not in doomed_ids]

        touched.accounts = self._refresh_balances(doomed)
        touched.budgets = self._refresh_budgets()
        self._persist(touched, result)
        logger.info(message, extra={"removed": len(doomed)})
        return result

    def _read(
        self,
        collection: str,
        loader: Callable[[], Any],
        result: MutationResult,
        unreadable: set[str],
    ) -> Any:
        try:
            return loader()
        except StorageError as exc:
            logger.error(f"Failed to load {collection}", exc_info=True)
            result.storage_errors.append(exc)
            unreadable.add(collection)
            return None

    def _persist(self, touched: _Touched, result: MutationResult) -> None:
        """Write every touched collection; each write is attempted even if an earlier one failed."""

        repos = self.repositories
        writes: list[tuple[str, Callable[[], None]]] = []
        if touched.transactions:
            writes.append(("transactions", lambda: repos.transactions.save_all(self.state.transactions)))
        if touched.accounts:
            writes.append(("accounts", lambda: repos.accounts.save_all(self.state.accounts)))
        for account_id in sorted(touched.pool_accounts - touched.dropped_pool_accounts, key=str):
            writes.append(
                (
                    f"pools.{account_id}",
                    lambda account_id=account_id: repos.pools.save_for_account(
                        account_id, self.state.pools_for(account_id)
                    ),
                )
            )
        for account_id in sorted(touched.dropped_pool_accounts, key=str):
            writes.append(
                (
                    f"pools.{account_id}",
                    lambda account_id=account_id: repos.pools.delete_for_account(account_id),
                )
            )
        if touched.budgets:
            writes.append(("budgets", lambda: repos.budgets.save_all(self.state.budgets)))
        for kind in sorted(touched.categories, key=lambda k: k.value):
            writes.append(
                (
                    f"categories.{kind.value}",
                    lambda kind=kind: repos.categories.save_all(kind, self.state.categories(kind)),
                )
            )
        if touched.preferences:
            writes.append(("preferences", lambda: repos.settings.save_preferences(self.state.preferences)))

        for collection, write in writes:
            try:
                write()
            except StorageError as exc:
                logger.error(f"Failed to save {collection}", exc_info=True)
                result.storage_errors.append(exc)


def _value(member: Any) -> Any:
    return getattr(member, "value", member)


def _money(raw: Any, label: str) -> Decimal:
    try:
        return to_money(raw)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid {label}: {raw!r}") from exc


def _account_type(raw: AccountType | str) -> AccountType:
    try:
        return AccountType(raw)
    except ValueError as exc:
        raise ValidationError(f"Unknown account type: {raw!r}") from exc


__all__ = ["DEFAULT_ACCOUNTS", "LedgerCoordinator", "MutationResult"]
