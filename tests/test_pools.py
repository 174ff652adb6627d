"""Pool allocation ledger tests."""

from __future__ import annotations

from decimal import Decimal
from uuid import uuid4

import pytest

from studentfinance.domain.state import LedgerState
from studentfinance.errors import ValidationError
from studentfinance.models import AccountType, PoolColor, TransactionType
from studentfinance.services import pools


@pytest.fixture
def funded_state(account_factory):
    account = account_factory(AccountType.CURRENT, "100.00")
    return LedgerState(accounts=[account]), account


def test_create_pool_bounded_by_unallocated_balance(funded_state):
    state, account = funded_state

    with pytest.raises(ValidationError):
        pools.create_pool(state, account, "Rent", "150")
    assert state.pools_for(account.id) == []

    pool = pools.create_pool(state, account, "Rent", "60", PoolColor.GREEN)

    assert pool.amount == Decimal("60.00")
    assert pool.color == PoolColor.GREEN
    assert state.pools_for(account.id) == [pool]
    assert pools.unallocated_balance(state, account) == Decimal("40.00")


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_create_pool_rejects_non_positive_amounts(funded_state, amount):
    state, account = funded_state

    with pytest.raises(ValidationError):
        pools.create_pool(state, account, "Rent", amount)


def test_create_pool_requires_name_and_known_color(funded_state):
    state, account = funded_state

    with pytest.raises(ValidationError):
        pools.create_pool(state, account, "   ", "10")
    with pytest.raises(ValidationError):
        pools.create_pool(state, account, "Rent", "10", "Magenta")


def test_expense_assignment_and_unassignment(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)
    state.transactions.append(txn)

    pools.assign_transaction(state, txn, food.id)
    assert food.amount == Decimal("40.00")
    assert txn.pool_id == food.id

    pools.assign_transaction(state, txn, None)
    assert food.amount == Decimal("60.00")
    assert txn.pool_id is None


def test_assigning_same_pool_twice_is_idempotent(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)

    pools.assign_transaction(state, txn, food.id)
    second = pools.assign_transaction(state, txn, food.id)

    assert food.amount == Decimal("40.00")
    assert second.updated_pools == []


def test_income_tops_up_pool(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    fun = pool_factory(account, "10", name="Fun")
    state.pools_for(account.id).append(fun)
    txn = transaction_factory(TransactionType.INCOME, "15", target=account)

    pools.assign_transaction(state, txn, fun.id)

    assert fun.amount == Decimal("25.00")


def test_reassign_between_pools_moves_contribution(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    fun = pool_factory(account, "30", name="Fun")
    state.pools_for(account.id).extend([food, fun])
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)

    pools.assign_transaction(state, txn, food.id)
    result = pools.assign_transaction(state, txn, fun.id)

    assert food.amount == Decimal("60.00")
    assert fun.amount == Decimal("10.00")
    assert {p.id for p in result.updated_pools} == {food.id, fun.id}


def test_transfer_cannot_be_assigned(funded_state, pool_factory, transaction_factory, account_factory):
    state, account = funded_state
    other = account_factory(AccountType.SAVINGS)
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    txn = transaction_factory(TransactionType.TRANSFER, "20", source=account, target=other)

    with pytest.raises(ValidationError):
        pools.assign_transaction(state, txn, food.id)
    assert food.amount == Decimal("60.00")


def test_dangling_pool_is_cleared_with_warning(funded_state, transaction_factory):
    state, account = funded_state
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)

    result = pools.assign_transaction(state, txn, uuid4())

    assert txn.pool_id is None
    assert len(result.warnings) == 1
    assert result.updated_pools == []


def test_pool_math_ignores_account_balance_after_creation(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    big = transaction_factory(TransactionType.EXPENSE, "500", source=account)

    pools.assign_transaction(state, big, food.id)

    assert food.amount == Decimal("-440.00")


def test_update_pool_allows_over_allocation(funded_state):
    state, account = funded_state
    pool = pools.create_pool(state, account, "Rent", "50")

    pools.update_pool(state, pool, name="Rent & bills", amount="500", color="Teal")

    assert pool.name == "Rent & bills"
    assert pool.amount == Decimal("500.00")
    assert pool.color == PoolColor.TEAL
    with pytest.raises(ValidationError):
        pools.update_pool(state, pool, amount="-1")


def test_delete_pool_unassigns_transactions_first(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    fun = pool_factory(account, "5", name="Fun")
    state.pools_for(account.id).extend([food, fun])
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)
    state.transactions.append(txn)
    pools.assign_transaction(state, txn, food.id)

    unassigned = pools.delete_pool(state, food)

    assert unassigned == [txn]
    assert txn.pool_id is None
    assert state.pools_for(account.id) == [fun]
    assert fun.position == 0


def test_move_contribution_follows_amount_edit(funded_state, pool_factory, transaction_factory):
    state, account = funded_state
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=account)
    pools.assign_transaction(state, txn, food.id)

    edited = txn.copy_with(amount=Decimal("35"))
    pools.move_contribution(state, txn, edited)

    assert food.amount == Decimal("25.00")


def test_rescale_pools_multiplies_amounts(funded_state, pool_factory):
    _, account = funded_state
    food = pool_factory(account, "60")
    fun = pool_factory(account, "10.01", name="Fun")

    pools.rescale_pools([food, fun], Decimal("1.5"))

    assert food.amount == Decimal("90.00")
    assert fun.amount == Decimal("15.02")


def test_pool_of_untouched_account_cannot_be_assigned(funded_state, pool_factory, transaction_factory, account_factory):
    state, account = funded_state
    savings = account_factory(AccountType.SAVINGS, "50.00")
    state.accounts.append(savings)
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)
    txn = transaction_factory(TransactionType.EXPENSE, "20", source=savings)

    with pytest.raises(ValidationError):
        pools.assign_transaction(state, txn, food.id)
    assert txn.pool_id is None
    assert food.amount == Decimal("60.00")


def test_income_into_owning_account_may_join_its_pool(funded_state, pool_factory, transaction_factory, account_factory):
    state, account = funded_state
    savings = account_factory(AccountType.SAVINGS)
    state.accounts.append(savings)
    food = pool_factory(account, "60")
    state.pools_for(account.id).append(food)

    elsewhere = transaction_factory(TransactionType.INCOME, "10", target=savings)
    assert not pools.moves_money_for_pool(state, elsewhere, food)

    wages = transaction_factory(TransactionType.INCOME, "10", target=account)
    pools.assign_transaction(state, wages, food.id)
    assert food.amount == Decimal("70.00")


def test_create_pool_checks_the_stored_balance(funded_state):
    state, account = funded_state
    stale = type(account)(**account.model_dump())
    stale.balance = Decimal("1000.00")

    with pytest.raises(ValidationError):
        pools.create_pool(state, stale, "Rent", "500")
    assert state.pools_for(account.id) == []

    pool = pools.create_pool(state, stale, "Rent", "100")
    assert pool.account_id == account.id
    assert pools.unallocated_balance(state, account) == Decimal("0.00")
