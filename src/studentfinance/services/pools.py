"""Pool allocation ledger.

Pools are envelopes carved out of an account balance. Their ``amount`` is a
running figure: an expense assigned to a pool takes money out of it, income
assigned to a pool tops it up, and unassigning reverses whatever the original
assignment did. Only creation is bounded by the unallocated balance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional
from uuid import UUID

from ..domain.state import LedgerState
from ..errors import ValidationError
from ..logging_config import get_logger
from ..models.account import Account
from ..models.pool import Pool, PoolColor
from ..models.transaction import Transaction, TransactionType
from ..money import CENT, ZERO, to_money
from .balances import credits, debits

logger = get_logger(__name__)


@dataclass
class PoolAssignment:
    """Outcome of moving a transaction between pools."""

    transaction: Transaction
    updated_pools: list[Pool] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def allocated_total(pools: Iterable[Pool]) -> Decimal:
    return sum((to_money(p.amount) for p in pools), ZERO)


def unallocated_balance(state: LedgerState, account: Account) -> Decimal:
    """Account balance minus everything already handed out to its pools (may be negative)."""

    return to_money(account.balance) - allocated_total(state.pools_for(account.id))


def pool_delta(transaction: Transaction) -> Decimal:
    """How much assigning ``transaction`` moves a pool's amount."""

    if transaction.transaction_type == TransactionType.EXPENSE:
        return -to_money(transaction.amount)
    if transaction.transaction_type == TransactionType.INCOME:
        return to_money(transaction.amount)
    return ZERO


def _coerce_color(color: PoolColor | str) -> PoolColor:
    try:
        return PoolColor(color)
    except ValueError as exc:
        raise ValidationError(f"Unknown pool color: {color!r}") from exc


def create_pool(
    state: LedgerState,
    account: Account,
    name: str,
    amount: Decimal | int | str,
    color: PoolColor | str = PoolColor.BLUE,
) -> Pool:
    """Carve a new pool out of the account's unallocated balance."""

    stored = state.account_by_id(account.id)
    if stored is None:
        raise ValidationError(f"Account {account.id} does not exist")
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError("Pool name is required")
    value = to_money(amount)
    if value <= ZERO:
        raise ValidationError("Pool amount must be greater than zero")
    available = unallocated_balance(state, stored)
    if value > available:
        raise ValidationError(
            f"Pool amount {value} exceeds unallocated balance {available}"
        )

    pools = state.pools_for(stored.id)
    pool = Pool(
        account_id=stored.id,
        name=clean_name,
        amount=value,
        color=_coerce_color(color),
        position=len(pools),
    )
    pools.append(pool)
    logger.info(
        f"Pool created: {pool.name}",
        extra={"account_id": str(stored.id), "pool_id": str(pool.id), "amount": str(value)},
    )
    return pool


def update_pool(
    state: LedgerState,
    pool: Pool,
    *,
    name: Optional[str] = None,
    amount: Decimal | int | str | None = None,
    color: PoolColor | str | None = None,
) -> Pool:
    """Edit a pool in place. A direct amount edit is not bounded by the balance."""

    target = state.pool_by_id(pool.id)
    if target is None:
        raise ValidationError(f"Pool {pool.id} does not exist")
    if name is not None:
        clean_name = name.strip()
        if not clean_name:
            raise ValidationError("Pool name is required")
        target.name = clean_name
    if amount is not None:
        value = to_money(amount)
        if value < ZERO:
            raise ValidationError("Pool amount cannot be negative")
        target.amount = value
    if color is not None:
        target.color = _coerce_color(color)
    return target


def moves_money_for_pool(state: LedgerState, transaction: Transaction, pool: Pool) -> bool:
    """True when ``transaction`` spends from or pays into the account owning ``pool``."""

    owner = state.account_by_id(pool.account_id)
    if owner is None:
        return False
    if transaction.transaction_type == TransactionType.EXPENSE:
        return debits(transaction, owner)
    if transaction.transaction_type == TransactionType.INCOME:
        return credits(transaction, owner)
    return False


def check_pool_link(state: LedgerState, transaction: Transaction, pool_id: Optional[UUID]) -> None:
    """Raise ``ValidationError`` unless ``transaction`` may be linked to ``pool_id``.

    Transfers never take part in pool math, and a pool only takes
    transactions that move money in or out of its own account. A pool id that
    no longer exists passes here; ``move_contribution`` clears it with a warning.
    """

    if pool_id is None:
        return
    if transaction.transaction_type == TransactionType.TRANSFER:
        raise ValidationError("Transfers cannot be assigned to a pool")
    pool = state.pool_by_id(pool_id)
    if pool is None:
        return
    if not moves_money_for_pool(state, transaction, pool):
        raise ValidationError(
            f"Pool {pool.name!r} belongs to an account this transaction does not touch"
        )


def move_contribution(
    state: LedgerState,
    old: Optional[Transaction],
    new: Optional[Transaction],
) -> PoolAssignment | None:
    """Reverse ``old``'s pool contribution and apply ``new``'s.

    ``old`` is the transaction as it was before a change (None for an insert)
    and ``new`` as it is after (None for a delete). A ``new.pool_id`` pointing at
    a missing pool is cleared and reported as a warning. Nothing moves when the
    pool and the contribution are unchanged, so repeating an assignment is a
    no-op.
    """

    warnings: list[str] = []

    old_pool = state.pool_by_id(old.pool_id) if old is not None else None
    if old is not None and old.pool_id is not None and old_pool is None:
        warnings.append(f"Transaction {old.id} was linked to missing pool {old.pool_id}")

    new_pool = None
    if new is not None and new.pool_id is not None:
        new_pool = state.pool_by_id(new.pool_id)
        if new_pool is None:
            warnings.append(f"Pool {new.pool_id} no longer exists; transaction {new.id} left unassigned")
            new.pool_id = None

    old_delta = pool_delta(old) if old_pool is not None and old is not None else ZERO
    new_delta = pool_delta(new) if new_pool is not None and new is not None else ZERO

    for message in warnings:
        logger.warning(message)

    if old_pool is None and new_pool is None:
        return None if not warnings else PoolAssignment(new or old, [], warnings)  # type: ignore[arg-type]
    if old_pool is not None and new_pool is not None and old_pool.id == new_pool.id and old_delta == new_delta:
        return PoolAssignment(new or old, [], warnings)  # type: ignore[arg-type]

    touched: list[Pool] = []
    if old_pool is not None:
        old_pool.amount = to_money(old_pool.amount) - old_delta
        touched.append(old_pool)
    if new_pool is not None:
        new_pool.amount = to_money(new_pool.amount) + new_delta
        if new_pool not in touched:
            touched.append(new_pool)
    return PoolAssignment(new or old, touched, warnings)  # type: ignore[arg-type]


def assign_transaction(
    state: LedgerState, transaction: Transaction, pool_id: Optional[UUID]
) -> PoolAssignment:
    """Point ``transaction`` at ``pool_id`` (or unassign with None), adjusting both pools.

    Raises for transfers and for pools of accounts the transaction does not touch.
    """

    check_pool_link(state, transaction, pool_id)

    before = transaction.copy_with()
    transaction.pool_id = pool_id
    result = move_contribution(state, before, transaction)
    if result is None:
        return PoolAssignment(transaction)
    result.transaction = transaction
    return result


def delete_pool(state: LedgerState, pool: Pool) -> list[Transaction]:
    """Unassign every transaction linked to ``pool`` and drop it from its account.

    Returns the transactions that were unassigned.
    """

    target = state.pool_by_id(pool.id)
    if target is None:
        raise ValidationError(f"Pool {pool.id} does not exist")

    unassigned = state.transactions_for_pool(target.id)
    for txn in unassigned:
        assign_transaction(state, txn, None)

    pools = state.pools_for(target.account_id)
    pools[:] = [p for p in pools if p.id != target.id]
    for index, remaining in enumerate(pools):
        remaining.position = index
    logger.info(
        f"Pool deleted: {target.name}",
        extra={"pool_id": str(target.id), "unassigned": len(unassigned)},
    )
    return unassigned


def rescale_pools(pools: Iterable[Pool], ratio: Decimal | int | str) -> list[Pool]:
    """Multiply every pool amount by ``ratio`` (used when an initial balance is edited)."""

    factor = Decimal(str(ratio))
    scaled = []
    for pool in pools:
        pool.amount = (to_money(pool.amount) * factor).quantize(CENT, rounding=ROUND_HALF_UP)
        scaled.append(pool)
    return scaled


__all__ = [
    "PoolAssignment",
    "allocated_total",
    "assign_transaction",
    "check_pool_link",
    "create_pool",
    "delete_pool",
    "move_contribution",
    "moves_money_for_pool",
    "pool_delta",
    "rescale_pools",
    "unallocated_balance",
    "update_pool",
]
