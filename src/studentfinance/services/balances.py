"""Balance engine: the only source of truth for account balances."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from ..models.account import Account, AccountType
from ..models.transaction import Transaction, TransactionType
from ..money import ZERO, to_money


def _matches(account: Account, account_id: Optional[UUID], type_tag: Optional[AccountType]) -> bool:
    # explicit ids win; the type tag only applies to legacy rows without one
    if account_id is not None:
        return account.id == account_id
    if type_tag is not None:
        return account.account_type == type_tag
    return False


def debits(transaction: Transaction, account: Account) -> bool:
    """True when money leaves ``account`` through this transaction."""

    return _matches(account, transaction.from_account_id, transaction.from_account)


def credits(transaction: Transaction, account: Account) -> bool:
    """True when money lands in ``account`` through this transaction."""

    return _matches(account, transaction.to_account_id, transaction.to_account)


def receives_friend_share(transaction: Transaction, account: Account) -> bool:
    """True when a friend's repayment for a split expense landed in ``account``."""

    return (
        transaction.transaction_type == TransactionType.EXPENSE
        and transaction.friend_share_account_id is not None
        and transaction.friend_share_account_id == account.id
    )


def signed_effect(transaction: Transaction, account: Account) -> Decimal:
    """Directional contribution of one transaction to one account's balance."""

    amount = to_money(transaction.amount)
    effect = ZERO
    kind = transaction.transaction_type
    if kind in (TransactionType.EXPENSE, TransactionType.TRANSFER) and debits(transaction, account):
        effect -= amount
    if kind in (TransactionType.INCOME, TransactionType.TRANSFER) and credits(transaction, account):
        effect += amount
    if receives_friend_share(transaction, account):
        effect += to_money(transaction.friend_amount)
    return effect


def recalculate_balance(account: Account, transactions: Iterable[Transaction]) -> Decimal:
    """Return ``initial_balance`` plus the signed effect of every transaction.

    Pure: the account is not modified.
    """

    total = to_money(account.initial_balance)
    for txn in transactions:
        total += signed_effect(txn, account)
    return total


def accounts_touched_by(
    accounts: Iterable[Account], transactions: Iterable[Optional[Transaction]]
) -> list[Account]:
    """Accounts whose balance can change when any of ``transactions`` changes."""

    relevant = [t for t in transactions if t is not None]
    return [
        account
        for account in accounts
        if any(
            debits(t, account) or credits(t, account) or receives_friend_share(t, account)
            for t in relevant
        )
    ]


def apply_balances(accounts: Iterable[Account], transactions: list[Transaction]) -> list[Account]:
    """Refresh the cached ``balance`` of each account; return the ones that moved."""

    changed: list[Account] = []
    for account in accounts:
        balance = recalculate_balance(account, transactions)
        if balance != account.balance:
            account.balance = balance
            changed.append(account)
    return changed


__all__ = [
    "accounts_touched_by",
    "apply_balances",
    "credits",
    "debits",
    "receives_friend_share",
    "recalculate_balance",
    "signed_effect",
]
