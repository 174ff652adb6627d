"""Bulk import of raw transaction records and whole-ledger snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional
from uuid import UUID

from ..domain.state import LedgerState
from ..logging_config import get_logger
from ..models import Account, AccountType, CategoryType, Transaction, TransactionType
from ..money import ZERO, to_money

logger = get_logger(__name__)

DuplicateKey = tuple[datetime, Decimal, str, Optional[UUID]]


@dataclass
class ImportResult:
    """Result of an import operation."""

    accounts_created: int = 0
    transactions_added: int = 0
    duplicates_skipped: int = 0
    errors: list[str] = field(default_factory=list)
    accounts: list[Account] = field(default_factory=list, repr=False)
    transactions: list[Transaction] = field(default_factory=list, repr=False)

    def as_dict(self) -> dict[str, int]:
        return {
            "accounts_created": self.accounts_created,
            "transactions_added": self.transactions_added,
            "duplicates_skipped": self.duplicates_skipped,
        }


def _parse_date(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    text = str(raw or "").strip()
    if not text:
        raise ValueError("missing date")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    for fmt in ("%d/%m/%Y", "%Y/%m/%d", "%d-%m-%Y"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    raise ValueError(f"unrecognised date {text!r}")


def _parse_type(raw: Any, amount: Decimal) -> TransactionType:
    if raw in (None, ""):
        return TransactionType.EXPENSE if amount < ZERO else TransactionType.INCOME
    return TransactionType(str(raw).strip().lower())


def primary_account_id(txn: Transaction) -> Optional[UUID]:
    """The account a transaction is filed under for duplicate detection."""

    if txn.transaction_type == TransactionType.INCOME:
        return txn.to_account_id
    return txn.from_account_id


def duplicate_key(txn: Transaction) -> DuplicateKey:
    return (txn.date, to_money(txn.amount), (txn.description or "").strip(), primary_account_id(txn))


class _AccountResolver:
    """Finds accounts by name (or id).

    Unknown names get a pending account that only joins the ledger through
    ``commit`` once its record has been accepted.
    """

    def __init__(self, state: LedgerState, result: ImportResult):
        self.state = state
        self.result = result
        self.pending: dict[str, Account] = {}

    def resolve(self, name: Any, account_type: Any) -> Optional[Account]:
        if name in (None, ""):
            return None
        text = str(name).strip()
        for account in self.state.accounts:
            if str(account.id) == text or account.name.strip().lower() == text.lower():
                return account
        if text.lower() in self.pending:
            return self.pending[text.lower()]
        kind = AccountType(str(account_type).strip().lower()) if account_type else AccountType.CURRENT
        account = Account(name=text, account_type=kind)
        self.pending[text.lower()] = account
        return account

    def commit(self) -> None:
        for account in self.pending.values():
            account.position = len(self.state.accounts)
            self.state.accounts.append(account)
            self.result.accounts.append(account)
            self.result.accounts_created += 1
            logger.info(
                f"Import created account: {account.name}",
                extra={"account_type": account.account_type.value},
            )
        self.pending.clear()

    def discard(self) -> None:
        self.pending.clear()


def _category_id(state: LedgerState, name: Any, txn_type: TransactionType) -> Optional[UUID]:
    if name in (None, "") or txn_type == TransactionType.TRANSFER:
        return None
    text = str(name).strip().lower()
    category_type = CategoryType.INCOME if txn_type == TransactionType.INCOME else CategoryType.EXPENSE
    for category in state.categories(category_type):
        if category.name.lower() == text or str(category.id) == text:
            return category.id
    return None


def build_transaction(
    record: Mapping[str, Any], state: LedgerState, accounts: _AccountResolver
) -> Transaction:
    """Turn one raw mapping into a Transaction; raises ValueError on bad input."""

    when = _parse_date(record.get("date"))
    raw_amount = to_money(record.get("amount"))
    if raw_amount == ZERO:
        raise ValueError("amount must be non-zero")
    txn_type = _parse_type(record.get("type"), raw_amount)
    amount = abs(raw_amount)

    account_name = record.get("account")
    account_type = record.get("account_type")
    source: Optional[Account] = None
    target: Optional[Account] = None
    if txn_type == TransactionType.EXPENSE:
        source = accounts.resolve(record.get("from_account") or account_name, account_type)
    elif txn_type == TransactionType.INCOME:
        target = accounts.resolve(record.get("to_account") or account_name, account_type)
    else:
        source = accounts.resolve(record.get("from_account"), record.get("from_account_type"))
        target = accounts.resolve(record.get("to_account"), record.get("to_account_type"))
        if source is None or target is None:
            raise ValueError("transfers need both from_account and to_account")
    if source is None and target is None:
        raise ValueError("record does not name an account")

    return Transaction(
        date=when,
        amount=amount,
        description=str(record.get("description") or "").strip(),
        transaction_type=txn_type,
        from_account=source.account_type if source else None,
        to_account=target.account_type if target else None,
        from_account_id=source.id if source else None,
        to_account_id=target.id if target else None,
        category_id=_category_id(state, record.get("category"), txn_type),
    )


def import_transactions(
    state: LedgerState, raw_records: Iterable[Mapping[str, Any]]
) -> ImportResult:
    """Append new transactions from ``raw_records`` to ``state``.

    A record is skipped as a duplicate when a transaction with the same
    (date, amount, description, account) already exists, including ones added
    earlier in the same batch. Unknown account names create new accounts, but
    only for records that are accepted.
    Balances and budgets are not touched here.
    """

    result = ImportResult()
    resolver = _AccountResolver(state, result)
    seen = {duplicate_key(t) for t in state.transactions}

    for row_num, record in enumerate(raw_records, start=1):
        try:
            txn = build_transaction(record, state, resolver)
        except (TypeError, ValueError) as exc:
            resolver.discard()
            result.errors.append(f"Record {row_num}: {exc}")
            logger.warning(f"Skipping import record {row_num}: {exc}")
            continue
        key = duplicate_key(txn)
        if key in seen:
            resolver.discard()
            result.duplicates_skipped += 1
            continue
        resolver.commit()
        seen.add(key)
        state.transactions.append(txn)
        result.transactions.append(txn)
        result.transactions_added += 1

    logger.info(
        "Import finished",
        extra={**result.as_dict(), "errors": len(result.errors)},
    )
    return result


def export_all(state: LedgerState) -> dict[str, Any]:
    """JSON-serialisable snapshot of every persisted collection."""

    def dump(rows: Iterable[Any]) -> list[dict[str, Any]]:
        return [row.model_dump(mode="json") for row in rows]

    return {
        "accounts": dump(state.accounts),
        "transactions": dump(state.transactions),
        "categories": {
            CategoryType.INCOME.value: dump(state.income_categories),
            CategoryType.EXPENSE.value: dump(state.expense_categories),
        },
        "budgets": dump(state.budgets),
        "pools": {str(account_id): dump(pools) for account_id, pools in state.pools.items()},
        "preferences": {row.key: row.value for row in state.preferences.to_settings()},
    }


__all__ = [
    "ImportResult",
    "build_transaction",
    "duplicate_key",
    "export_all",
    "import_transactions",
    "primary_account_id",
]
