"""CSV export helpers for the transaction list."""

from __future__ import annotations

import csv
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable

from ..models.transaction import Transaction

HEADERS = [
    "id",
    "date",
    "amount",
    "description",
    "type",
    "from_account",
    "to_account",
    "from_account_id",
    "to_account_id",
    "category_id",
    "pool_id",
    "is_recurring",
    "recurrence_interval",
    "is_split",
    "friend_name",
    "friend_amount",
    "user_amount",
    "friend_payment_destination",
    "friend_payment_account_id",
]


def _serialize_value(value):
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


def export_transactions_csv(*, transactions: Iterable[Transaction], output_path: Path) -> Path:
    """Write transactions to CSV at `output_path`.

    Columns are deterministic (see ``HEADERS``). Returns the path written.
    """

    output_path.parent.mkdir(parents=True, exist_ok=True)

    # Use newline='' for csv on Windows
    with output_path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(
            fh, fieldnames=HEADERS, extrasaction="ignore", quoting=csv.QUOTE_MINIMAL
        )
        writer.writeheader()
        for tx in transactions:
            row = {
                "id": _serialize_value(tx.id),
                "date": _serialize_value(tx.date),
                "amount": _serialize_value(tx.amount),
                "description": _serialize_value(tx.description),
                "type": _serialize_value(tx.transaction_type),
                "from_account": _serialize_value(tx.from_account),
                "to_account": _serialize_value(tx.to_account),
                "from_account_id": _serialize_value(tx.from_account_id),
                "to_account_id": _serialize_value(tx.to_account_id),
                "category_id": _serialize_value(tx.category_id),
                "pool_id": _serialize_value(tx.pool_id),
                "is_recurring": _serialize_value(tx.is_recurring),
                "recurrence_interval": _serialize_value(tx.recurrence_interval),
                "is_split": _serialize_value(tx.is_split),
                "friend_name": _serialize_value(tx.friend_name),
                "friend_amount": _serialize_value(tx.friend_amount),
                "user_amount": _serialize_value(tx.user_amount),
                "friend_payment_destination": _serialize_value(tx.friend_payment_destination),
                "friend_payment_account_id": _serialize_value(tx.friend_payment_account_id),
            }
            writer.writerow(row)

    return output_path
